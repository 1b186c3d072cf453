"""Restaurant branches: own orders, delivery zones and staff."""

from protean.fields import Float, String

from ordering.domain import ordering


@ordering.aggregate
class Branch:
    name = String(required=True, max_length=150)
    address = String(max_length=255)
    phone = String(max_length=30)
    lat = Float()
    lng = Float()

    def snapshot(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "address": self.address or "",
            "phone": self.phone,
        }
