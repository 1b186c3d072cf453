"""Client delivery addresses."""

from protean.fields import Float, Identifier, String

from ordering.domain import ordering


@ordering.aggregate
class Address:
    client_id = Identifier(required=True)
    address = String(required=True, max_length=255)
    neighborhood = String(max_length=150)
    alias = String(max_length=50)
    lat = Float()
    lng = Float()

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    def snapshot(self) -> dict:
        return {
            "id": str(self.id),
            "address": self.address,
            "neighborhood": self.neighborhood or "",
            "alias": self.alias,
            "lat": self.lat,
            "lng": self.lng,
        }
