"""Delivery zones and the couriers staffed on them."""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.aggregate
class DeliveryZone:
    """An area served by one branch.

    ``polygon`` is a JSON list of ``[lat, lng]`` vertices. When it has fewer
    than three vertices the zone is treated as a circle of
    ``max_delivery_distance`` kilometres around ``(center_lat, center_lng)``.
    """

    branch_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    is_active = Boolean(default=True)
    max_delivery_distance = Float(min_value=0.0)  # km
    center_lat = Float(min_value=-90.0, max_value=90.0)
    center_lng = Float(min_value=-180.0, max_value=180.0)
    polygon = Text()
    created_at = DateTime(default=lambda: datetime.now(UTC))

    @property
    def vertices(self) -> list[tuple[float, float]]:
        if not self.polygon:
            return []
        return [(float(lat), float(lng)) for lat, lng in json.loads(self.polygon)]

    @property
    def has_center(self) -> bool:
        return self.center_lat is not None and self.center_lng is not None

    def deactivate(self) -> None:
        self.is_active = False

    def activate(self) -> None:
        self.is_active = True


@ordering.aggregate
class ZoneAssignment:
    """A courier's membership in a delivery zone."""

    courier_id = Identifier(required=True)
    zone_id = Identifier(required=True)
    is_active = Boolean(default=True)
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime()

    def activate(self) -> None:
        if self.is_active:
            return
        self.is_active = True
        self.updated_at = datetime.now(UTC)

    def deactivate(self) -> None:
        if not self.is_active:
            raise ValidationError({"zone_assignment": ["Courier is not active in this zone"]})
        self.is_active = False
        self.updated_at = datetime.now(UTC)
