"""Order domain events: immutable facts about order state changes.

Events carry enough data for the notification handlers to build their
payloads without reloading the aggregate.
"""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A client placed an order and it was persisted with its priced lines."""

    __version__ = 1

    order_id = Identifier(required=True)
    client_id = Identifier(required=True)
    branch_id = Identifier(required=True)
    address_id = Identifier(required=True)
    status = String(required=True)
    payment_method = String(required=True)
    subtotal = String(required=True)
    delivery_fee = String(required=True)
    total = String(required=True)
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An actor moved the order to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    client_id = Identifier(required=True)
    branch_id = Identifier(required=True)
    address_id = Identifier(required=True)
    courier_id = Identifier()
    previous_status = String(required=True)
    new_status = String(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class CourierAssigned:
    """A courier was attached to a dispatched order."""

    __version__ = 1

    order_id = Identifier(required=True)
    branch_id = Identifier(required=True)
    courier_id = Identifier(required=True)
    zone_id = Identifier()
    assigned_at = DateTime(required=True)
