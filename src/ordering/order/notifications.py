"""Notification dispatcher: pushes order events to live subscribers.

New orders go to the branch room, status changes to the client room.
Publishing happens after the order is committed and every failure is
logged and swallowed: the stored order is authoritative whether or not
anyone was told about it.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.directory.address import Address
from ordering.directory.user import User
from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.order.order import Order
from realtime import get_hub
from realtime.hub import branch_room, client_room

logger = structlog.get_logger(__name__)

NEW_ORDER = "new_order"
STATUS_UPDATE = "status_update"


def _snapshot(aggregate_cls, identifier) -> dict | None:
    if not identifier:
        return None
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier).snapshot()
    except ObjectNotFoundError:
        return None


def _iso(value) -> str | None:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, datetime) else str(value)


def new_order_payload(event: OrderPlaced) -> dict:
    return {
        "order_id": str(event.order_id),
        "client_id": str(event.client_id),
        "branch_id": str(event.branch_id),
        "status": event.status,
        "payment_method": event.payment_method,
        "subtotal": event.subtotal,
        "delivery_fee": event.delivery_fee,
        "total": event.total,
        "item_count": event.item_count,
        "created_at": _iso(event.placed_at),
        "timestamp": datetime.now(UTC).isoformat(),
    }


def status_update_payload(event: OrderStatusChanged) -> dict:
    courier_id = event.courier_id
    try:
        # The event is raised before dispatch assigns a courier
        courier_id = current_domain.repository_for(Order).get(event.order_id).courier_id or courier_id
    except ObjectNotFoundError:
        pass

    return {
        "order_id": str(event.order_id),
        "previous_status": event.previous_status,
        "new_status": event.new_status,
        "status": event.new_status,
        "changed_by": event.actor_role,
        "client": _snapshot(User, event.client_id),
        "address": _snapshot(Address, event.address_id),
        "courier": _snapshot(User, courier_id),
        "updated_at": _iso(event.changed_at),
        "timestamp": datetime.now(UTC).isoformat(),
    }


@ordering.event_handler(part_of=Order)
class OrderNotificationDispatcher:
    """Publishes order events to the real-time hub."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        room = branch_room(event.branch_id)
        try:
            delivered = get_hub().publish(room, NEW_ORDER, new_order_payload(event))
        except Exception as e:
            logger.error("New order notification failed", order_id=str(event.order_id), room=room, error=str(e))
            return
        logger.info("New order notification sent", order_id=str(event.order_id), room=room, delivered=delivered)

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        room = client_room(event.client_id)
        try:
            delivered = get_hub().publish(room, STATUS_UPDATE, status_update_payload(event))
        except Exception as e:
            logger.error(
                "Status update notification failed",
                order_id=str(event.order_id),
                room=room,
                new_status=event.new_status,
                error=str(e),
            )
            return
        logger.info(
            "Status update notification sent",
            order_id=str(event.order_id),
            room=room,
            new_status=event.new_status,
            delivered=delivered,
        )
