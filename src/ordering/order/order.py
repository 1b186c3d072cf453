"""Order aggregate: the core of the ordering domain.

An order is created once, already paid, with its lines priced on the server.
After that it only changes through status transitions and courier
assignment; orders are never deleted.

State machine (transitions are scoped by the actor's role)::

    RESTAURANT: PAID → PREPARING → DISPATCHED
                {PAID, PREPARING, DISPATCHED, EN_ROUTE} → CANCELLED
    DELIVERY:   DISPATCHED → EN_ROUTE → DELIVERED

DELIVERED and CANCELLED are terminal.
"""

import os
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

from protean import invariant
from protean.exceptions import ConfigurationError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.order.errors import CourierMismatchError
from ordering.order.events import CourierAssigned, OrderPlaced, OrderStatusChanged
from ordering.utils.money import format_amount, to_decimal, to_float


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PAID = "PAID"
    PREPARING = "PREPARING"
    DISPATCHED = "DISPATCHED"
    EN_ROUTE = "EN_ROUTE"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value) -> "OrderStatus":
        """Normalize an inbound status literal.

        Surrounding whitespace and case are ignored; anything that is not one
        of the canonical underscore literals is rejected.
        """
        if isinstance(value, cls):
            return value
        literal = str(value or "").strip().upper()
        try:
            return cls(literal)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError({"status": [f"Unknown status '{value}'. Expected one of: {allowed}"]})


class PaymentMethod(Enum):
    CASH = "CASH"
    CARD = "CARD"


class ActorRole(Enum):
    RESTAURANT = "RESTAURANT"
    DELIVERY = "DELIVERY"


_TRANSITIONS = {
    ActorRole.RESTAURANT: {
        OrderStatus.PAID: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
        OrderStatus.PREPARING: {OrderStatus.DISPATCHED, OrderStatus.CANCELLED},
        OrderStatus.DISPATCHED: {OrderStatus.CANCELLED},
        OrderStatus.EN_ROUTE: {OrderStatus.CANCELLED},
    },
    ActorRole.DELIVERY: {
        OrderStatus.DISPATCHED: {OrderStatus.EN_ROUTE},
        OrderStatus.EN_ROUTE: {OrderStatus.DELIVERED},
    },
}

ACTIVE_DELIVERY_STATUSES = (OrderStatus.DISPATCHED, OrderStatus.EN_ROUTE)


def allowed_transitions(role: ActorRole, current: OrderStatus) -> set[OrderStatus]:
    return _TRANSITIONS.get(role, {}).get(current, set())


def default_payment_method() -> str:
    value = os.environ.get("DEFAULT_PAYMENT_METHOD", PaymentMethod.CASH.value).strip().upper()
    allowed = [method.value for method in PaymentMethod]
    if value not in allowed:
        raise ConfigurationError(f"DEFAULT_PAYMENT_METHOD must be one of {', '.join(allowed)}, got '{value}'")
    return value


def default_delivery_fee() -> Decimal:
    raw = os.environ.get("DELIVERY_FEE", "0.00")
    try:
        fee = to_decimal(raw.strip())
    except InvalidOperation:
        raise ConfigurationError(f"DELIVERY_FEE must be a decimal amount, got '{raw}'")
    if not fee.is_finite() or fee < 0:
        raise ConfigurationError(f"DELIVERY_FEE must be a non-negative amount, got '{raw}'")
    return fee


# A bad environment stops the import instead of failing every order
default_payment_method()
default_delivery_fee()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """One priced line of an order. ``price_per_unit`` includes its addons."""

    product_id = Identifier(required=True)
    size_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    price_per_unit = Float(required=True, min_value=0.0)
    addons = HasMany("OrderItemAddon")

    @property
    def extended_price(self) -> Decimal:
        return to_decimal(self.price_per_unit) * self.quantity


@ordering.entity(part_of=OrderItem)
class OrderItemAddon:
    """An addon selected for a line, with the price it had at purchase time."""

    addon_id = Identifier(required=True)
    price_at_purchase = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    client_id = Identifier(required=True)
    address_id = Identifier(required=True)
    branch_id = Identifier(required=True)
    courier_id = Identifier()
    zone_id = Identifier()
    status = String(max_length=20, choices=OrderStatus, default=OrderStatus.PAID.value)
    payment_method = String(max_length=20, choices=PaymentMethod, default=PaymentMethod.CASH.value)
    subtotal = Float(default=0.0, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    items = HasMany(OrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_is_subtotal_plus_delivery_fee(self):
        expected = to_decimal(self.subtotal) + to_decimal(self.delivery_fee)
        if to_decimal(self.total) != expected:
            raise ValidationError({"total": ["Total must equal subtotal plus delivery fee"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, client_id, address_id, branch_id, quote, payment_method=None, delivery_fee=None):
        """Create an order from a price quote.

        ``quote`` is a ``PriceQuote`` produced by the pricing engine; the
        order's subtotal is the quote's subtotal, never a client value.
        """
        now = datetime.now(UTC)
        fee = to_decimal(delivery_fee if delivery_fee is not None else default_delivery_fee())
        subtotal = quote.subtotal
        total = subtotal + fee
        method = str(payment_method or default_payment_method()).strip().upper()

        order = cls(
            client_id=client_id,
            address_id=address_id,
            branch_id=branch_id,
            status=OrderStatus.PAID.value,
            payment_method=method,
            subtotal=to_float(subtotal),
            delivery_fee=to_float(fee),
            total=to_float(total),
            created_at=now,
            updated_at=now,
        )
        for line in quote.lines:
            item = OrderItem(
                product_id=line.product_id,
                size_id=line.size_id,
                quantity=line.quantity,
                price_per_unit=to_float(line.unit_price),
            )
            order.add_items(item)
            for addon in line.addons:
                item.add_addons(OrderItemAddon(addon_id=addon.addon_id, price_at_purchase=to_float(addon.price)))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                client_id=str(client_id),
                branch_id=str(branch_id),
                address_id=str(address_id),
                status=order.status,
                payment_method=method,
                subtotal=format_amount(subtotal),
                delivery_fee=format_amount(fee),
                total=format_amount(total),
                item_count=len(quote.lines),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def authorize(self, actor_role, actor_id: str) -> None:
        """Reject a delivery actor who is not the assigned courier.

        Runs before anything about the requested status is looked at, so
        another courier's order is always a 403 and never reveals its state.
        """
        if ActorRole(actor_role) is ActorRole.DELIVERY and str(self.courier_id or "") != str(actor_id):
            raise CourierMismatchError(str(self.id), actor_id)

    def change_status(self, new_status, actor_role, actor_id: str) -> None:
        """Apply ``new_status`` on behalf of an actor."""
        self.authorize(actor_role, actor_id)
        role = ActorRole(actor_role)
        target = OrderStatus.parse(new_status)
        current = self.current_status

        allowed = allowed_transitions(role, current)
        if target not in allowed:
            allowed_list = ", ".join(sorted(s.value for s in allowed)) or "none"
            raise ValidationError(
                {
                    "status": [
                        f"{role.value} cannot move an order from {current.value} to {target.value}. "
                        f"Allowed: {allowed_list}"
                    ]
                }
            )

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                client_id=str(self.client_id),
                branch_id=str(self.branch_id),
                address_id=str(self.address_id),
                courier_id=str(self.courier_id) if self.courier_id else None,
                previous_status=current.value,
                new_status=target.value,
                actor_id=str(actor_id),
                actor_role=role.value,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Courier assignment
    # -------------------------------------------------------------------
    def assign_courier(self, courier_id: str, zone_id: str | None = None) -> None:
        if self.current_status is not OrderStatus.DISPATCHED:
            raise ValidationError({"courier_id": ["A courier can only be assigned to a dispatched order"]})

        now = datetime.now(UTC)
        self.courier_id = courier_id
        self.zone_id = zone_id
        self.updated_at = now
        self.raise_(
            CourierAssigned(
                order_id=str(self.id),
                branch_id=str(self.branch_id),
                courier_id=str(courier_id),
                zone_id=str(zone_id) if zone_id else None,
                assigned_at=now,
            )
        )
