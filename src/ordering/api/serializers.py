"""Order representations returned by the HTTP API.

Related rows are looked up once per call and reused across orders.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalogue.catalogue import Addon, Product, Size
from ordering.directory.address import Address
from ordering.directory.branch import Branch
from ordering.directory.user import User
from ordering.order.order import Order
from ordering.utils.money import format_amount


class _Lookup:
    def __init__(self):
        self._seen: dict[tuple, object] = {}

    def get(self, aggregate_cls, identifier):
        if not identifier:
            return None
        key = (aggregate_cls.__name__, str(identifier))
        if key not in self._seen:
            try:
                self._seen[key] = current_domain.repository_for(aggregate_cls).get(identifier)
            except ObjectNotFoundError:
                self._seen[key] = None
        return self._seen[key]

    def snapshot(self, aggregate_cls, identifier) -> dict | None:
        found = self.get(aggregate_cls, identifier)
        return found.snapshot() if found is not None else None

    def named(self, aggregate_cls, identifier) -> dict | None:
        found = self.get(aggregate_cls, identifier)
        if found is None:
            return {"id": str(identifier), "name": None} if identifier else None
        return {"id": str(found.id), "name": found.name}


def _iso(value):
    return value.isoformat() if value is not None else None


def _serialize_item(item, lookup: _Lookup) -> dict:
    return {
        "id": str(item.id),
        "product": lookup.named(Product, item.product_id),
        "size": lookup.named(Size, item.size_id),
        "quantity": item.quantity,
        "price_per_unit": format_amount(item.price_per_unit),
        "extended_price": format_amount(item.extended_price),
        "addons": [
            {
                "id": str(selection.id),
                "addon": lookup.named(Addon, selection.addon_id),
                "price_at_purchase": format_amount(selection.price_at_purchase),
            }
            for selection in (item.addons or [])
        ],
    }


def serialize_order(order: Order, lookup: _Lookup | None = None) -> dict:
    lookup = lookup or _Lookup()
    return {
        "id": str(order.id),
        "status": order.status,
        "payment_method": order.payment_method,
        "subtotal": format_amount(order.subtotal),
        "delivery_fee": format_amount(order.delivery_fee),
        "total": format_amount(order.total),
        "client": lookup.snapshot(User, order.client_id),
        "address": lookup.snapshot(Address, order.address_id),
        "branch": lookup.snapshot(Branch, order.branch_id),
        "courier": lookup.snapshot(User, order.courier_id),
        "zone_id": str(order.zone_id) if order.zone_id else None,
        "items": [_serialize_item(item, lookup) for item in (order.items or [])],
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


def serialize_orders(orders: list[Order]) -> list[dict]:
    lookup = _Lookup()
    return [serialize_order(order, lookup) for order in orders]
