"""Order placement: command and handler.

The handler prices every line before touching the repository, so a single
bad line rejects the whole order. The order, its items and their addon
selections are persisted together in the handler's unit of work.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.directory.address import Address
from ordering.directory.branch import Branch
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.pricing.catalogue import RepositoryCatalogue
from ordering.pricing.engine import LineRequest, PricingEngine

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    """Place a paid order for delivery to one of the client's addresses."""

    client_id = Identifier(required=True)
    address_id = Identifier(required=True)
    branch_id = Identifier(required=True)
    payment_method = String(max_length=20)
    products = Text(required=True)  # JSON list of {product_id, quantity, size_id, addon_ids}


def parse_products(raw) -> list[LineRequest]:
    try:
        lines = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError:
        raise ValidationError({"products": ["Products must be a JSON list"]})
    if not isinstance(lines, list) or not lines:
        raise ValidationError({"products": ["At least one product is required"]})
    return [LineRequest.from_payload(position, line) for position, line in enumerate(lines, start=1)]


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        requests = parse_products(command.products)

        try:
            address = current_domain.repository_for(Address).get(command.address_id)
        except ObjectNotFoundError:
            raise ValidationError({"address_id": [f"Address {command.address_id} not found"]})
        if str(address.client_id) != str(command.client_id):
            raise ValidationError({"address_id": ["Address does not belong to the client"]})

        try:
            current_domain.repository_for(Branch).get(command.branch_id)
        except ObjectNotFoundError:
            raise ValidationError({"branch_id": [f"Branch {command.branch_id} not found"]})

        quote = PricingEngine(RepositoryCatalogue()).quote(requests)

        order = Order.place(
            client_id=command.client_id,
            address_id=command.address_id,
            branch_id=command.branch_id,
            quote=quote,
            payment_method=command.payment_method,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            client_id=str(command.client_id),
            branch_id=str(command.branch_id),
            line_count=len(quote.lines),
            total=str(quote.subtotal),
        )
        return str(order.id)
