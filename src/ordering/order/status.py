"""Order status transitions: command and handler.

Entering DISPATCHED runs courier assignment inside the same unit of work.
An assignment failure is logged and the transition still commits; staff can
attach a courier by hand afterwards.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.directory.address import Address
from ordering.dispatch import get_assignment_service
from ordering.domain import ordering
from ordering.order.errors import OrderStatusConflictError
from ordering.order.order import ActorRole, Order, OrderStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class AdvanceOrderStatus:
    """Move an order to ``status`` on behalf of a restaurant or delivery actor.

    ``branch_id`` scopes restaurant actors to their own branch.
    ``expected_status``, when given, must match the stored status or the
    command fails with a conflict.
    """

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=ActorRole)
    status = String(required=True, max_length=20)
    branch_id = Identifier()
    expected_status = String(max_length=20)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance_order_status(self, command):
        if command.actor_role == ActorRole.RESTAURANT.value and not command.branch_id:
            raise ValidationError({"branch_id": ["Restaurant staff must belong to a branch"]})

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if command.branch_id and str(order.branch_id) != str(command.branch_id):
            raise ObjectNotFoundError(
                {"_entity": f"Order {command.order_id} not found in branch {command.branch_id}"}
            )

        order.authorize(command.actor_role, command.actor_id)

        if command.expected_status:
            expected = OrderStatus.parse(command.expected_status)
            if order.current_status is not expected:
                raise OrderStatusConflictError(str(order.id), expected.value, order.status)

        previous = order.status
        order.change_status(command.status, command.actor_role, command.actor_id)

        if order.current_status is OrderStatus.DISPATCHED:
            self._assign_courier(order)

        repo.add(order)
        logger.info(
            "Order status changed",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
            actor_id=str(command.actor_id),
            actor_role=command.actor_role,
        )
        return str(order.id)

    def _assign_courier(self, order: Order) -> None:
        try:
            address = current_domain.repository_for(Address).get(order.address_id)
        except ObjectNotFoundError:
            address = None

        result = get_assignment_service().assign(order, str(order.branch_id), address)
        if not result.success:
            logger.warning(
                "Order dispatched without a courier",
                order_id=str(order.id),
                code=result.code,
                reason=result.message,
            )
