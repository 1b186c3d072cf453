"""Manual courier assignment: command and handler.

Used by branch staff when automatic assignment left a dispatched order
without a courier, or to hand the order to someone else.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.directory.user import Role, User
from ordering.dispatch.zone import DeliveryZone, ZoneAssignment
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.utils.query import find_all

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class AssignCourier:
    order_id = Identifier(required=True)
    courier_id = Identifier(required=True)
    branch_id = Identifier()


@ordering.command_handler(part_of=Order)
class CourierAssignmentHandler:
    @handle(AssignCourier)
    def assign_courier(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if command.branch_id and str(order.branch_id) != str(command.branch_id):
            raise ObjectNotFoundError(
                {"_entity": f"Order {command.order_id} not found in branch {command.branch_id}"}
            )

        try:
            courier = current_domain.repository_for(User).get(command.courier_id)
        except ObjectNotFoundError:
            raise ValidationError({"courier_id": [f"Courier {command.courier_id} not found"]})
        if not courier.has_role(Role.DELIVERY):
            raise ValidationError({"courier_id": ["User does not have the delivery role"]})

        zone_id = self._branch_zone_of(str(courier.id), str(order.branch_id))
        if zone_id is None:
            raise ValidationError({"courier_id": ["Courier is not active in any zone of the order's branch"]})

        order.assign_courier(str(courier.id), zone_id)
        repo.add(order)
        logger.info("Courier assigned manually", order_id=str(order.id), courier_id=str(courier.id), zone_id=zone_id)
        return str(order.id)

    def _branch_zone_of(self, courier_id: str, branch_id: str) -> str | None:
        assignments = find_all(ZoneAssignment, order_by="created_at", courier_id=courier_id, is_active=True)
        zones = current_domain.repository_for(DeliveryZone)
        for assignment in assignments:
            try:
                zone = zones.get(assignment.zone_id)
            except ObjectNotFoundError:
                continue
            if str(zone.branch_id) == branch_id and zone.is_active:
                return str(zone.id)
        return None
