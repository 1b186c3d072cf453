"""Zone staffing: commands that put couriers on and off delivery zones."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.directory.user import Role, User
from ordering.dispatch.zone import DeliveryZone, ZoneAssignment
from ordering.domain import ordering


@ordering.command(part_of="ZoneAssignment")
class AssignCourierToZone:
    zone_id = Identifier(required=True)
    courier_id = Identifier(required=True)


@ordering.command(part_of="ZoneAssignment")
class RemoveCourierFromZone:
    zone_id = Identifier(required=True)
    courier_id = Identifier(required=True)


def _find_assignment(zone_id: str, courier_id: str) -> ZoneAssignment | None:
    rows = (
        current_domain.repository_for(ZoneAssignment)
        ._dao.query.filter(zone_id=zone_id, courier_id=courier_id)
        .all()
        .items
    )
    return rows[0] if rows else None


@ordering.command_handler(part_of=ZoneAssignment)
class ZoneStaffingHandler:
    @handle(AssignCourierToZone)
    def assign_courier_to_zone(self, command):
        """Upsert an active assignment; re-activates a previous one if present."""
        current_domain.repository_for(DeliveryZone).get(command.zone_id)
        courier = current_domain.repository_for(User).get(command.courier_id)
        if not courier.has_role(Role.DELIVERY):
            raise ValidationError({"courier_id": ["User does not have the delivery role"]})

        repo = current_domain.repository_for(ZoneAssignment)
        assignment = _find_assignment(command.zone_id, command.courier_id)
        if assignment is None:
            assignment = ZoneAssignment(zone_id=command.zone_id, courier_id=command.courier_id)
        else:
            assignment.activate()
        repo.add(assignment)
        return str(assignment.id)

    @handle(RemoveCourierFromZone)
    def remove_courier_from_zone(self, command):
        assignment = _find_assignment(command.zone_id, command.courier_id)
        if assignment is None:
            raise ValidationError({"zone_assignment": ["Courier is not assigned to this zone"]})
        assignment.deactivate()
        current_domain.repository_for(ZoneAssignment).add(assignment)
