"""FastAPI routes for ordering: clients, restaurant staff, couriers and admins."""

import json

from fastapi import APIRouter, Depends
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.api.auth import require_admin, require_client, require_delivery, require_restaurant
from ordering.api.schemas import (
    AssignCourierRequest,
    PlaceOrderRequest,
    StatusResponse,
    UpdateStatusRequest,
    ZoneAssignmentResponse,
)
from ordering.api.serializers import serialize_order, serialize_orders
from ordering.directory.branch import Branch
from ordering.directory.user import User
from ordering.dispatch import get_assignment_service
from ordering.dispatch.management import AssignCourierToZone, RemoveCourierFromZone
from ordering.order.courier import AssignCourier
from ordering.order.order import ACTIVE_DELIVERY_STATUSES, ActorRole, Order, OrderStatus
from ordering.order.placement import PlaceOrder
from ordering.order.status import AdvanceOrderStatus
from ordering.utils.query import find_all


def _newest_first(**filters) -> list[Order]:
    return find_all(Order, order_by="-created_at", **filters)


# ---------------------------------------------------------------------------
# Client Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def place_order(body: PlaceOrderRequest, actor: User = Depends(require_client)) -> dict:
    command = PlaceOrder(
        client_id=str(actor.id),
        address_id=body.address_id,
        branch_id=body.branch_id,
        payment_method=body.payment_method,
        products=json.dumps([line.model_dump() for line in body.products]),
    )
    order_id = current_domain.process(command, asynchronous=False)
    return serialize_order(current_domain.repository_for(Order).get(order_id))


@order_router.get("/my-history")
async def order_history(actor: User = Depends(require_client)) -> list[dict]:
    return serialize_orders(_newest_first(client_id=str(actor.id)))


# ---------------------------------------------------------------------------
# Restaurant Router
# ---------------------------------------------------------------------------
restaurant_router = APIRouter(prefix="/restaurant", tags=["restaurant"])


def _staff_branch(actor: User) -> str:
    if not actor.branch_id:
        raise ValidationError({"branch_id": ["Restaurant staff must belong to a branch"]})
    return str(actor.branch_id)


@restaurant_router.get("/orders")
async def branch_orders(status: str | None = None, actor: User = Depends(require_restaurant)) -> list[dict]:
    filters = {"branch_id": _staff_branch(actor)}
    if status:
        filters["status"] = OrderStatus.parse(status).value
    return serialize_orders(_newest_first(**filters))


@restaurant_router.put("/orders/{order_id}/status")
async def update_branch_order_status(
    order_id: str, body: UpdateStatusRequest, actor: User = Depends(require_restaurant)
) -> dict:
    command = AdvanceOrderStatus(
        order_id=order_id,
        actor_id=str(actor.id),
        actor_role=ActorRole.RESTAURANT.value,
        status=body.status,
        branch_id=_staff_branch(actor),
        expected_status=body.expected_status,
    )
    current_domain.process(command, asynchronous=False)
    return serialize_order(current_domain.repository_for(Order).get(order_id))


@restaurant_router.put("/orders/{order_id}/courier")
async def assign_order_courier(
    order_id: str, body: AssignCourierRequest, actor: User = Depends(require_restaurant)
) -> dict:
    command = AssignCourier(order_id=order_id, courier_id=body.courier_id, branch_id=_staff_branch(actor))
    current_domain.process(command, asynchronous=False)
    return serialize_order(current_domain.repository_for(Order).get(order_id))


# ---------------------------------------------------------------------------
# Delivery Router
# ---------------------------------------------------------------------------
delivery_router = APIRouter(prefix="/delivery", tags=["delivery"])


@delivery_router.get("/my-orders")
async def courier_orders(actor: User = Depends(require_delivery)) -> list[dict]:
    orders = [
        order
        for status in ACTIVE_DELIVERY_STATUSES
        for order in find_all(Order, courier_id=str(actor.id), status=status.value)
    ]
    return serialize_orders(sorted(orders, key=lambda o: o.created_at))


@delivery_router.put("/orders/{order_id}/status")
async def update_delivery_order_status(
    order_id: str, body: UpdateStatusRequest, actor: User = Depends(require_delivery)
) -> dict:
    command = AdvanceOrderStatus(
        order_id=order_id,
        actor_id=str(actor.id),
        actor_role=ActorRole.DELIVERY.value,
        status=body.status,
        expected_status=body.expected_status,
    )
    current_domain.process(command, asynchronous=False)
    return serialize_order(current_domain.repository_for(Order).get(order_id))


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.put("/delivery-zones/{zone_id}/couriers/{courier_id}", response_model=ZoneAssignmentResponse)
async def assign_courier_to_zone(zone_id: str, courier_id: str) -> ZoneAssignmentResponse:
    assignment_id = current_domain.process(
        AssignCourierToZone(zone_id=zone_id, courier_id=courier_id), asynchronous=False
    )
    return ZoneAssignmentResponse(assignment_id=assignment_id, zone_id=zone_id, courier_id=courier_id)


@admin_router.delete("/delivery-zones/{zone_id}/couriers/{courier_id}", response_model=StatusResponse)
async def remove_courier_from_zone(zone_id: str, courier_id: str) -> StatusResponse:
    current_domain.process(RemoveCourierFromZone(zone_id=zone_id, courier_id=courier_id), asynchronous=False)
    return StatusResponse()


@admin_router.post("/delivery-zones/cache/clear", response_model=StatusResponse)
async def clear_zone_cache() -> StatusResponse:
    get_assignment_service().clear_cache()
    return StatusResponse(status="cleared")


@admin_router.get("/branches/{branch_id}/stats")
async def branch_stats(branch_id: str) -> dict:
    current_domain.repository_for(Branch).get(branch_id)
    return get_assignment_service().branch_stats(branch_id)
