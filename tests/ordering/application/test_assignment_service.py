"""Application tests for courier selection and zone resolution."""

import json
from datetime import UTC, datetime, timedelta

from ordering.directory.address import Address
from ordering.directory.user import Role, User
from ordering.dispatch import get_assignment_service, reset_assignment_service, set_assignment_service
from ordering.dispatch.assignment import AssignmentCode, AssignmentService
from ordering.dispatch.zone import DeliveryZone, ZoneAssignment
from ordering.order.order import Order
from protean import current_domain


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _add(aggregate):
    current_domain.repository_for(type(aggregate)).add(aggregate)
    return aggregate


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestCourierSelection:
    def test_least_loaded_courier_wins(self, place_order, dispatch, zone, make_courier):
        luis = make_courier("Luis", zone)
        for _ in range(2):
            dispatch(place_order())
        ana = make_courier("Ana", zone)

        service = get_assignment_service()
        assert service.workload(str(luis.id)) == 2
        assert service.workload(str(ana.id)) == 0

        order_id = place_order()
        dispatch(order_id)

        order = _order(order_id)
        assert order.courier_id == str(ana.id)
        assert order.zone_id == str(zone.id)

    def test_en_route_orders_count_as_load(self, place_order, advance, dispatch, zone, make_courier):
        luis = make_courier("Luis", zone)
        order_id = place_order()
        dispatch(order_id)
        advance(order_id, "EN_ROUTE", courier=luis)

        assert get_assignment_service().workload(str(luis.id)) == 1

    def test_delivered_and_cancelled_orders_do_not_count(self, place_order, advance, dispatch, zone, make_courier):
        luis = make_courier("Luis", zone)
        delivered = place_order()
        dispatch(delivered)
        advance(delivered, "EN_ROUTE", courier=luis)
        advance(delivered, "DELIVERED", courier=luis)
        cancelled = place_order()
        dispatch(cancelled)
        advance(cancelled, "CANCELLED")

        assert get_assignment_service().workload(str(luis.id)) == 0

    def test_tie_goes_to_earliest_zone_member(self, place_order, dispatch, zone, make_courier):
        now = datetime.now(UTC)
        make_courier("Ana", zone, created_at=now)
        early = make_courier("Luis", zone, created_at=now - timedelta(days=1))

        order_id = place_order()
        dispatch(order_id)

        assert _order(order_id).courier_id == str(early.id)

    def test_candidates_are_sorted_by_load(self, place_order, dispatch, zone, make_courier):
        luis = make_courier("Luis", zone)
        dispatch(place_order())
        ana = make_courier("Ana", zone)

        candidates = get_assignment_service().candidates(str(zone.id))

        assert [c.courier_id for c in candidates] == [str(ana.id), str(luis.id)]
        assert [c.workload for c in candidates] == [0, 1]

    def test_inactive_zone_members_are_skipped(self, place_order, dispatch, zone, make_courier):
        make_courier("Luis", zone, is_active=False)
        order_id = place_order()
        dispatch(order_id)
        assert _order(order_id).courier_id is None

    def test_users_without_delivery_role_are_skipped(self, zone, staff):
        _add(ZoneAssignment(courier_id=staff.id, zone_id=zone.id))
        assert get_assignment_service().candidates(str(zone.id)) == []


class TestAssignmentResults:
    def test_success_carries_courier_and_zone(self, place_order, advance, zone, make_courier):
        order_id = place_order()
        advance(order_id, "PREPARING")
        advance(order_id, "DISPATCHED")
        luis = make_courier("Luis", zone)
        order = _order(order_id)

        result = get_assignment_service().assign(order, str(order.branch_id))

        assert result.success
        assert result.courier_id == str(luis.id)
        assert result.zone_id == str(zone.id)
        assert result.code is None
        assert "Luis" in result.message

    def test_no_couriers_available(self, place_order, dispatch, zone):
        order_id = place_order()
        dispatch(order_id)
        order = _order(order_id)

        result = get_assignment_service().assign(order, str(order.branch_id))

        assert not result.success
        assert result.code == "NO_COURIERS_AVAILABLE"
        assert order.courier_id is None

    def test_no_active_zone_is_out_of_coverage(self, place_order, dispatch, branch, make_courier):
        closed = _add(DeliveryZone(branch_id=branch.id, name="Closed", is_active=False))
        make_courier("Luis", closed)
        order_id = place_order()
        dispatch(order_id)
        order = _order(order_id)

        result = get_assignment_service().assign(order, str(order.branch_id))

        assert result.code == "OUT_OF_COVERAGE"
        assert order.courier_id is None

    def test_branch_mismatch_is_an_assignment_error(self, place_order, dispatch, zone, other_branch):
        order_id = place_order()
        dispatch(order_id)
        order = _order(order_id)

        result = get_assignment_service().assign(order, str(other_branch.id))

        assert result.code == "ASSIGNMENT_ERROR"
        assert order.courier_id is None

    def test_order_not_dispatched_is_an_assignment_error(self, place_order, zone, make_courier):
        make_courier("Luis", zone)
        order = _order(place_order())

        result = get_assignment_service().assign(order, str(order.branch_id))

        assert result.code == "ASSIGNMENT_ERROR"
        assert order.courier_id is None

    def test_codes_are_stable(self):
        assert {code.value for code in AssignmentCode} == {
            "OUT_OF_COVERAGE",
            "NO_COURIERS_AVAILABLE",
            "ASSIGNMENT_ERROR",
        }


class TestZoneResolution:
    def test_polygon_selects_the_covering_zone(self, branch, customer):
        _add(
            DeliveryZone(
                branch_id=branch.id,
                name="South",
                polygon=json.dumps([[19.30, -99.20], [19.30, -99.10], [19.40, -99.10], [19.40, -99.20]]),
            )
        )
        north = _add(
            DeliveryZone(
                branch_id=branch.id,
                name="North",
                polygon=json.dumps([[19.40, -99.20], [19.40, -99.10], [19.50, -99.10], [19.50, -99.20]]),
            )
        )
        address = Address(client_id=customer.id, address="Norte 1", lat=19.45, lng=-99.15)

        assert get_assignment_service().find_zone(str(branch.id), address).id == north.id

    def test_radius_excludes_far_addresses(self, branch, customer):
        _add(
            DeliveryZone(
                branch_id=branch.id,
                name="Centro",
                center_lat=19.4326,
                center_lng=-99.1332,
                max_delivery_distance=1.0,
            )
        )
        far = Address(client_id=customer.id, address="Lejos 1", lat=19.60, lng=-99.30)
        assert get_assignment_service().find_zone(str(branch.id), far) is None

    def test_zone_without_geometry_catches_uncovered_addresses(self, branch, customer):
        _add(
            DeliveryZone(
                branch_id=branch.id,
                name="Centro",
                center_lat=19.4326,
                center_lng=-99.1332,
                max_delivery_distance=1.0,
            )
        )
        catch_all = _add(DeliveryZone(branch_id=branch.id, name="Everywhere else"))
        far = Address(client_id=customer.id, address="Lejos 1", lat=19.60, lng=-99.30)

        assert get_assignment_service().find_zone(str(branch.id), far).id == catch_all.id

    def test_address_without_coordinates_uses_first_active_zone(self, branch, customer):
        now = datetime.now(UTC)
        first = _add(
            DeliveryZone(
                branch_id=branch.id,
                name="First",
                center_lat=0.0,
                center_lng=0.0,
                max_delivery_distance=1.0,
                created_at=now - timedelta(days=1),
            )
        )
        _add(DeliveryZone(branch_id=branch.id, name="Second", created_at=now))
        address = Address(client_id=customer.id, address="Sin coordenadas")

        assert get_assignment_service().find_zone(str(branch.id), address).id == first.id

    def test_out_of_coverage_leaves_dispatched_order_unassigned(self, place_order, dispatch, branch, make_courier):
        remote = _add(
            DeliveryZone(branch_id=branch.id, name="Remote", center_lat=0.0, center_lng=0.0, max_delivery_distance=1.0)
        )
        make_courier("Luis", remote)
        order_id = place_order()
        dispatch(order_id)

        order = _order(order_id)
        assert order.status == "DISPATCHED"
        assert order.courier_id is None


class TestZoneCacheInService:
    def test_active_zones_beyond_the_first_hundred(self, branch):
        start = datetime(2026, 1, 1, tzinfo=UTC)
        for n in range(100):
            opened = start + timedelta(seconds=n)
            _add(DeliveryZone(branch_id=branch.id, name=f"Closed {n}", is_active=False, created_at=opened))
        _add(DeliveryZone(branch_id=branch.id, name="Open", created_at=start + timedelta(seconds=100)))

        service = AssignmentService(cache_ttl=30, clock=FakeClock())

        assert [z.name for z in service.active_zones(str(branch.id))] == ["Open"]

    def test_zones_are_cached_until_cleared(self, branch):
        service = AssignmentService(cache_ttl=30, clock=FakeClock())
        assert service.active_zones(str(branch.id)) == []

        _add(DeliveryZone(branch_id=branch.id, name="New"))
        assert service.active_zones(str(branch.id)) == []

        service.clear_cache()
        assert [z.name for z in service.active_zones(str(branch.id))] == ["New"]

    def test_zones_reload_after_ttl(self, branch):
        clock = FakeClock()
        service = AssignmentService(cache_ttl=30, clock=clock)
        service.active_zones(str(branch.id))
        _add(DeliveryZone(branch_id=branch.id, name="New"))

        clock.now += 31
        assert [z.name for z in service.active_zones(str(branch.id))] == ["New"]

    def test_cached_zone_is_used_by_dispatch(self, place_order, dispatch, branch, make_courier):
        service = AssignmentService(cache_ttl=30, clock=FakeClock())
        set_assignment_service(service)
        service.active_zones(str(branch.id))

        zone = _add(DeliveryZone(branch_id=branch.id, name="Late"))
        make_courier("Luis", zone)
        order_id = place_order()
        dispatch(order_id)
        assert _order(order_id).courier_id is None

        service.clear_cache()
        second = place_order()
        dispatch(second)
        assert _order(second).courier_id is not None

    def test_ttl_from_environment(self, monkeypatch):
        monkeypatch.setenv("ZONE_CACHE_TTL_SECONDS", "5")
        assert AssignmentService().cache.ttl == 5.0


class TestBranchReporting:
    def test_couriers_for_branch(self, place_order, dispatch, zone, make_courier):
        luis = make_courier("Luis", zone)
        make_courier("Ana")
        dispatch(place_order())

        couriers = {c["name"]: c for c in get_assignment_service().couriers_for_branch(str(zone.branch_id))}

        assert set(couriers) == {"Luis", "Ana"}
        assert couriers["Luis"]["id"] == str(luis.id)
        assert couriers["Luis"]["zones"] == ["Centro"]
        assert couriers["Luis"]["workload"] == 1
        assert couriers["Ana"]["zones"] == []
        assert couriers["Ana"]["workload"] == 0

    def test_branch_stats_counts_orders_by_status(self, place_order, advance, branch):
        place_order()
        cancelled = place_order()
        advance(cancelled, "CANCELLED")

        stats = get_assignment_service().branch_stats(str(branch.id))

        assert stats["branch_id"] == str(branch.id)
        assert stats["total_orders"] == 2
        assert stats["orders_by_status"]["PAID"] == 1
        assert stats["orders_by_status"]["CANCELLED"] == 1
        assert stats["orders_by_status"]["DELIVERED"] == 0
        assert stats["couriers"] == []

    def test_workload_counts_every_active_order(self, customer, address, branch, make_courier):
        luis = make_courier("Luis")
        repo = current_domain.repository_for(Order)
        for status in ["DISPATCHED"] * 101 + ["EN_ROUTE"] * 3:
            repo.add(
                Order(
                    client_id=customer.id,
                    address_id=address.id,
                    branch_id=branch.id,
                    status=status,
                    courier_id=luis.id,
                )
            )

        assert get_assignment_service().workload(str(luis.id)) == 104


class TestServiceRegistry:
    def test_singleton(self):
        reset_assignment_service()
        assert get_assignment_service() is get_assignment_service()

    def test_replaced_service_is_returned(self):
        service = AssignmentService(cache_ttl=1)
        set_assignment_service(service)
        assert get_assignment_service() is service

    def test_couriers_from_other_branches_are_not_listed(self, zone, other_branch):
        outsider = _add(User.create("Marta", [Role.DELIVERY], branch_id=other_branch.id))
        listed = [c["id"] for c in get_assignment_service().couriers_for_branch(str(zone.branch_id))]
        assert str(outsider.id) not in listed
