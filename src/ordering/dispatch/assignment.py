"""Courier assignment for dispatched orders.

Picks a delivery zone of the order's branch, then the least loaded courier
staffed on that zone. A courier's workload is the number of orders assigned
to them that are DISPATCHED or EN_ROUTE.

The service never raises into the caller: every failure comes back as an
``AssignmentResult`` with a stable ``code``, so a dispatch transition can
commit even when no courier could be attached.
"""

import os
import time
from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.directory.user import Role, User
from ordering.dispatch.geometry import zone_contains
from ordering.dispatch.zone import DeliveryZone, ZoneAssignment
from ordering.order.order import ACTIVE_DELIVERY_STATUSES, Order, OrderStatus
from ordering.utils.query import find_all

logger = structlog.get_logger(__name__)

DEFAULT_ZONE_CACHE_TTL = 30.0


class AssignmentCode(Enum):
    OUT_OF_COVERAGE = "OUT_OF_COVERAGE"
    NO_COURIERS_AVAILABLE = "NO_COURIERS_AVAILABLE"
    ASSIGNMENT_ERROR = "ASSIGNMENT_ERROR"


@dataclass(frozen=True)
class AssignmentResult:
    success: bool
    courier_id: str | None = None
    zone_id: str | None = None
    code: str | None = None
    message: str = ""

    @classmethod
    def assigned(cls, courier_id: str, zone_id: str, message: str = "") -> "AssignmentResult":
        return cls(success=True, courier_id=courier_id, zone_id=zone_id, message=message)

    @classmethod
    def failed(cls, code: AssignmentCode, message: str) -> "AssignmentResult":
        return cls(success=False, code=code.value, message=message)


@dataclass(frozen=True)
class Candidate:
    courier_id: str
    name: str
    workload: int
    assigned_at: object = field(compare=False)


class ZoneCache:
    """Per-branch list of active zones, kept for ``ttl`` seconds."""

    def __init__(self, ttl: float, clock=time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[str, tuple[float, list]] = {}

    def get(self, branch_id: str, loader) -> list:
        now = self.clock()
        entry = self._entries.get(branch_id)
        if entry is not None and now - entry[0] < self.ttl:
            return entry[1]
        zones = loader(branch_id)
        self._entries[branch_id] = (now, zones)
        return zones

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def zone_cache_ttl() -> float:
    return float(os.environ.get("ZONE_CACHE_TTL_SECONDS", DEFAULT_ZONE_CACHE_TTL))


class AssignmentService:
    def __init__(self, cache_ttl: float | None = None, clock=time.monotonic):
        self.cache = ZoneCache(zone_cache_ttl() if cache_ttl is None else cache_ttl, clock=clock)

    # -------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------
    def assign(self, order: Order, branch_id: str, address=None) -> AssignmentResult:
        """Attach the least loaded courier of a matching zone to ``order``.

        The order is mutated in place and must be persisted by the caller,
        which keeps the courier write inside the caller's unit of work.
        """
        try:
            if str(order.branch_id) != str(branch_id):
                raise ValueError(f"Order {order.id} does not belong to branch {branch_id}")

            zone = self.find_zone(str(branch_id), address)
            if zone is None:
                logger.warning("No delivery zone covers the order address", order_id=str(order.id), branch_id=str(branch_id))
                return AssignmentResult.failed(
                    AssignmentCode.OUT_OF_COVERAGE, "Delivery address is outside every zone of the branch"
                )

            candidates = self.candidates(str(zone.id))
            if not candidates:
                logger.warning("No couriers available in zone", order_id=str(order.id), zone_id=str(zone.id))
                return AssignmentResult.failed(
                    AssignmentCode.NO_COURIERS_AVAILABLE, f"No couriers available in zone {zone.name}"
                )

            selected = candidates[0]
            order.assign_courier(selected.courier_id, str(zone.id))
        except Exception as exc:
            logger.error("Courier assignment failed", order_id=str(order.id), branch_id=str(branch_id), error=str(exc))
            return AssignmentResult.failed(AssignmentCode.ASSIGNMENT_ERROR, str(exc))

        logger.info(
            "Courier assigned",
            order_id=str(order.id),
            courier_id=selected.courier_id,
            zone_id=str(zone.id),
            workload=selected.workload,
        )
        return AssignmentResult.assigned(
            selected.courier_id, str(zone.id), f"Order assigned to {selected.name} in zone {zone.name}"
        )

    # -------------------------------------------------------------------
    # Zones
    # -------------------------------------------------------------------
    def active_zones(self, branch_id: str) -> list[DeliveryZone]:
        return self.cache.get(branch_id, _load_active_zones)

    def find_zone(self, branch_id: str, address=None) -> DeliveryZone | None:
        """Return the zone that covers ``address``.

        Zones with a polygon or a centre and radius are matched geometrically.
        A zone without geometry matches any address, and an address without
        coordinates goes to the first active zone.
        """
        zones = self.active_zones(branch_id)
        if not zones:
            return None
        if address is None or not address.has_coordinates:
            return zones[0]

        fallback = None
        for zone in zones:
            covered = zone_contains(zone, address.lat, address.lng)
            if covered:
                return zone
            if covered is None and fallback is None:
                fallback = zone
        return fallback

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Zone cache cleared")

    # -------------------------------------------------------------------
    # Couriers
    # -------------------------------------------------------------------
    def workload(self, courier_id: str) -> int:
        return sum(
            len(find_all(Order, courier_id=courier_id, status=status.value))
            for status in ACTIVE_DELIVERY_STATUSES
        )

    def candidates(self, zone_id: str) -> list[Candidate]:
        """Couriers active in the zone, least loaded first.

        Ties go to the courier who joined the zone first, then to the lower id.
        """
        assignments = find_all(ZoneAssignment, zone_id=zone_id, is_active=True)
        users = current_domain.repository_for(User)
        candidates = []
        for assignment in assignments:
            try:
                user = users.get(assignment.courier_id)
            except ObjectNotFoundError:
                continue
            if not user.has_role(Role.DELIVERY):
                continue
            candidates.append(
                Candidate(
                    courier_id=str(user.id),
                    name=user.name,
                    workload=self.workload(str(user.id)),
                    assigned_at=assignment.created_at,
                )
            )
        return sorted(candidates, key=lambda c: (c.workload, c.assigned_at, c.courier_id))

    def couriers_for_branch(self, branch_id: str) -> list[dict]:
        zones = _load_zones(branch_id)
        zone_names = {str(zone.id): zone.name for zone in zones}
        assignments = find_all(ZoneAssignment, is_active=True)

        couriers = []
        staff = find_all(User, branch_id=branch_id)
        for user in staff:
            if not user.has_role(Role.DELIVERY):
                continue
            courier_zones = sorted(
                zone_names[str(a.zone_id)]
                for a in assignments
                if str(a.courier_id) == str(user.id) and str(a.zone_id) in zone_names
            )
            couriers.append(
                {
                    "id": str(user.id),
                    "name": user.name,
                    "lastname": user.lastname or "",
                    "zones": courier_zones,
                    "workload": self.workload(str(user.id)),
                }
            )
        return sorted(couriers, key=lambda c: c["id"])

    def branch_stats(self, branch_id: str) -> dict:
        orders = find_all(Order, branch_id=branch_id)
        by_status = {status.value: 0 for status in OrderStatus}
        for order in orders:
            by_status[order.status] += 1
        return {
            "branch_id": str(branch_id),
            "total_orders": len(orders),
            "orders_by_status": by_status,
            "couriers": self.couriers_for_branch(branch_id),
        }


def _load_zones(branch_id: str) -> list[DeliveryZone]:
    return find_all(DeliveryZone, order_by=["created_at", "id"], branch_id=branch_id)


def _load_active_zones(branch_id: str) -> list[DeliveryZone]:
    return [zone for zone in _load_zones(branch_id) if zone.is_active]
