"""Demo data: one branch with a delivery zone, staff, couriers, a client and a small menu."""

import json

import structlog
from protean.utils.globals import current_domain

from ordering.catalogue.catalogue import Addon, AddonPrice, Category, CategoryPrice, Product, Size
from ordering.directory.address import Address
from ordering.directory.branch import Branch
from ordering.directory.user import Role, User
from ordering.dispatch.zone import DeliveryZone, ZoneAssignment

logger = structlog.get_logger(__name__)

PIZZA_PRICES = {"Personal": 99.0, "Medium": 149.0, "Large": 189.0}
CHEESE_PRICES = {"Personal": 15.0, "Medium": 20.0, "Large": 25.0}


def _add(aggregate):
    current_domain.repository_for(type(aggregate)).add(aggregate)
    return aggregate


def seed_demo() -> dict:
    """Create the demo records and return their ids by name."""
    branch = _add(Branch(name="Centro", address="Av. Juarez 100", phone="555-0100", lat=19.4326, lng=-99.1332))
    zone = _add(
        DeliveryZone(
            branch_id=branch.id,
            name="Centro",
            max_delivery_distance=5.0,
            center_lat=branch.lat,
            center_lng=branch.lng,
            polygon=json.dumps([]),
        )
    )

    staff = _add(User.create("Rosa", [Role.RESTAURANT], lastname="Mendez", branch_id=branch.id))
    admin = _add(User.create("Admin", [Role.ADMIN]))
    couriers = [
        _add(User.create(name, [Role.DELIVERY], lastname="Courier", branch_id=branch.id, phone=phone))
        for name, phone in (("Luis", "555-0201"), ("Ana", "555-0202"))
    ]
    for courier in couriers:
        _add(ZoneAssignment(courier_id=courier.id, zone_id=zone.id))

    client = _add(User.create("Carla", [Role.CLIENT], lastname="Ruiz", phone="555-0300"))
    address = _add(
        Address(
            client_id=client.id,
            address="Calle Madero 20",
            neighborhood="Centro",
            alias="Casa",
            lat=19.4340,
            lng=-99.1380,
        )
    )

    pizzas = _add(Category(name="Pizzas"))
    drinks = _add(Category(name="Drinks"))
    sizes = {name: _add(Size(name=name)) for name in PIZZA_PRICES}
    for name, price in PIZZA_PRICES.items():
        _add(CategoryPrice(category_id=pizzas.id, size_id=sizes[name].id, price=price))

    pepperoni = _add(Product(name="Pepperoni", category_id=pizzas.id))
    cola = _add(Product(name="Cola 600ml", category_id=drinks.id, price=25.0))
    cheese = _add(Addon(name="Extra cheese"))
    for name, price in CHEESE_PRICES.items():
        _add(AddonPrice(addon_id=cheese.id, size_id=sizes[name].id, price=price))

    ids = {
        "branch": str(branch.id),
        "zone": str(zone.id),
        "staff": str(staff.id),
        "admin": str(admin.id),
        "couriers": [str(c.id) for c in couriers],
        "client": str(client.id),
        "address": str(address.id),
        "products": {"pepperoni": str(pepperoni.id), "cola": str(cola.id)},
        "sizes": {name: str(size.id) for name, size in sizes.items()},
        "addons": {"extra_cheese": str(cheese.id)},
    }
    logger.info("Demo data seeded", branch_id=ids["branch"], zone_id=ids["zone"])
    return ids
