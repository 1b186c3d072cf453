"""Shared fixtures for ordering tests: a small menu, a branch with staff and couriers, a client."""

import json
from types import SimpleNamespace

import pytest
from ordering.catalogue.catalogue import Addon, AddonPrice, Category, CategoryPrice, Product, Size
from ordering.directory.address import Address
from ordering.directory.branch import Branch
from ordering.directory.user import Role, User
from ordering.dispatch.zone import DeliveryZone, ZoneAssignment
from ordering.order.placement import PlaceOrder
from ordering.order.status import AdvanceOrderStatus
from protean import current_domain
from realtime import set_hub
from realtime.connections import RecordingConnection
from realtime.hub import NotificationHub, branch_room, client_room


def add(aggregate):
    current_domain.repository_for(type(aggregate)).add(aggregate)
    return aggregate


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
@pytest.fixture()
def menu():
    pizzas = add(Category(name="Pizzas"))
    drinks = add(Category(name="Drinks"))
    large = add(Size(name="Large"))
    medium = add(Size(name="Medium"))
    add(CategoryPrice(category_id=pizzas.id, size_id=large.id, price=189.0))
    add(CategoryPrice(category_id=pizzas.id, size_id=medium.id, price=149.0))

    pepperoni = add(Product(name="Pepperoni", category_id=pizzas.id))
    cola = add(Product(name="Cola", category_id=drinks.id, price=25.0))
    retired = add(Product(name="Hawaiian", category_id=pizzas.id, is_available=False))

    cheese = add(Addon(name="Extra cheese"))
    add(AddonPrice(addon_id=cheese.id, size_id=large.id, price=25.0))
    add(AddonPrice(addon_id=cheese.id, size_id=medium.id, price=20.0))
    olives = add(Addon(name="Olives"))
    add(AddonPrice(addon_id=olives.id, size_id=medium.id, price=10.0))

    return SimpleNamespace(
        pizzas=pizzas,
        drinks=drinks,
        large=large,
        medium=medium,
        pepperoni=pepperoni,
        cola=cola,
        retired=retired,
        cheese=cheese,
        olives=olives,
    )


@pytest.fixture()
def pizza_and_drink(menu):
    """One large pepperoni with extra cheese and one cola: 189 + 25 + 25 = 239."""
    return [
        {
            "product_id": str(menu.pepperoni.id),
            "size_id": str(menu.large.id),
            "quantity": 1,
            "addon_ids": [str(menu.cheese.id)],
        },
        {"product_id": str(menu.cola.id), "quantity": 1},
    ]


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------
@pytest.fixture()
def branch():
    return add(Branch(name="Centro", address="Av. Juarez 100", phone="555-0100", lat=19.4326, lng=-99.1332))


@pytest.fixture()
def other_branch():
    return add(Branch(name="Norte", address="Av. Norte 5", phone="555-0900", lat=19.5000, lng=-99.1300))


@pytest.fixture()
def zone(branch):
    return add(DeliveryZone(branch_id=branch.id, name="Centro"))


@pytest.fixture()
def customer():
    return add(User.create("Carla", [Role.CLIENT], lastname="Ruiz", phone="555-0300"))


@pytest.fixture()
def address(customer):
    return add(
        Address(
            client_id=customer.id,
            address="Calle Madero 20",
            neighborhood="Centro",
            alias="Casa",
            lat=19.4340,
            lng=-99.1380,
        )
    )


@pytest.fixture()
def staff(branch):
    return add(User.create("Rosa", [Role.RESTAURANT], lastname="Mendez", branch_id=branch.id))


@pytest.fixture()
def admin():
    return add(User.create("Admin", [Role.ADMIN]))


@pytest.fixture()
def make_courier(branch):
    def _make(name, zone=None, **assignment_fields):
        courier = add(User.create(name, [Role.DELIVERY], lastname="Courier", branch_id=branch.id))
        if zone is not None:
            add(ZoneAssignment(courier_id=courier.id, zone_id=zone.id, **assignment_fields))
        return courier

    return _make


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@pytest.fixture()
def hub():
    hub = NotificationHub()
    set_hub(hub)
    return hub


@pytest.fixture()
def branch_listener(hub, branch):
    connection = RecordingConnection()
    hub.subscribe(connection, branch_room(branch.id))
    return connection


@pytest.fixture()
def client_listener(hub, customer):
    connection = RecordingConnection()
    hub.subscribe(connection, client_room(customer.id))
    return connection


# ---------------------------------------------------------------------------
# Order flow helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def place_order(customer, address, branch, pizza_and_drink):
    def _place(products=None, **overrides):
        fields = {
            "client_id": str(customer.id),
            "address_id": str(address.id),
            "branch_id": str(branch.id),
            "products": json.dumps(products if products is not None else pizza_and_drink),
        }
        fields.update(overrides)
        return current_domain.process(PlaceOrder(**fields), asynchronous=False)

    return _place


@pytest.fixture()
def advance(staff, branch):
    """Move an order as branch staff, or as a courier when ``courier`` is given."""

    def _advance(order_id, status, courier=None, **overrides):
        if courier is None:
            fields = {
                "actor_id": str(staff.id),
                "actor_role": "RESTAURANT",
                "branch_id": str(branch.id),
            }
        else:
            fields = {"actor_id": str(courier.id), "actor_role": "DELIVERY"}
        fields.update(overrides)
        return current_domain.process(
            AdvanceOrderStatus(order_id=order_id, status=status, **fields),
            asynchronous=False,
        )

    return _advance


@pytest.fixture()
def dispatch(advance):
    def _dispatch(order_id):
        advance(order_id, "PREPARING")
        advance(order_id, "DISPATCHED")

    return _dispatch
