"""Shared BDD fixtures and step definitions for the order lifecycle."""

import pytest
from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then
from realtime import get_hub
from realtime.connections import RecordingConnection
from realtime.hub import client_room


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the exception raised by the last step."""
    return {"exc": None}


@pytest.fixture()
def couriers():
    return {}


@pytest.fixture()
def current():
    """Holds the id of the order the scenario is working on."""
    return {"order_id": None}


def order_of(current) -> Order:
    return current_domain.repository_for(Order).get(current["order_id"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a branch with a delivery zone")
def branch_with_zone(zone):
    return zone


@given("a menu with a variable-price pizza and a fixed-price drink")
def a_menu(menu):
    return menu


@given("a client with a delivery address")
def a_client(address):
    return address


@given(parsers.cfparse('courier "{name}" works the zone with {count:d} active orders'))
def courier_with_load(name, count, zone, make_courier, couriers, place_order, dispatch):
    courier = make_courier(name, zone)
    couriers[name] = courier
    for _ in range(count):
        dispatch(place_order())


@given(parsers.cfparse('courier "{name}" has no zone'))
def courier_without_zone(name, make_courier, couriers):
    couriers[name] = make_courier(name)


@given("the client listens for status updates", target_fixture="listener")
def client_listens(customer):
    connection = RecordingConnection()
    get_hub().subscribe(connection, client_room(customer.id))
    return connection


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(current, status):
    assert order_of(current).status == status


@then(parsers.cfparse('the order subtotal is "{amount}"'))
def order_subtotal_is(current, amount):
    assert f"{order_of(current).subtotal:.2f}" == amount


@then(parsers.cfparse('the order total is "{amount}"'))
def order_total_is(current, amount):
    assert f"{order_of(current).total:.2f}" == amount


@then("the order has no courier")
def order_has_no_courier(current):
    assert order_of(current).courier_id is None


@then(parsers.cfparse('the order is assigned to "{name}"'))
def order_assigned_to(current, couriers, name):
    assert order_of(current).courier_id == str(couriers[name].id)


@then(parsers.cfparse('the client was notified that the order is "{status}"'))
def client_notified(listener, current, status):
    updates = [
        m["data"] for m in listener.events("status_update") if m["data"]["order_id"] == current["order_id"]
    ]
    assert updates[-1]["new_status"] == status

