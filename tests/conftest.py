from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from accounts.models import User
from orders import state
from orders.services import create_order
from products.models import Category, MenuItem
from realtime.bridge import set_bridge
from tables.models import Table


@pytest.fixture(autouse=True)
def in_process_feed(settings):
    settings.REDIS_URL = ""
    set_bridge(None)
    yield
    set_bridge(None)


# -------------------------------
# USERS
# -------------------------------

def _user(username, role):
    return User.objects.create_user(username=username, password="pass1234", role=role)


@pytest.fixture
def guest(db):
    return _user("guest", "GUEST")


@pytest.fixture
def waiter(db):
    return _user("waiter", "WAITER")


@pytest.fixture
def chef(db):
    return _user("chef", "CHEF")


@pytest.fixture
def admin_user(db):
    return _user("boss", "ADMIN")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(api_client):
    def _client(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _client


# -------------------------------
# MENU
# -------------------------------

@pytest.fixture
def menu(db):
    starters = Category.objects.create(name="Entrées", slug="entrees", display_order=1)
    mains = Category.objects.create(name="Plats", slug="plats", display_order=2)
    return {
        "nems": MenuItem.objects.create(
            code="e01", name_fr="Nems", category=starters, price=Decimal("5.50"),
        ),
        "pho": MenuItem.objects.create(
            code="p02", name_fr="Phở bò", category=mains, price=Decimal("12.00"),
        ),
    }


# -------------------------------
# FLOOR PLAN
# -------------------------------

@pytest.fixture
def empty_floor(db):
    # Drop the seeded floor plan so tests control every label.
    Table.objects.all().delete()


@pytest.fixture
def make_table(empty_floor):
    def _table(label, capacity=4, **extra):
        return Table.objects.create(label=label, capacity=capacity, **extra)
    return _table


# -------------------------------
# ORDERS
# -------------------------------

@pytest.fixture
def make_order(menu):
    def _order(order_type=state.DINE_IN, number_of_people=1, user=None, table_number=None, items=None):
        if items is None:
            items = [
                {"menu_item": menu["nems"], "quantity": 2},
                {"menu_item": menu["pho"], "quantity": 1, "notes": "sans coriandre"},
            ]
        return create_order(
            items,
            None,
            order_type,
            table_number,
            number_of_people=number_of_people,
            user=user,
        )
    return _order
