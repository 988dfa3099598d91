import pytest

from orders import state
from orders.models import Order
from orders.services import change_status, fetch_order

pytestmark = pytest.mark.django_db

MISSING = "00000000-0000-0000-0000-000000000000"


def cart(menu):
    return [
        {"menu_item": str(menu["nems"].pk), "quantity": 2},
        {"menu_item": str(menu["pho"].pk), "quantity": 0},
    ]


# =====================================
# CREATE
# =====================================

def test_guest_submits_order(api_client, menu):
    response = api_client.post(
        "/api/orders/create/",
        {"order_type": state.DINE_IN, "payment_method": "CARD", "items": cart(menu)},
        format="json",
    )

    assert response.status_code == 201
    assert response.data["status"] == state.PENDING
    assert response.data["table_number"] == state.UNASSIGNED_TABLE
    assert len(response.data["items"]) == 1
    assert response.data["order_ref"].startswith("#")


def test_empty_cart_is_rejected(api_client, menu):
    response = api_client.post(
        "/api/orders/create/",
        {"order_type": state.DINE_IN, "items": [{"menu_item": str(menu["nems"].pk), "quantity": 0}]},
        format="json",
    )
    assert response.status_code == 400
    assert not Order.objects.exists()


def test_waiter_opens_order_at_a_table(client_for, waiter, menu, make_table):
    make_table("3", capacity=4)
    response = client_for(waiter).post(
        "/api/orders/create/",
        {"order_type": state.DINE_IN, "table_number": "3", "number_of_people": 2, "items": cart(menu)},
        format="json",
    )

    assert response.status_code == 201
    assert response.data["status"] == state.VALIDATED
    assert response.data["table_number"] == "3"
    assert response.data["payment_method"] == "CASH"


def test_active_order_for_signed_in_guest(client_for, guest, make_order):
    client = client_for(guest)
    assert client.get("/api/orders/active/").status_code == 404

    order = make_order(user=guest)
    response = client.get("/api/orders/active/")
    assert response.status_code == 200
    assert response.data["id"] == str(order.pk)


def test_anonymous_guest_finds_order_by_session_header(api_client, menu):
    headers = {"HTTP_X_SESSION_ID": "browser-1234"}
    assert api_client.get("/api/orders/active/", **headers).status_code == 404

    created = api_client.post(
        "/api/orders/create/",
        {"order_type": state.DINE_IN, "items": cart(menu)},
        format="json",
        **headers,
    )
    assert created.status_code == 201
    assert created["X-Session-Id"] == "browser-1234"

    response = api_client.get("/api/orders/active/", **headers)
    assert response.status_code == 200
    assert response.data["id"] == created.data["id"]

    other = api_client.get("/api/orders/active/", HTTP_X_SESSION_ID="browser-9999")
    assert other.status_code == 404


def test_anonymous_guest_finds_order_by_cookie_session(api_client, menu):
    created = api_client.post(
        "/api/orders/create/",
        {"order_type": state.TAKEAWAY, "items": cart(menu)},
        format="json",
    )
    assert created.status_code == 201
    assert Order.objects.get(pk=created.data["id"]).guest_session == created["X-Session-Id"]

    response = api_client.get("/api/orders/active/")
    assert response.status_code == 200
    assert response.data["id"] == created.data["id"]


# =====================================
# QUEUES
# =====================================

def test_waiter_queue_lists_unassigned_dine_in(client_for, waiter, make_order, make_table):
    table = make_table("5")
    waiting = make_order()
    seated = make_order(user=waiter, table_number="5")
    make_order(order_type=state.TAKEAWAY)

    response = client_for(waiter).get("/api/orders/queue/")

    assert response.status_code == 200
    assert [row["id"] for row in response.data] == [str(waiting.pk)]
    assert table.label == seated.table_number


def test_kitchen_queue_is_fifo(client_for, chef, waiter, make_order):
    first = make_order(user=waiter)
    second = make_order(user=waiter)
    make_order()

    response = client_for(chef).get("/api/orders/kitchen/")

    assert [row["id"] for row in response.data] == [str(first.pk), str(second.pk)]


def test_kitchen_queue_is_kitchen_only(client_for, waiter):
    assert client_for(waiter).get("/api/orders/kitchen/").status_code == 403


def test_counts(client_for, waiter, make_order):
    make_order()
    make_order()
    make_order(user=waiter)

    response = client_for(waiter).get("/api/orders/counts/")
    assert response.data == {state.PENDING: 2, state.VALIDATED: 1}


def test_list_filters(client_for, waiter, make_order):
    make_order()
    takeaway = make_order(order_type=state.TAKEAWAY, user=waiter)

    response = client_for(waiter).get("/api/orders/list/?type=takeaway&status=validated")
    assert [row["id"] for row in response.data] == [str(takeaway.pk)]


# =====================================
# STATUS
# =====================================

def test_chef_marks_ready(client_for, chef, waiter, make_order):
    order = make_order(user=waiter)

    response = client_for(chef).patch(
        f"/api/orders/status/{order.pk}/", {"status": state.READY}, format="json",
    )

    assert response.status_code == 200
    assert response.data["status"] == state.READY


def test_chef_cannot_take_payment(client_for, chef, waiter, make_order):
    order = make_order(user=waiter)
    change_status(order.pk, state.READY, role="CHEF")

    response = client_for(chef).patch(
        f"/api/orders/status/{order.pk}/", {"status": state.PAID}, format="json",
    )

    assert response.status_code == 400
    assert response.data["code"] == "invalid_transition"
    assert fetch_order(order.pk).status == state.READY


def test_status_update_for_unknown_order(client_for, waiter):
    response = client_for(waiter).patch(
        f"/api/orders/status/{MISSING}/", {"status": state.VALIDATED}, format="json",
    )
    assert response.status_code == 404
    assert response.data["code"] == "order_not_found"


def test_status_update_with_stale_version(client_for, waiter, make_order):
    order = make_order()
    change_status(order.pk, state.VALIDATED, role="WAITER")

    response = client_for(waiter).patch(
        f"/api/orders/status/{order.pk}/",
        {"status": state.READY, "expected_version": 1},
        format="json",
    )
    assert response.status_code == 409
    assert response.data["code"] == "conflict"


def test_mains_and_people(client_for, waiter, make_order):
    order = make_order(user=waiter)
    client = client_for(waiter)

    response = client.post(f"/api/orders/mains/{order.pk}/")
    assert response.data["mains_started"] is True

    response = client.patch(f"/api/orders/people/{order.pk}/", {"number_of_people": 3}, format="json")
    assert response.data["number_of_people"] == 3


def test_chef_ticks_items(client_for, chef, waiter, make_order):
    item = make_order(user=waiter).items.first()

    response = client_for(chef).patch(
        f"/api/orders/items/{item.pk}/prepared/", {"is_prepared": True}, format="json",
    )

    assert response.status_code == 200
    assert response.data["is_prepared"] is True


# =====================================
# ASSIGNMENT
# =====================================

def test_assign_then_undo(client_for, waiter, make_order, make_table):
    table = make_table("5", capacity=4)
    order = make_order(number_of_people=2)
    client = client_for(waiter)

    response = client.post(f"/api/orders/assign/{order.pk}/", {"table_id": str(table.pk)}, format="json")

    assert response.status_code == 200
    assert response.data["validated"] is True
    assert response.data["message"] == "Order validated and assigned to table 5"
    assert response.data["order"]["table_number"] == "5"
    token = response.data["undo_token"]

    response = client.post("/api/orders/undo/", {"token": token}, format="json")
    assert response.status_code == 200
    assert response.data["order"]["status"] == state.PENDING
    assert response.data["order"]["table_number"] == state.UNASSIGNED_TABLE

    response = client.post("/api/orders/undo/", {"token": token}, format="json")
    assert response.status_code == 409
    assert response.data["code"] == "undo_expired"


def test_assign_to_occupied_table(client_for, waiter, make_order, make_table):
    table = make_table("5")
    make_order(user=waiter, table_number="5")
    order = make_order()

    response = client_for(waiter).post(
        f"/api/orders/assign/{order.pk}/", {"table_id": str(table.pk)}, format="json",
    )

    assert response.status_code == 409
    assert response.data["code"] == "table_occupied"


def test_assign_takeaway(client_for, waiter, make_order, make_table):
    table = make_table("5")
    order = make_order(order_type=state.TAKEAWAY)

    response = client_for(waiter).post(
        f"/api/orders/assign/{order.pk}/", {"table_id": str(table.pk)}, format="json",
    )

    assert response.status_code == 400
    assert fetch_order(order.pk).table_number == state.TAKEAWAY_TABLE


def test_bad_undo_token(client_for, waiter):
    response = client_for(waiter).post("/api/orders/undo/", {"token": "forged"}, format="json")
    assert response.status_code == 400
    assert response.data["code"] == "invalid_order"


def test_guest_cannot_assign(client_for, guest, make_order, make_table):
    table = make_table("5")
    order = make_order()
    response = client_for(guest).post(
        f"/api/orders/assign/{order.pk}/", {"table_id": str(table.pk)}, format="json",
    )
    assert response.status_code == 403


# =====================================
# TABLES / MENU
# =====================================

def test_table_list_shows_occupancy(client_for, waiter, make_order, make_table):
    make_table("1")
    make_table("5")
    order = make_order(user=waiter, table_number="5")

    response = client_for(waiter).get("/api/tables/list/")

    rows = {row["label"]: row for row in response.data}
    assert rows["1"]["status"] == "FREE"
    assert rows["5"]["status"] == "OCCUPIED"
    assert rows["5"]["order_id"] == str(order.pk)


def test_seeded_floor_plan(client_for, waiter):
    response = client_for(waiter).get("/api/tables/list/")
    assert [(row["label"], row["capacity"]) for row in response.data] == [
        ("1", 4), ("2", 2), ("3", 6), ("4", 4), ("5", 2),
    ]


def test_reserved_table_label(client_for, waiter, empty_floor):
    response = client_for(waiter).post(
        "/api/tables/create/", {"label": "Takeaway", "capacity": 2}, format="json",
    )
    assert response.status_code == 400


def test_menu_is_public(api_client, menu):
    response = api_client.get("/api/products/menu/")
    assert response.status_code == 200
    assert {row["code"] for row in response.data} == {"E01", "P02"}
