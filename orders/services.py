import logging
from contextlib import contextmanager
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import InterfaceError, OperationalError, transaction
from django.db.models import F, Prefetch

from accounts.permissions import role_of
from products.models import MenuItem
from tables.models import Table

from .exceptions import (
    CapacityExceeded,
    Conflict,
    InvalidOrder,
    InvalidTransition,
    OrderItemNotFound,
    OrderNotFound,
    PersistenceUnavailable,
    TableNotFound,
)
from .models import Order, OrderItem
from . import state

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("status", "table_number", "number_of_people", "mains_started")


@contextmanager
def persistence_guard():
    """Translate lost-database errors into ``PersistenceUnavailable``."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.error("Order store unavailable: %s", exc)
        raise PersistenceUnavailable(str(exc)) from exc


# =====================================
# QUERIES
# =====================================

def order_queryset():
    return Order.objects.prefetch_related(
        Prefetch(
            "items",
            queryset=OrderItem.objects.select_related("menu_item"),
        )
    )


def fetch_order(order_id):
    try:
        return order_queryset().get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        raise OrderNotFound(f"Order {order_id} not found")


def fetch_orders(status=None, order_type=None):
    """Orders newest first, optionally narrowed by status(es) and type."""
    qs = order_queryset().order_by("-created_at")

    if status:
        statuses = [status] if isinstance(status, str) else list(status)
        qs = qs.filter(status__in=statuses)

    if order_type:
        qs = qs.filter(order_type=order_type)

    return qs


def fetch_active_order(user=None, session_key=None):
    qs = fetch_orders(status=[state.PENDING, state.VALIDATED])

    if user is not None and user.is_authenticated:
        return qs.filter(created_by=user).first()

    if session_key:
        return qs.filter(created_by__isnull=True, guest_session=session_key).first()

    return None


def active_order_for_label(label, exclude_id=None):
    qs = Order.objects.filter(
        order_type=state.DINE_IN,
        table_number=label,
    ).exclude(status=state.PAID).order_by("created_at")
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.first()


# =====================================
# LOW LEVEL WRITES
# =====================================

def lock_order(order_id):
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        logger.warning("Update for unknown order %s ignored", order_id)
        raise OrderNotFound(f"Order {order_id} not found")


def lock_table(table_id=None, label=None):
    try:
        if table_id is not None:
            return Table.objects.select_for_update().get(pk=table_id)
        return Table.objects.select_for_update().get(label=label)
    except (Table.DoesNotExist, DjangoValidationError, ValueError):
        raise TableNotFound(f"Table {table_id or label} not found")


def check_version(order, expected_version):
    if expected_version is not None and order.version != expected_version:
        raise Conflict(
            f"Order {order.id} is at version {order.version}, expected {expected_version}"
        )


def write_order(order, user=None, **changes):
    """Apply ``changes`` to a locked order as one row update."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidOrder(f"Cannot update {', '.join(sorted(unknown))}")

    if "table_number" in changes:
        changes["table_number"] = _normalise_table_number(order, changes["table_number"])

    if "number_of_people" in changes and (changes["number_of_people"] or 0) < 1:
        raise InvalidOrder("number_of_people must be at least 1")

    update_fields = ["version", "updated_at"]
    for field, value in changes.items():
        setattr(order, field, value)
        update_fields.append(field)

    if changes.get("status") == state.VALIDATED and user is not None and user.is_authenticated:
        order.validated_by = user
        update_fields.append("validated_by")
    elif changes.get("status") == state.PENDING:
        order.validated_by = None
        update_fields.append("validated_by")

    order.version += 1
    order.save(update_fields=update_fields)
    return order


def _normalise_table_number(order, table_number):
    if order.order_type == state.TAKEAWAY:
        if table_number != state.TAKEAWAY_TABLE:
            raise InvalidTransition("Takeaway orders keep the takeaway table number")
        return table_number

    if state.is_unassigned(table_number):
        return state.UNASSIGNED_TABLE

    if table_number == state.TAKEAWAY_TABLE:
        raise InvalidTransition("Dine-in orders cannot use the takeaway table number")

    return table_number


# =====================================
# CREATE ORDER
# =====================================

def create_order(
    items, payment_method, order_type, table_number=None, *,
    number_of_people=1, user=None, session_key=None,
):
    """Persist a new order and its items.

    ``items`` holds mappings with ``menu_item`` (instance or id),
    ``quantity`` and optional ``notes``. Guest orders start PENDING and
    unassigned; staff orders start VALIDATED, default to cash and may name
    a free table directly.
    """
    lines = [item for item in items if (item.get("quantity") or 0) > 0]
    if not lines:
        raise InvalidOrder("Cannot submit an empty order")

    if order_type not in (state.DINE_IN, state.TAKEAWAY):
        raise InvalidOrder(f"Unknown order type {order_type!r}")

    if (number_of_people or 0) < 1:
        raise InvalidOrder("number_of_people must be at least 1")

    role = role_of(user)
    status = state.initial_status(role)

    if role in state.STAFF_CREATOR_ROLES:
        payment_method = payment_method or "CASH"
        table = state.initial_table_number(order_type, table_number)
    else:
        # Guests never pick their own table; a waiter seats them.
        table = state.initial_table_number(order_type)

    creator = user if user is not None and user.is_authenticated else None

    with transaction.atomic():

        order = Order(
            order_type=order_type,
            table_number=table,
            status=status,
            payment_method=payment_method,
            number_of_people=number_of_people,
            created_by=creator,
            validated_by=creator if status == state.VALIDATED else None,
            guest_session=session_key if creator is None else None,
        )

        if state.is_table_label(table):
            locked = lock_table(label=table)
            state.check_assignment(order, locked, active_order_for_label(table))

        menu_items = _resolve_menu_items(lines)

        total = Decimal("0.00")
        order_items = []

        for position, line in enumerate(lines):
            menu_item = menu_items[_menu_item_key(line["menu_item"])]
            qty = int(line["quantity"])

            order_items.append(
                OrderItem(
                    menu_item=menu_item,
                    quantity=qty,
                    unit_price=menu_item.price,
                    notes=line.get("notes") or None,
                    position=position,
                )
            )
            total += menu_item.price * qty

        order.total_amount = total
        order.save()

        for order_item in order_items:
            order_item.order = order

        # One post_save for the order; the snapshot is fetched after commit
        # and already carries the items.
        OrderItem.objects.bulk_create(order_items)

    logger.info(
        "Order %s created: %s %s table=%s items=%d",
        order.id, order.order_type, order.status, order.table_number, len(order_items),
    )
    return order


def _menu_item_key(value):
    return str(value.pk if isinstance(value, MenuItem) else value)


def _resolve_menu_items(lines):
    keys = {_menu_item_key(line["menu_item"]) for line in lines}
    found = {
        str(menu_item.pk): menu_item
        for menu_item in MenuItem.objects.filter(pk__in=keys, is_available=True)
    }
    missing = keys - set(found)
    if missing:
        raise InvalidOrder(f"Menu item not found or unavailable: {', '.join(sorted(missing))}")
    return found


# =====================================
# UPDATES
# =====================================

def update_order(order_id, *, expected_version=None, user=None, **changes):
    with transaction.atomic():
        order = lock_order(order_id)
        check_version(order, expected_version)
        return write_order(order, user=user, **changes)


def change_status(order_id, status, *, role=None, user=None, expected_version=None):
    with transaction.atomic():
        order = lock_order(order_id)
        check_version(order, expected_version)
        state.check_transition(order.status, status, role)
        order = write_order(order, user=user, status=status)

    logger.info("Order %s moved to %s by %s", order.id, status, role or "system")
    return order


def start_mains(order_id, *, role=None, expected_version=None):
    with transaction.atomic():
        order = lock_order(order_id)
        check_version(order, expected_version)
        state.check_mains_started(order.status, role)
        if order.mains_started:
            return order
        return write_order(order, mains_started=True)


def set_number_of_people(order_id, number_of_people, *, expected_version=None):
    with transaction.atomic():
        order = lock_order(order_id)
        check_version(order, expected_version)

        if order.status == state.PAID:
            raise InvalidTransition("Paid orders are closed")

        if state.is_table_label(order.table_number) and order.order_type == state.DINE_IN:
            table = Table.objects.filter(label=order.table_number).first()
            if table is not None and table.capacity < number_of_people:
                raise CapacityExceeded(
                    f"Table {table.label} seats {table.capacity}, order needs {number_of_people}"
                )

        return write_order(order, number_of_people=number_of_people)


def update_order_item_prepared(order_item_id, prepared, *, role=None):
    with transaction.atomic():
        try:
            item = (
                OrderItem.objects
                .select_for_update()
                .select_related("order")
                .get(pk=order_item_id)
            )
        except (OrderItem.DoesNotExist, DjangoValidationError, ValueError):
            logger.warning("Prepared toggle for unknown item %s ignored", order_item_id)
            raise OrderItemNotFound(f"Order item {order_item_id} not found")

        state.check_prepare(item.order.status, role)

        # Version first: the item save below is what triggers the snapshot.
        Order.objects.filter(pk=item.order_id).update(version=F("version") + 1)

        item.is_prepared = bool(prepared)
        item.save(update_fields=["is_prepared"])

    return item
