"""Order state machine: PENDING -> VALIDATED -> READY -> PAID, gated by role."""

from .exceptions import CapacityExceeded, InvalidTransition, TableOccupied

PENDING = "PENDING"
VALIDATED = "VALIDATED"
READY = "READY"
PAID = "PAID"

STATUS_CHOICES = (
    (PENDING, "Pending"),
    (VALIDATED, "Validated"),
    (READY, "Ready"),
    (PAID, "Paid"),
)

DINE_IN = "DINE_IN"
TAKEAWAY = "TAKEAWAY"

ORDER_TYPE_CHOICES = (
    (DINE_IN, "Dine In"),
    (TAKEAWAY, "Takeaway"),
)

# Table number sentinels stored on Order.table_number.
UNASSIGNED_TABLE = "?"
TAKEAWAY_TABLE = "Takeaway"

STAFF_CREATOR_ROLES = frozenset({"WAITER", "ADMIN"})

TRANSITIONS = {
    PENDING: frozenset({VALIDATED}),
    VALIDATED: frozenset({READY}),
    READY: frozenset({PAID}),
    PAID: frozenset(),
}

TRANSITION_ROLES = {
    (PENDING, VALIDATED): frozenset({"WAITER", "ADMIN"}),
    (VALIDATED, READY): frozenset({"CHEF", "ADMIN"}),
    (READY, PAID): frozenset({"WAITER", "ADMIN"}),
}

# Reachable only through assignment undo.
UNDO_TRANSITIONS = frozenset({(VALIDATED, PENDING)})

MAINS_ROLES = frozenset({"WAITER", "ADMIN"})
PREPARE_ROLES = frozenset({"CHEF", "ADMIN"})


def is_unassigned(table_number):
    return table_number in (None, "", UNASSIGNED_TABLE)


def is_table_label(table_number):
    return not is_unassigned(table_number) and table_number != TAKEAWAY_TABLE


def initial_status(role):
    """Staff-created orders skip PENDING: a waiter creating one intends to serve it."""
    return VALIDATED if role in STAFF_CREATOR_ROLES else PENDING


def initial_table_number(order_type, table_number=None):
    if order_type == TAKEAWAY:
        return TAKEAWAY_TABLE
    if is_unassigned(table_number):
        return UNASSIGNED_TABLE
    if table_number == TAKEAWAY_TABLE:
        raise InvalidTransition("Dine-in orders cannot use the takeaway table number")
    return table_number


def can_transition(current, target, role=None):
    if target not in TRANSITIONS.get(current, ()):
        return False
    if role is None:
        return True
    return role in TRANSITION_ROLES[(current, target)]


def check_transition(current, target, role=None):
    if target not in TRANSITIONS:
        raise InvalidTransition(f"Unknown status {target!r}")
    if target not in TRANSITIONS.get(current, ()):
        raise InvalidTransition(f"Cannot move order from {current} to {target}")
    if role is not None and role not in TRANSITION_ROLES[(current, target)]:
        raise InvalidTransition(f"Role {role} cannot move order from {current} to {target}")


def check_undo(current, previous):
    if current == previous:
        return
    if (current, previous) not in UNDO_TRANSITIONS:
        raise InvalidTransition(f"Cannot undo from {current} back to {previous}")


def check_mains_started(status, role=None):
    if status != VALIDATED:
        raise InvalidTransition("Mains can only be started while the order is validated")
    if role is not None and role not in MAINS_ROLES:
        raise InvalidTransition(f"Role {role} cannot start mains")


def check_prepare(status, role=None):
    if status == PAID:
        raise InvalidTransition("Paid orders are closed")
    if role is not None and role not in PREPARE_ROLES:
        raise InvalidTransition(f"Role {role} cannot mark items prepared")


def is_active_dine_in(order):
    """True while ``order`` keeps its table occupied."""
    return order.order_type == DINE_IN and order.status != PAID


def check_assignment(order, table, occupant=None):
    """Raise unless ``order`` may sit at ``table``.

    ``occupant`` is the active order currently holding the table label, if
    any. An order already sitting at the table does not block itself.
    """
    if order.order_type != DINE_IN:
        raise InvalidTransition("Takeaway orders are never assigned to a table")

    if order.status == PAID:
        raise InvalidTransition("Paid orders cannot be assigned to a table")

    if occupant is not None and occupant.id != order.id:
        raise TableOccupied(f"Table {table.label} is occupied")

    if table.capacity < (order.number_of_people or 1):
        raise CapacityExceeded(
            f"Table {table.label} seats {table.capacity}, order needs {order.number_of_people}"
        )
