from types import SimpleNamespace

import pytest

from orders import state
from orders.exceptions import CapacityExceeded, InvalidTransition, TableOccupied


def order(**kwargs):
    values = dict(
        id="o1",
        order_type=state.DINE_IN,
        status=state.PENDING,
        table_number=state.UNASSIGNED_TABLE,
        number_of_people=2,
    )
    values.update(kwargs)
    return SimpleNamespace(**values)


def table(label="5", capacity=4):
    return SimpleNamespace(id="t-" + label, label=label, capacity=capacity)


# -------------------------------
# TRANSITIONS
# -------------------------------

@pytest.mark.parametrize("current,target", [
    (state.PENDING, state.VALIDATED),
    (state.VALIDATED, state.READY),
    (state.READY, state.PAID),
])
def test_forward_edges_are_allowed(current, target):
    assert state.can_transition(current, target)
    state.check_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (state.PENDING, state.READY),
    (state.PENDING, state.PAID),
    (state.VALIDATED, state.PAID),
    (state.VALIDATED, state.PENDING),
    (state.PAID, state.READY),
    (state.PAID, state.PENDING),
])
def test_skips_and_backward_moves_are_refused(current, target):
    assert not state.can_transition(current, target)
    with pytest.raises(InvalidTransition):
        state.check_transition(current, target)


def test_unknown_status_is_refused():
    with pytest.raises(InvalidTransition):
        state.check_transition(state.PENDING, "COOKING")


def test_role_gates():
    state.check_transition(state.PENDING, state.VALIDATED, "WAITER")
    state.check_transition(state.VALIDATED, state.READY, "CHEF")
    state.check_transition(state.READY, state.PAID, "ADMIN")

    with pytest.raises(InvalidTransition):
        state.check_transition(state.PENDING, state.VALIDATED, "CHEF")
    with pytest.raises(InvalidTransition):
        state.check_transition(state.VALIDATED, state.READY, "WAITER")
    with pytest.raises(InvalidTransition):
        state.check_transition(state.READY, state.PAID, "GUEST")


def test_undo_only_reopens_validated_orders():
    state.check_undo(state.VALIDATED, state.PENDING)
    state.check_undo(state.READY, state.READY)
    with pytest.raises(InvalidTransition):
        state.check_undo(state.READY, state.PENDING)


def test_mains_started_only_while_validated():
    state.check_mains_started(state.VALIDATED, "WAITER")
    with pytest.raises(InvalidTransition):
        state.check_mains_started(state.PENDING, "WAITER")
    with pytest.raises(InvalidTransition):
        state.check_mains_started(state.VALIDATED, "CHEF")


# -------------------------------
# CREATION DEFAULTS
# -------------------------------

def test_initial_status_depends_on_creator():
    assert state.initial_status("GUEST") == state.PENDING
    assert state.initial_status("CHEF") == state.PENDING
    assert state.initial_status("WAITER") == state.VALIDATED
    assert state.initial_status("ADMIN") == state.VALIDATED


def test_initial_table_number():
    assert state.initial_table_number(state.TAKEAWAY, "5") == state.TAKEAWAY_TABLE
    assert state.initial_table_number(state.DINE_IN) == state.UNASSIGNED_TABLE
    assert state.initial_table_number(state.DINE_IN, "") == state.UNASSIGNED_TABLE
    assert state.initial_table_number(state.DINE_IN, "3") == "3"
    with pytest.raises(InvalidTransition):
        state.initial_table_number(state.DINE_IN, state.TAKEAWAY_TABLE)


@pytest.mark.parametrize("value", [None, "", "?"])
def test_unassigned_sentinels(value):
    assert state.is_unassigned(value)
    assert not state.is_table_label(value)


def test_takeaway_is_not_a_table_label():
    assert not state.is_unassigned(state.TAKEAWAY_TABLE)
    assert not state.is_table_label(state.TAKEAWAY_TABLE)


# -------------------------------
# ASSIGNMENT RULE
# -------------------------------

def test_free_table_with_room_accepts():
    state.check_assignment(order(), table())


def test_takeaway_is_never_assigned():
    with pytest.raises(InvalidTransition):
        state.check_assignment(order(order_type=state.TAKEAWAY), table())


def test_paid_order_is_never_assigned():
    with pytest.raises(InvalidTransition):
        state.check_assignment(order(status=state.PAID), table())


def test_other_occupant_blocks():
    with pytest.raises(TableOccupied):
        state.check_assignment(order(), table(), occupant=order(id="o2"))


def test_order_does_not_block_itself():
    seated = order(status=state.VALIDATED, table_number="5")
    state.check_assignment(seated, table(), occupant=seated)


def test_capacity_is_checked():
    with pytest.raises(CapacityExceeded):
        state.check_assignment(order(number_of_people=6), table(capacity=4))
