import logging
from dataclasses import asdict, dataclass
from typing import Optional

from django.conf import settings
from django.core import signing
from django.db import transaction

from tables.models import Table

from .exceptions import InvalidOrder, OrderNotFound, REJECTIONS
from .models import Order
from .services import (
    active_order_for_label,
    check_version,
    lock_order,
    lock_table,
    write_order,
)
from . import state

logger = logging.getLogger(__name__)

UNDO_SALT = "orders.assignment.undo"


@dataclass(frozen=True)
class UndoSnapshot:
    order_id: str
    previous_status: str
    previous_table_number: Optional[str]
    version: int

    def to_token(self):
        return signing.dumps(asdict(self), salt=UNDO_SALT)

    @classmethod
    def from_token(cls, token, max_age=None):
        if max_age is None:
            max_age = getattr(settings, "UNDO_TOKEN_MAX_AGE", None)
        try:
            data = signing.loads(token, salt=UNDO_SALT, max_age=max_age)
            return cls(**data)
        except (signing.BadSignature, TypeError) as exc:
            raise InvalidOrder("Invalid or expired undo token") from exc


@dataclass
class AssignmentOutcome:
    order: Order
    table: Table
    snapshot: UndoSnapshot
    validated: bool


def assign_order_to_table(order_id, table_id, *, expected_version=None, user=None):
    """Seat ``order_id`` at ``table_id`` or raise.

    Raises ``OrderNotFound``/``TableNotFound``, ``InvalidTransition`` for
    takeaway or paid orders, ``TableOccupied``, ``CapacityExceeded`` and
    ``Conflict`` when ``expected_version`` is stale.
    """
    with transaction.atomic():
        table = lock_table(table_id=table_id)
        order = lock_order(order_id)
        check_version(order, expected_version)

        occupant = active_order_for_label(table.label, exclude_id=order.pk)
        try:
            state.check_assignment(order, table, occupant)
        except REJECTIONS as exc:
            logger.info("Assignment of %s to table %s rejected: %s", order.id, table.label, exc.code)
            raise

        previous_status = order.status
        previous_table_number = order.table_number

        changes = {"table_number": table.label}
        if order.status == state.PENDING:
            changes["status"] = state.VALIDATED

        order = write_order(order, user=user, **changes)

    snapshot = UndoSnapshot(
        order_id=str(order.id),
        previous_status=previous_status,
        previous_table_number=previous_table_number,
        version=order.version,
    )

    logger.info(
        "Order %s assigned to table %s (%s -> %s)",
        order.id, table.label, previous_status, order.status,
    )
    return AssignmentOutcome(
        order=order,
        table=table,
        snapshot=snapshot,
        validated="status" in changes,
    )


def revert_assignment(snapshot, *, user=None):
    """Undo an assignment. Returns the reverted order, or None when stale."""
    with transaction.atomic():
        previous_table = None
        if state.is_table_label(snapshot.previous_table_number):
            previous_table = (
                Table.objects
                .select_for_update()
                .filter(label=snapshot.previous_table_number)
                .first()
            )
            if previous_table is None:
                logger.warning(
                    "Undo for %s refused: table %s no longer exists",
                    snapshot.order_id, snapshot.previous_table_number,
                )
                return None

        try:
            order = lock_order(snapshot.order_id)
        except OrderNotFound:
            return None

        if order.version != snapshot.version:
            logger.warning(
                "Stale undo for %s ignored: order at version %s, snapshot at %s",
                order.id, order.version, snapshot.version,
            )
            return None

        state.check_undo(order.status, snapshot.previous_status)

        if previous_table is not None:
            occupant = active_order_for_label(previous_table.label, exclude_id=order.pk)
            if occupant is not None:
                logger.warning(
                    "Undo for %s refused: table %s is now held by %s",
                    order.id, previous_table.label, occupant.id,
                )
                return None

        order = write_order(
            order,
            user=user,
            status=snapshot.previous_status,
            table_number=snapshot.previous_table_number,
        )

    logger.info("Assignment of %s undone, back to %s", order.id, order.status)
    return order
