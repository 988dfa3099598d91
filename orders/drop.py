"""Drag-and-drop table assignment over a role view's ``OrderStore``."""

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Optional

from realtime.feed import snapshot_for
from realtime.snapshots import TableSnapshot
from realtime.store import OrderStore

from .assignment import UndoSnapshot, assign_order_to_table, revert_assignment
from .exceptions import (
    CapacityExceeded,
    Conflict,
    InvalidTransition,
    OrderNotFound,
    REJECTIONS,
    TableNotFound,
    TableOccupied,
)
from .services import fetch_order, persistence_guard
from . import state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DropResult:
    accepted: bool
    order_id: str
    table_id: str
    order: Optional[object] = None
    reason: Optional[str] = None
    message: str = ""
    snapshot: Optional[UndoSnapshot] = None
    undo: Optional[Callable[[], bool]] = None

    @classmethod
    def rejected(cls, order_id, table_id, exc):
        return cls(
            accepted=False,
            order_id=order_id,
            table_id=table_id,
            reason=exc.code,
            message=str(exc),
        )


@dataclass(frozen=True)
class DropNotification:
    order: object
    table: TableSnapshot
    validated: bool
    snapshot: UndoSnapshot
    undo: Callable[[], bool]

    @property
    def message(self):
        if self.validated:
            return f"Order validated and assigned to table {self.table.label}"
        return f"Order moved to table {self.table.label}"


class DropCoordinator:

    def __init__(self, store: OrderStore, backend, tables=(), notify=None):
        self.store = store
        self.backend = backend
        self.notify = notify
        self._lock = RLock()
        self._tables = {}
        self._claims = {}
        self._used = set()
        self.set_tables(tables)

    # -------------------- tables --------------------

    def set_tables(self, tables):
        with self._lock:
            self._tables = {str(table.id): table for table in tables}

    def tables(self):
        with self._lock:
            return list(self._tables.values())

    def occupancy(self):
        return self.store.occupancy(self.tables())

    # -------------------- validation --------------------

    def _validate(self, order_id, table_id):
        order = self.store.get(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found")

        table = self._tables.get(table_id)
        if table is None:
            raise TableNotFound(f"Table {table_id} not found")

        claimant = self._claims.get(table.label)
        if claimant is not None and claimant != order_id:
            raise TableOccupied(f"Table {table.label} is being assigned")

        if self.store.has_pending(order_id):
            raise InvalidTransition(f"Order {order_id} is already being moved")

        occupant = self.store.table_status(table.label).order
        state.check_assignment(order, table, occupant)
        return order, table

    def is_table_valid_for_order(self, order_id, table_id) -> bool:
        with self._lock:
            try:
                self._validate(str(order_id), str(table_id))
            except REJECTIONS:
                return False
            return True

    # -------------------- drop --------------------

    def attempt_assign(self, order_id, table_id) -> DropResult:
        order_id, table_id = str(order_id), str(table_id)

        with self._lock:
            try:
                order, table = self._validate(order_id, table_id)
            except REJECTIONS as exc:
                logger.info("Drop of %s on table %s rejected: %s", order_id, table_id, exc)
                return DropResult.rejected(order_id, table_id, exc)

            changes = {"table_number": table.label}
            if order.status == state.PENDING:
                changes["status"] = state.VALIDATED

            self._claims[table.label] = order_id
            self.store.claim(order_id, **changes)

        try:
            authoritative, snapshot = self.backend.assign(
                order_id, table.id, expected_version=order.version,
            )
        except (TableOccupied, CapacityExceeded) as exc:
            self._release(order_id, table.label)
            logger.warning("Drop of %s on table %s lost a race: %s", order_id, table.label, exc)
            raise Conflict(f"Table {table.label} changed while assigning, please retry") from exc
        except REJECTIONS as exc:
            self._release(order_id, table.label)
            logger.info("Drop of %s on table %s refused by server: %s", order_id, table.label, exc)
            return DropResult.rejected(order_id, table_id, exc)
        except Exception:
            self._release(order_id, table.label)
            raise

        with self._lock:
            self._claims.pop(table.label, None)
        self.store.confirm(order_id, authoritative)

        undo = self._bind_undo(snapshot)
        if self.notify is not None:
            self.notify(DropNotification(
                order=authoritative,
                table=table,
                validated=order.status == state.PENDING,
                snapshot=snapshot,
                undo=undo,
            ))

        return DropResult(
            accepted=True,
            order_id=order_id,
            table_id=table_id,
            order=authoritative,
            snapshot=snapshot,
            undo=undo,
        )

    def _release(self, order_id, label):
        with self._lock:
            if self._claims.get(label) == order_id:
                del self._claims[label]
        self.store.rollback(order_id)

    # -------------------- undo --------------------

    def _bind_undo(self, snapshot):
        def undo():
            return self.undo(snapshot)
        return undo

    def undo(self, snapshot: UndoSnapshot) -> bool:
        """Revert one accepted drop. Works once; later calls return False."""
        key = (snapshot.order_id, snapshot.version)

        with self._lock:
            if key in self._used:
                logger.info("Undo for %s already used", snapshot.order_id)
                return False

            current = self.store.get(snapshot.order_id)
            if current is None or current.version != snapshot.version:
                logger.warning("Stale undo for %s ignored", snapshot.order_id)
                return False

            self._used.add(key)
            self.store.claim(
                snapshot.order_id,
                status=snapshot.previous_status,
                table_number=snapshot.previous_table_number,
            )

        try:
            reverted = self.backend.revert(snapshot)
        except Exception:
            with self._lock:
                self._used.discard(key)
            self.store.rollback(snapshot.order_id)
            raise

        if reverted is None:
            self.store.rollback(snapshot.order_id)
            return False

        self.store.confirm(snapshot.order_id, reverted)
        return True


class ServiceBackend:
    """Runs coordinator writes through the in-process service layer."""

    def __init__(self, user=None):
        self.user = user

    def assign(self, order_id, table_id, expected_version=None):
        with persistence_guard():
            outcome = assign_order_to_table(
                order_id, table_id, expected_version=expected_version, user=self.user,
            )
            return snapshot_for(fetch_order(outcome.order.pk)), outcome.snapshot

    def revert(self, snapshot):
        with persistence_guard():
            order = revert_assignment(snapshot, user=self.user)
            if order is None:
                return None
            return snapshot_for(fetch_order(order.pk))
