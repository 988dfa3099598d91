"""Client-side order set kept in step with the realtime feed."""

import logging
from threading import RLock
from typing import Callable, Dict, List, Optional

from orders import state
from tables.occupancy import OccupancyCache, table_status

from .snapshots import OrderSnapshot

logger = logging.getLogger(__name__)

ALL = "ALL"


class OrderStore:

    def __init__(self, orders=()):
        self._lock = RLock()
        self._orders: List[OrderSnapshot] = list(orders)
        self._overlays: Dict[str, OrderSnapshot] = {}
        self._listeners: List[Callable] = []
        self._occupancy = OccupancyCache()
        self.revision = 0

    # -------------------- reconciliation --------------------

    def apply(self, snapshot: OrderSnapshot) -> bool:
        """Reconcile one pushed snapshot. Returns True when the set changed."""
        with self._lock:
            index = self._index_of(snapshot.id)
            if index is None:
                self._orders.insert(0, snapshot)
            else:
                current = self._orders[index]
                if snapshot == current:
                    return False
                if snapshot.version < current.version:
                    logger.debug(
                        "Dropped stale snapshot of %s (v%s < v%s)",
                        snapshot.id, snapshot.version, current.version,
                    )
                    return False
                self._orders[index] = snapshot
            self.revision += 1
        self._notify()
        return True

    def load(self, snapshots) -> None:
        """Replace the whole set, keeping the given order (initial fetch)."""
        with self._lock:
            self._orders = list(snapshots)
            self._overlays.clear()
            self.revision += 1
        self._notify()

    # -------------------- optimistic overlay --------------------

    def claim(self, order_id, **changes) -> Optional[OrderSnapshot]:
        with self._lock:
            base = self._overlays.get(order_id) or self._authoritative(order_id)
            if base is None:
                return None
            overlay = base.evolve(**changes)
            self._overlays[order_id] = overlay
            self.revision += 1
        self._notify()
        return overlay

    def confirm(self, order_id, snapshot: OrderSnapshot) -> None:
        with self._lock:
            self._overlays.pop(order_id, None)
            self.revision += 1
        if not self.apply(snapshot):
            self._notify()

    def rollback(self, order_id) -> None:
        with self._lock:
            if self._overlays.pop(order_id, None) is None:
                return
            self.revision += 1
        self._notify()

    def has_pending(self, order_id) -> bool:
        with self._lock:
            return order_id in self._overlays

    # -------------------- reads --------------------

    def get(self, order_id) -> Optional[OrderSnapshot]:
        with self._lock:
            overlay = self._overlays.get(order_id)
            if overlay is not None:
                return overlay
            return self._authoritative(order_id)

    def orders(self) -> List[OrderSnapshot]:
        with self._lock:
            return [self._overlays.get(order.id, order) for order in self._orders]

    def __len__(self):
        with self._lock:
            return len(self._orders)

    def __iter__(self):
        return iter(self.orders())

    # -------------------- projections --------------------

    def unassigned_queue(self) -> List[OrderSnapshot]:
        """Dine-in orders waiting for a table, most recent first."""
        queue = [
            order for order in self.orders()
            if order.order_type == state.DINE_IN
            and state.is_unassigned(order.table_number)
            and order.status != state.PAID
        ]
        return sorted(queue, key=lambda order: order.created_at, reverse=True)

    def kitchen_queue(self) -> List[OrderSnapshot]:
        """Validated orders in preparation order, oldest first."""
        queue = [order for order in self.orders() if order.status == state.VALIDATED]
        return sorted(queue, key=lambda order: order.created_at)

    def waiter_orders(self, kind=ALL) -> List[OrderSnapshot]:
        orders = self.orders()
        if kind != ALL:
            orders = [order for order in orders if order.order_type == kind]
        return sorted(orders, key=lambda order: order.created_at, reverse=True)

    def counts(self) -> Dict[str, int]:
        orders = self.orders()
        return {
            state.PENDING: sum(1 for order in orders if order.status == state.PENDING),
            state.VALIDATED: sum(1 for order in orders if order.status == state.VALIDATED),
        }

    def occupancy(self, tables):
        with self._lock:
            return self._occupancy.get(self.revision, tables, self.orders())

    def table_status(self, label):
        return table_status(label, self.orders())

    # -------------------- listeners --------------------

    def subscribe(self, callback: Callable) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    # -------------------- internals --------------------

    def _index_of(self, order_id) -> Optional[int]:
        for index, order in enumerate(self._orders):
            if order.id == order_id:
                return index
        return None

    def _authoritative(self, order_id) -> Optional[OrderSnapshot]:
        index = self._index_of(order_id)
        return None if index is None else self._orders[index]

    def _notify(self):
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback(self)
            except Exception:
                logger.exception("Order store listener %r failed", callback)
