"""Table occupancy computed from tables and the live order set."""

from dataclasses import dataclass
from threading import RLock
from typing import Any, Dict, Iterable, Optional

from orders.state import is_active_dine_in, is_table_label

FREE = "FREE"
OCCUPIED = "OCCUPIED"


@dataclass(frozen=True)
class TableOccupancy:
    status: str
    order: Optional[Any] = None

    @property
    def is_free(self):
        return self.status == FREE


FREE_TABLE = TableOccupancy(FREE, None)


def active_orders_by_label(orders: Iterable) -> Dict[str, Any]:
    """Map table label to the first active dine-in order holding it.

    When two active orders share a label (labels collided, or a client
    snapshot is stale) the first one in iteration order wins.
    """
    by_label = {}
    for order in orders:
        if not is_active_dine_in(order) or not is_table_label(order.table_number):
            continue
        by_label.setdefault(order.table_number, order)
    return by_label


def resolve(tables: Iterable, orders: Iterable) -> Dict[Any, TableOccupancy]:
    """Return ``{table.id: TableOccupancy}`` for every table."""
    by_label = active_orders_by_label(orders)
    result = {}
    for table in tables:
        order = by_label.get(table.label)
        result[table.id] = TableOccupancy(OCCUPIED, order) if order is not None else FREE_TABLE
    return result


def table_status(label: str, orders: Iterable) -> TableOccupancy:
    for order in orders:
        if is_active_dine_in(order) and order.table_number == label:
            return TableOccupancy(OCCUPIED, order)
    return FREE_TABLE


class OccupancyCache:
    """Memoises ``resolve`` per order-set revision and table layout."""

    def __init__(self):
        self._lock = RLock()
        self._key = None
        self._value: Dict[Any, TableOccupancy] = {}
        self.computations = 0

    def get(self, revision, tables, orders) -> Dict[Any, TableOccupancy]:
        tables = list(tables)
        key = (revision, tuple((table.id, table.label) for table in tables))
        with self._lock:
            if key != self._key:
                self._value = resolve(tables, orders)
                self._key = key
                self.computations += 1
            return self._value
