from types import SimpleNamespace

from orders import state
from tables.occupancy import FREE, OCCUPIED, OccupancyCache, resolve, table_status


def order(id, table_number, status=state.VALIDATED, order_type=state.DINE_IN):
    return SimpleNamespace(id=id, table_number=table_number, status=status, order_type=order_type)


TABLES = [
    SimpleNamespace(id="t1", label="1"),
    SimpleNamespace(id="t2", label="2"),
    SimpleNamespace(id="t5", label="5"),
]


def test_table_is_occupied_by_active_dine_in_order():
    o1 = order("o1", "5")
    result = resolve(TABLES, [o1])

    assert result["t5"].status == OCCUPIED
    assert result["t5"].order is o1
    assert result["t1"].status == FREE
    assert result["t1"].order is None


def test_paid_orders_free_the_table():
    result = resolve(TABLES, [order("o1", "5", status=state.PAID)])
    assert result["t5"].is_free


def test_pending_order_holding_a_label_still_occupies():
    result = resolve(TABLES, [order("o1", "2", status=state.PENDING)])
    assert result["t2"].status == OCCUPIED


def test_takeaway_and_unassigned_never_occupy():
    orders = [
        order("o1", state.TAKEAWAY_TABLE, order_type=state.TAKEAWAY),
        order("o2", state.UNASSIGNED_TABLE),
        order("o3", None),
    ]
    assert all(occupancy.is_free for occupancy in resolve(TABLES, orders).values())


def test_first_matching_order_wins_on_collision():
    first, second = order("o1", "1"), order("o2", "1")
    assert resolve(TABLES, [first, second])["t1"].order is first


def test_duplicate_labels_in_table_list_resolve_to_same_order():
    tables = TABLES + [SimpleNamespace(id="t1-bis", label="1")]
    o1 = order("o1", "1")
    result = resolve(tables, [o1])
    assert result["t1"].order is o1
    assert result["t1-bis"].order is o1


def test_table_status_single_label():
    assert table_status("5", [order("o1", "5")]).status == OCCUPIED
    assert table_status("5", [order("o1", "5", status=state.PAID)]).status == FREE


def test_cache_computes_once_per_revision():
    cache = OccupancyCache()
    orders = [order("o1", "5")]

    first = cache.get(1, TABLES, orders)
    again = cache.get(1, TABLES, orders)
    assert again is first
    assert cache.computations == 1

    cache.get(2, TABLES, orders)
    assert cache.computations == 2


def test_cache_recomputes_when_layout_changes():
    cache = OccupancyCache()
    cache.get(1, TABLES, [])
    cache.get(1, TABLES[:2], [])
    assert cache.computations == 2
