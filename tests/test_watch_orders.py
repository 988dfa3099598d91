from datetime import datetime, timezone
from io import StringIO
from unittest import mock

import pytest
from django.core.management import CommandError, call_command

from orders import state
from realtime.management.commands.watch_orders import format_table, render
from realtime.snapshots import OrderSnapshot
from realtime.store import OrderStore


def test_render_kitchen_view():
    store = OrderStore([
        OrderSnapshot(
            id="8d7d1c52-3c55-4d0b-9d53-5b1e9ad7a001",
            order_type=state.DINE_IN,
            table_number="5",
            status=state.VALIDATED,
            created_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
        ),
    ])

    output = render(store, "kitchen")

    assert output.splitlines()[0] == "== kitchen == pending 0 / validated 1"
    assert "#A001" in output
    assert "12:30" in output


def test_render_empty_queue():
    assert render(OrderStore(), "queue").endswith("<empty>")


def test_format_table_pads_columns():
    lines = format_table(["Ref", "Table"], [["#AB12", "5"]]).splitlines()
    assert lines[0] == "Ref   | Table"
    assert lines[2] == "#AB12 | 5    "


@pytest.mark.django_db
def test_requires_redis():
    with pytest.raises(CommandError):
        call_command("watch_orders")


def test_subscribes_before_loading():
    calls = []
    bridge = mock.Mock()
    bridge.subscribe.side_effect = lambda: calls.append("subscribe") or mock.sentinel.pubsub
    bridge.listen.side_effect = lambda *args, **kwargs: calls.append(("listen", kwargs["pubsub"]))

    def load():
        calls.append("load")
        return []

    command = "realtime.management.commands.watch_orders"
    with mock.patch(f"{command}.get_bridge", return_value=bridge), \
            mock.patch(f"{command}.fetch_orders", side_effect=load):
        call_command("watch_orders", "--view", "queue", stdout=StringIO())

    assert calls == ["subscribe", "load", ("listen", mock.sentinel.pubsub)]
