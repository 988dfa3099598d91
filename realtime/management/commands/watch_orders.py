import threading

from django.core.management.base import BaseCommand, CommandError

from orders.services import fetch_orders
from orders.utils import format_order_ref
from realtime.bridge import get_bridge
from realtime.feed import snapshot_for
from realtime.store import OrderStore

VIEWS = ("kitchen", "queue", "waiter")


def format_table(headers, rows):
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def fmt_row(cols):
        return " | ".join(col.ljust(widths[i]) for i, col in enumerate(cols))

    lines = [fmt_row(headers), "-+-".join("-" * w for w in widths)]
    lines.extend(fmt_row(row) for row in rows)
    return "\n".join(lines)


def render(store, view):
    if view == "kitchen":
        orders = store.kitchen_queue()
    elif view == "queue":
        orders = store.unassigned_queue()
    else:
        orders = store.waiter_orders()

    rows = [
        [
            format_order_ref(order.id),
            order.order_type,
            order.table_number or "?",
            order.status,
            str(order.item_count),
            order.created_at.strftime("%H:%M") if order.created_at else "",
        ]
        for order in orders
    ]
    counts = store.counts()
    header = f"== {view} == pending {counts['PENDING']} / validated {counts['VALIDATED']}"
    body = format_table(["Ref", "Type", "Table", "Status", "Items", "At"], rows) if rows else "<empty>"
    return f"{header}\n{body}"


class Command(BaseCommand):
    help = "Follow the live order set from the Redis channel and print one role view."

    def add_arguments(self, parser):
        parser.add_argument("--view", choices=VIEWS, default="kitchen")

    def handle(self, *args, **options):
        bridge = get_bridge()
        if bridge is None:
            raise CommandError("REDIS_URL is not configured")

        view = options["view"]
        pubsub = bridge.subscribe()
        store = OrderStore()
        try:
            store.load(snapshot_for(order) for order in fetch_orders())
        except Exception:
            pubsub.close()
            raise
        store.subscribe(lambda changed: self.stdout.write(render(changed, view) + "\n"))

        self.stdout.write(render(store, view) + "\n")

        stop = threading.Event()
        try:
            bridge.listen(store.apply, stop_event=stop, pubsub=pubsub)
        except KeyboardInterrupt:
            stop.set()
