import logging
from collections import Counter

from django.db import transaction

from orders import state
from orders.exceptions import CapacityExceeded, LayoutError, TableOccupied
from orders.models import Order
from orders.services import active_order_for_label, write_order

from .models import Table

logger = logging.getLogger(__name__)

LAYOUT_FIELDS = ("label", "x", "y", "shape", "capacity")


def save_table_layout(tables, user=None):
    """Replace the floor plan with ``tables`` (mappings of layout fields).

    Entries carrying an ``id`` update that table, the others are created.
    Stored tables missing from ``tables`` are deleted.
    """
    labels = [str(entry["label"]).strip() for entry in tables]
    if any(not label for label in labels):
        raise LayoutError("Every table needs a label")

    duplicates = sorted(label for label, count in Counter(labels).items() if count > 1)
    if duplicates:
        raise LayoutError(f"Duplicate table labels: {', '.join(duplicates)}")

    if any(label == state.TAKEAWAY_TABLE or state.is_unassigned(label) for label in labels):
        raise LayoutError("Table labels cannot reuse the takeaway or unassigned markers")

    with transaction.atomic():
        existing = {str(table.pk): table for table in Table.objects.select_for_update()}
        incoming_ids = {str(entry["id"]) for entry in tables if entry.get("id")}

        # -----------------------------
        # Deletions
        # -----------------------------
        for table_id, table in list(existing.items()):
            if table_id in incoming_ids:
                continue
            occupant = active_order_for_label(table.label)
            if occupant is not None:
                raise TableOccupied(f"Table {table.label} has an active order and cannot be removed")
            table.delete()
            del existing[table_id]
            logger.info("Table %s removed from the floor plan", table.label)

        # -----------------------------
        # Renames (two steps so labels can be swapped)
        # -----------------------------
        renames = {}
        for entry, label in zip(tables, labels):
            table = existing.get(str(entry.get("id")))
            if table is not None and table.label != label:
                renames[table.pk] = (table.label, label)
                table.label = f"~{table.pk}"
                table.save(update_fields=["label"])

        # -----------------------------
        # Upserts
        # -----------------------------
        saved = []
        for entry, label in zip(tables, labels):
            table = existing.get(str(entry.get("id")))
            if table is None:
                table = Table(pk=entry["id"]) if entry.get("id") else Table()

            previous_label = renames.get(table.pk, (table.label, label))[0]
            capacity = entry.get("capacity", table.capacity)

            occupant = active_order_for_label(previous_label) if table.label else None
            if occupant is not None and capacity < occupant.number_of_people:
                raise CapacityExceeded(
                    f"Table {previous_label} seats an order of {occupant.number_of_people}"
                )

            table.label = label
            for field in LAYOUT_FIELDS[1:]:
                if field in entry:
                    setattr(table, field, entry[field])
            table.save()
            saved.append(table)

        _repoint_orders(renames.values(), user=user)

    logger.info("Floor plan saved with %d tables", len(saved))
    return saved


def _repoint_orders(renames, user=None):
    # Collect first: with swapped labels an order must move only once.
    moving = []
    for old_label, new_label in renames:
        orders = (
            Order.objects
            .select_for_update()
            .filter(order_type=state.DINE_IN, table_number=old_label)
            .exclude(status=state.PAID)
        )
        moving.extend((order, old_label, new_label) for order in orders)

    for order, old_label, new_label in moving:
        write_order(order, user=user, table_number=new_label)
        logger.info("Order %s follows table %s -> %s", order.id, old_label, new_label)
