"""Immutable order and table values held by client-side stores."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from django.utils.dateparse import parse_datetime


def _as_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    return parse_datetime(value)


@dataclass(frozen=True)
class OrderItemSnapshot:
    id: int
    menu_item_id: str
    code: str
    name: str
    quantity: int
    unit_price: Decimal
    notes: Optional[str] = None
    is_prepared: bool = False

    @classmethod
    def from_payload(cls, data):
        menu_item = data.get("menu_item") or {}
        return cls(
            id=data["id"],
            menu_item_id=str(menu_item.get("id", "")),
            code=menu_item.get("code", ""),
            name=menu_item.get("name_fr", ""),
            quantity=int(data["quantity"]),
            unit_price=Decimal(str(data.get("unit_price") or "0")),
            notes=data.get("notes"),
            is_prepared=bool(data.get("is_prepared")),
        )


@dataclass(frozen=True)
class OrderSnapshot:
    id: str
    order_type: str
    table_number: Optional[str]
    status: str
    created_at: datetime
    version: int = 1
    number_of_people: int = 1
    mains_started: bool = False
    payment_method: Optional[str] = None
    total_amount: Decimal = Decimal("0.00")
    items: Tuple[OrderItemSnapshot, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, data):
        """Build from an ``OrderSerializer`` payload (dict or decoded JSON)."""
        return cls(
            id=str(data["id"]),
            order_type=data["order_type"],
            table_number=data.get("table_number"),
            status=data["status"],
            created_at=_as_datetime(data.get("created_at")),
            version=int(data.get("version") or 1),
            number_of_people=int(data.get("number_of_people") or 1),
            mains_started=bool(data.get("mains_started")),
            payment_method=data.get("payment_method"),
            total_amount=Decimal(str(data.get("total_amount") or "0")),
            items=tuple(OrderItemSnapshot.from_payload(item) for item in data.get("items") or ()),
        )

    def evolve(self, **changes):
        return replace(self, **changes)

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)


@dataclass(frozen=True)
class TableSnapshot:
    id: str
    label: str
    capacity: int
    x: float = 0
    y: float = 0
    shape: str = "RECT"

    @classmethod
    def from_payload(cls, data):
        return cls(
            id=str(data["id"]),
            label=data["label"],
            capacity=int(data["capacity"]),
            x=float(data.get("x") or 0),
            y=float(data.get("y") or 0),
            shape=data.get("shape") or "RECT",
        )
