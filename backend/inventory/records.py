"""
Raw row helpers — coercion and identity for product and order/sale rows.

Rows arrive as dicts (API payloads, importer output) or ORM objects. The
helpers here read either shape and never raise on malformed numerics.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

QUANTITY_FIELDS = ("quantity", "order_quantity", "quantity_sold")
DATE_FIELDS = ("order_date", "sale_date")


def field_value(row: Mapping[str, Any] | Any, name: str, default: Any = None) -> Any:
    """Read `name` from a mapping or attribute-style row."""
    if isinstance(row, Mapping):
        return row.get(name, default)
    return getattr(row, name, default)


def first_present(row: Mapping[str, Any] | Any, names: tuple[str, ...]) -> Any:
    for name in names:
        value = field_value(row, name)
        if value is not None:
            return value
    return None


def to_number(value: Any) -> float:
    """Coerce to a finite float. Non-numeric, NaN and inf become 0.0."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_datetime(value: Any) -> datetime | None:
    """
    Parse a timestamp into naive UTC.

    Offset-aware inputs are converted to UTC before the offset is dropped;
    naive inputs are taken as UTC already. Unparseable values return None.
    """
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return _naive_utc(parsed)
    return None


def record_key(row: Mapping[str, Any] | Any) -> str | None:
    """Grouping key for an order/sale row: SKU, falling back to product id."""
    sku = field_value(row, "sku")
    if sku is not None and str(sku).strip():
        return str(sku).strip()
    product_id = field_value(row, "product_id")
    if product_id is not None and str(product_id).strip():
        return str(product_id).strip()
    return None


def record_quantity(row: Mapping[str, Any] | Any) -> float:
    return to_number(first_present(row, QUANTITY_FIELDS))


def record_date(row: Mapping[str, Any] | Any) -> datetime | None:
    return to_datetime(first_present(row, DATE_FIELDS))


@dataclass(frozen=True)
class ProductSnapshot:
    """Inventory row as the engine sees it."""

    product_id: str
    sku: str
    name: str
    quantity: float
    sales_qty: float
    cost_per_item: float
    status: str

    @property
    def available_qty(self) -> float:
        return self.quantity - self.sales_qty

    @property
    def key(self) -> str:
        """Key used to join this product to its order records."""
        return self.sku or self.product_id

    @classmethod
    def from_row(cls, row: Mapping[str, Any] | Any) -> ProductSnapshot:
        product_id = first_present(row, ("product_id", "id"))
        sku = field_value(row, "sku")
        name = field_value(row, "name") or field_value(row, "product_name")
        return cls(
            product_id=str(product_id) if product_id is not None else "",
            sku=str(sku).strip() if sku is not None else "",
            name=str(name) if name else (str(sku) if sku else "Unknown"),
            quantity=to_number(field_value(row, "quantity")),
            sales_qty=to_number(field_value(row, "sales_qty")),
            cost_per_item=to_number(field_value(row, "cost_per_item")),
            status=str(field_value(row, "status") or "active"),
        )
