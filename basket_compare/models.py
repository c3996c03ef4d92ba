from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

# Prices closer than this are treated as equal.
TOLERANCE = 1e-6


def verdict(delta: float, tolerance: float = TOLERANCE) -> str:
    """Lower metric wins; within *tolerance* both sides are the same."""
    if abs(delta) < tolerance:
        return "Same"
    return "A" if delta < 0 else "B"


@dataclass(frozen=True)
class Item:
    name: str
    quantity: float
    unit_price: float

    # Storage identifiers, present only when the item came from the backend.
    id: str | None = None
    basket_id: str | None = None

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


@dataclass
class AggregateRow:
    """All rows of one basket that share a normalized name."""

    key: str
    display_name: str
    total_quantity: float
    total_cost: float

    @property
    def unit_price(self) -> float:
        if self.total_quantity <= 0:
            return 0.0
        return self.total_cost / self.total_quantity


@dataclass(frozen=True)
class ComparisonRow:
    name: str
    key_a: str | None
    key_b: str | None

    qty_a: float
    unit_a: float
    total_a: float
    qty_b: float
    unit_b: float
    total_b: float

    cheaper: str                  # "A", "B" or "Same"
    delta: float                  # A metric minus B metric
    match_type: str | None = None  # "exact", "fuzzy", None when one-sided
    score: float | None = None

    @property
    def two_sided(self) -> bool:
        return self.key_a is not None and self.key_b is not None


@dataclass(frozen=True)
class BestItem:
    name: str
    quantity: float
    unit_price: float
    source: str  # "A", "B" or "Same"

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class BestList:
    items: list[BestItem] = field(default_factory=list)
    total: float = 0.0


@dataclass(frozen=True)
class Comparison:
    mode: str
    rows: list[ComparisonRow]
    best: BestList
    total_a: float
    total_b: float
    tolerance: float = TOLERANCE

    @property
    def difference(self) -> float:
        return self.total_a - self.total_b

    @property
    def cheaper_basket(self) -> str:
        return verdict(self.difference, self.tolerance)


@dataclass(frozen=True)
class Basket:
    id: str
    name: str
    user_id: str | None = None
    created_at: str | None = None


def coerce_number(value: Any, default: float | None = 0.0) -> float | None:
    """Turn a loosely typed numeric field into a finite float.

    None, booleans, unparsable strings, NaN and infinities all become *default*.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(num):
        return default
    return num


def item_from_row(row: dict[str, Any]) -> Item:
    """Build an Item from a storage or JSON row.

    Accepts both the table column names (``qty``/``price``) and the longer
    ``quantity``/``unit_price`` spelling.
    """
    qty = row.get("qty", row.get("quantity"))
    price = row.get("price", row.get("unit_price"))
    _id = row.get("id")
    basket_id = row.get("basket_id")
    return Item(
        name=str(row.get("name") or ""),
        quantity=coerce_number(qty),
        unit_price=coerce_number(price),
        id=str(_id) if _id is not None else None,
        basket_id=str(basket_id) if basket_id is not None else None,
    )
