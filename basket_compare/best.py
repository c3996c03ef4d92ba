from __future__ import annotations

from typing import Iterable

from .match import DEFAULT_CONFIG, MatchConfig
from .models import BestItem, BestList, ComparisonRow
from .normalize import sort_key

_SOURCE_RANK = {"A": 0, "B": 1, "Same": 2}


def _choose(row: ComparisonRow, tolerance: float) -> tuple[float, str]:
    has_a = row.qty_a > 0
    has_b = row.qty_b > 0

    if has_a and not has_b:
        return row.unit_a, "A"
    if has_b and not has_a:
        return row.unit_b, "B"

    if not has_a and not has_b:
        # Nothing to buy on either side; keep the comparison's verdict.
        if row.cheaper == "B":
            return row.unit_b, "B"
        return row.unit_a, row.cheaper

    if abs(row.unit_a - row.unit_b) < tolerance:
        return row.unit_a, "Same"
    if row.unit_a < row.unit_b:
        return row.unit_a, "A"
    return row.unit_b, "B"


def build_best_list(
    rows: Iterable[ComparisonRow],
    config: MatchConfig | None = None,
) -> BestList:
    """Pick, per product, the cheaper unit price across both baskets.

    The quantity bought is the larger of the two baskets' quantities.
    """
    cfg = config or DEFAULT_CONFIG
    items: list[BestItem] = []
    total = 0.0
    for row in rows:
        qty = max(row.qty_a, row.qty_b)
        price, source = _choose(row, cfg.tolerance)
        items.append(BestItem(name=row.name, quantity=qty, unit_price=price, source=source))
        total += qty * price

    items.sort(key=lambda it: (_SOURCE_RANK.get(it.source, len(_SOURCE_RANK)), sort_key(it.name)))
    return BestList(items=items, total=total)
