from __future__ import annotations

from typing import Iterable

from .models import AggregateRow, Item
from .normalize import normalize_name


def aggregate(items: Iterable[Item]) -> dict[str, AggregateRow]:
    """Collapse a basket's rows into one row per normalized name.

    Quantities and line costs are summed; the longer original name is kept
    for display (first seen wins on equal length). Rows with a blank name
    are skipped.
    """
    out: dict[str, AggregateRow] = {}
    for it in items:
        display = (it.name or "").strip()
        if not display:
            continue

        key = normalize_name(display)
        if not key:
            # Name made only of punctuation.
            continue

        line = it.quantity * it.unit_price
        row = out.get(key)
        if row is None:
            out[key] = AggregateRow(
                key=key,
                display_name=display,
                total_quantity=it.quantity,
                total_cost=line,
            )
            continue

        row.total_quantity += it.quantity
        row.total_cost += line
        if len(display) > len(row.display_name):
            row.display_name = display
    return out


def basket_total(items: Iterable[Item]) -> float:
    return sum(it.quantity * it.unit_price for it in items)
