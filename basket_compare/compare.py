from __future__ import annotations

from typing import Sequence

from .aggregate import aggregate, basket_total
from .best import build_best_list
from .match import DEFAULT_CONFIG, MatchConfig, match
from .models import Comparison, Item


def compare_items(
    items_a: Sequence[Item],
    items_b: Sequence[Item],
    mode: str = "unit",
    config: MatchConfig | None = None,
) -> Comparison:
    """Run the full comparison of two baskets' items.

    Pure: the same two lists and mode always give the same result.
    """
    cfg = config or DEFAULT_CONFIG
    rows = match(aggregate(items_a), aggregate(items_b), mode=mode, config=config)
    return Comparison(
        mode=mode,
        rows=rows,
        best=build_best_list(rows, config=config),
        total_a=basket_total(items_a),
        total_b=basket_total(items_b),
        tolerance=cfg.tolerance,
    )
