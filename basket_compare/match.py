from __future__ import annotations

from dataclasses import dataclass

from .models import TOLERANCE, AggregateRow, ComparisonRow, verdict
from .normalize import normalize_name, sort_key, tokens

MODES = ("unit", "line")


@dataclass(frozen=True)
class MatchConfig:
    """Tunable constants for fuzzy pairing and price verdicts.

    The defaults are empirical; they were picked by hand against real
    shopping lists and can be overridden per comparison.
    """

    min_score: float = 0.6
    substring_bonus: float = 0.15
    prefix_bonus: float = 0.10
    prefix_length: int = 4
    tolerance: float = TOLERANCE


DEFAULT_CONFIG = MatchConfig()


def _common_prefix_len(a: str, b: str) -> int:
    n = 0
    for ca, cb in zip(a, b):
        if ca != cb:
            break
        n += 1
    return n


def similarity(name_a: str, name_b: str, config: MatchConfig | None = None) -> float:
    """Score how likely two item names denote the same product, in [0, 1].

    Token-set Jaccard of the normalized names, plus a bonus when one name
    contains the other and a bonus when the last words share a stem
    ("apple"/"apples").
    """
    cfg = config or DEFAULT_CONFIG
    a = normalize_name(name_a)
    b = normalize_name(name_b)
    a_tokens = tokens(a)
    b_tokens = tokens(b)
    if not a_tokens or not b_tokens:
        return 0.0

    sa, sb = set(a_tokens), set(b_tokens)
    score = len(sa & sb) / len(sa | sb)

    if a in b or b in a:
        score += cfg.substring_bonus
    if _common_prefix_len(a_tokens[-1], b_tokens[-1]) >= cfg.prefix_length:
        score += cfg.prefix_bonus

    return min(score, 1.0)


def _metric(row: AggregateRow | None, mode: str) -> float:
    if row is None:
        return 0.0
    return row.unit_price if mode == "unit" else row.total_cost


def _compare_row(
    a: AggregateRow | None,
    b: AggregateRow | None,
    *,
    mode: str,
    cfg: MatchConfig,
    match_type: str | None,
    score: float | None,
) -> ComparisonRow:
    delta = _metric(a, mode) - _metric(b, mode)
    if a is not None and b is not None:
        cheaper = verdict(delta, cfg.tolerance)
    else:
        cheaper = "A" if a is not None else "B"

    name = a.display_name if a is not None else b.display_name
    return ComparisonRow(
        name=name,
        key_a=a.key if a is not None else None,
        key_b=b.key if b is not None else None,
        qty_a=a.total_quantity if a is not None else 0.0,
        unit_a=a.unit_price if a is not None else 0.0,
        total_a=a.total_cost if a is not None else 0.0,
        qty_b=b.total_quantity if b is not None else 0.0,
        unit_b=b.unit_price if b is not None else 0.0,
        total_b=b.total_cost if b is not None else 0.0,
        cheaper=cheaper,
        delta=delta,
        match_type=match_type,
        score=score,
    )


def match(
    agg_a: dict[str, AggregateRow],
    agg_b: dict[str, AggregateRow],
    mode: str = "unit",
    config: MatchConfig | None = None,
) -> list[ComparisonRow]:
    """Pair the aggregated rows of basket A with those of basket B.

    Exact key matches are taken first. The remaining rows are paired
    greedily by descending similarity (one-to-one, candidates below
    ``min_score`` ignored). Whatever is still unpaired becomes a one-sided
    row. Two-sided rows come first, each group ordered by largest price
    difference, then by name.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown comparison mode: {mode!r} (expected one of {MODES})")
    cfg = config or DEFAULT_CONFIG

    rows: list[ComparisonRow] = []

    # Phase 1: identical keys.
    for key, ra in agg_a.items():
        rb = agg_b.get(key)
        if rb is not None:
            rows.append(_compare_row(ra, rb, mode=mode, cfg=cfg, match_type="exact", score=1.0))

    rest_a = [r for k, r in agg_a.items() if k not in agg_b]
    rest_b = [r for k, r in agg_b.items() if k not in agg_a]

    # Phase 2: fuzzy pairing of what is left.
    candidates: list[tuple[float, int, int]] = []
    for i, ra in enumerate(rest_a):
        for j, rb in enumerate(rest_b):
            score = similarity(ra.key, rb.key, cfg)
            if score >= cfg.min_score:
                candidates.append((score, i, j))
    candidates.sort(key=lambda c: -c[0])

    used_a: set[int] = set()
    used_b: set[int] = set()
    for score, i, j in candidates:
        if i in used_a or j in used_b:
            continue
        used_a.add(i)
        used_b.add(j)
        rows.append(
            _compare_row(rest_a[i], rest_b[j], mode=mode, cfg=cfg, match_type="fuzzy", score=score)
        )

    # Phase 3: one-sided leftovers.
    for i, ra in enumerate(rest_a):
        if i not in used_a:
            rows.append(_compare_row(ra, None, mode=mode, cfg=cfg, match_type=None, score=None))
    for j, rb in enumerate(rest_b):
        if j not in used_b:
            rows.append(_compare_row(None, rb, mode=mode, cfg=cfg, match_type=None, score=None))

    rows.sort(key=lambda r: (0 if r.two_sided else 1, -abs(r.delta), sort_key(r.name)))
    return rows
