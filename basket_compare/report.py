from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path

from .models import BestItem, Comparison, ComparisonRow


_VERDICT_TEXT = {"A": "A is cheaper", "B": "B is cheaper", "Same": "Same total"}


@dataclass
class CompareReport:
    timestamp: str
    basket_a: str
    basket_b: str
    mode: str
    total_a: float
    total_b: float
    difference: float
    cheaper: str
    best_total: float
    rows: list[ComparisonRow]
    best: list[BestItem]

    def summary_text(self) -> str:
        metric = "unit price" if self.mode == "unit" else "line total"
        lines = [
            f"Compare: A={self.basket_a}  B={self.basket_b}  (by {metric})",
            f"Total A: {self.total_a:.2f}  Total B: {self.total_b:.2f}  "
            f"Difference (A - B): {self.difference:.2f}  [{_VERDICT_TEXT[self.cheaper]}]",
            "",
        ]
        for i, r in enumerate(self.rows, 1):
            tag = r.match_type or ("only A" if r.key_b is None else "only B")
            lines.append(f"  {i}. [{tag}] {r.name}  cheaper: {r.cheaper}  delta: {r.delta:+.2f}")
            lines.append(
                f"     A: {r.qty_a:g} x {r.unit_a:.2f} = {r.total_a:.2f}   "
                f"B: {r.qty_b:g} x {r.unit_b:.2f} = {r.total_b:.2f}"
            )

        lines.append("")
        lines.append(f"Best list ({len(self.best)} items, total {self.best_total:.2f}):")
        for b in self.best:
            lines.append(f"  [{b.source}] {b.name}  {b.quantity:g} x {b.unit_price:.2f} = {b.line_total:.2f}")
        return "\n".join(lines)

    def write_json(self, path: str = "artifacts/compare_report.json") -> str:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(asdict(self), indent=2, ensure_ascii=False), encoding="utf-8")
        return str(out)


def build_report(comparison: Comparison, *, basket_a: str, basket_b: str) -> CompareReport:
    return CompareReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        basket_a=basket_a,
        basket_b=basket_b,
        mode=comparison.mode,
        total_a=comparison.total_a,
        total_b=comparison.total_b,
        difference=comparison.difference,
        cheaper=comparison.cheaper_basket,
        best_total=comparison.best.total,
        rows=comparison.rows,
        best=comparison.best.items,
    )
