from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from .baskets import (
    cleanup_basket,
    compare_baskets,
    create_best_basket,
    ensure_basket,
    upsert_item,
)
from .compare import compare_items
from .config import OPTIONAL_KEYS, REQUIRED_KEYS, Config
from .match import DEFAULT_CONFIG, MODES, MatchConfig
from .models import Item, item_from_row
from .report import build_report
from .supabase_client import SupabaseClient, SupabaseError

__version__ = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="basket-compare")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Log backend calls")

    sub = p.add_subparsers(dest="cmd", required=False)

    p_config = sub.add_parser("config", help="Config commands")
    sub_config = p_config.add_subparsers(dest="config_cmd", required=True)
    sub_config.add_parser("keys", help="List environment variables read by the tool")
    sub_config.add_parser("check", help="Validate the environment is filled")

    p_baskets = sub.add_parser("baskets", help="Basket commands")
    sub_baskets = p_baskets.add_subparsers(dest="baskets_cmd", required=True)
    sub_baskets.add_parser("list", help="List your baskets, newest first")
    sub_baskets.add_parser("ensure", help="Print your first basket, creating one if needed")

    p_items = sub.add_parser("items", help="Basket item commands")
    sub_items = p_items.add_subparsers(dest="items_cmd", required=True)

    p_dump = sub_items.add_parser("dump", help="Print the items of a basket")
    p_dump.add_argument("basket", help="Basket id")

    p_add = sub_items.add_parser("add", help="Add an item, merging with an existing one of the same name")
    p_add.add_argument("basket", help="Basket id")
    p_add.add_argument("name", help="Item name")
    p_add.add_argument("--qty", type=float, default=1.0)
    p_add.add_argument("--price", type=float, default=0.0, help="Unit price")
    p_add.add_argument("--service", action="store_true", help="Run with the service role key")

    p_cleanup = sub_items.add_parser("cleanup", help="Merge duplicate rows of a basket")
    p_cleanup.add_argument("basket", help="Basket id")

    p_compare = sub.add_parser("compare", help="Compare two stored baskets")
    p_compare.add_argument("basket_a", help="Basket A id")
    p_compare.add_argument("basket_b", help="Basket B id")
    _add_compare_options(p_compare)
    p_compare.add_argument("--save-best", action="store_true", help="Store the best list as a new basket")

    p_files = sub.add_parser("compare-files", help="Compare two local JSON item lists")
    p_files.add_argument("file_a", help="JSON array of {name, qty, price}")
    p_files.add_argument("file_b", help="JSON array of {name, qty, price}")
    _add_compare_options(p_files)

    return p


def _add_compare_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--mode", choices=MODES, default="unit", help="Compare unit prices or line totals")
    p.add_argument("--min-score", type=float, default=DEFAULT_CONFIG.min_score, help="Fuzzy match threshold")
    p.add_argument("--json", dest="json_out", default=None, help="Also write the report as JSON to this path")


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.version:
        print(__version__)
        return 0

    if args.cmd is None:
        p.print_help()
        return 0

    try:
        return _dispatch(args)
    except (ValueError, RuntimeError, OSError) as exc:
        # SupabaseError is a RuntimeError; message only, no traceback.
        print(f"ERROR: {exc}")
        return 1


def _dispatch(args) -> int:
    if args.cmd == "config":
        if args.config_cmd == "keys":
            for k in REQUIRED_KEYS:
                print(k)
            for k in OPTIONAL_KEYS:
                print(f"{k} (optional)")
            return 0

        if args.config_cmd == "check":
            # Intentionally do not print secret values
            cfg = Config.load_from_env()
            who = "user token" if cfg.access_token else "anon key only"
            print(f"OK: Supabase config present ({who})")
            return 0

    if args.cmd == "compare-files":
        items_a = _load_items_file(args.file_a)
        items_b = _load_items_file(args.file_b)
        comparison = compare_items(items_a, items_b, mode=args.mode, config=MatchConfig(min_score=args.min_score))
        _print_report(comparison, Path(args.file_a).stem, Path(args.file_b).stem, args.json_out)
        return 0

    cfg = Config.load_from_env()

    if args.cmd == "items" and args.items_cmd == "add":
        client = SupabaseClient.from_config(cfg, service=args.service)
        result = upsert_item(client, args.basket, args.name, args.qty, args.price)
        print(f"{result.action.upper()}: {result.message}")
        return 0

    client = SupabaseClient.from_config(cfg)

    if args.cmd == "baskets":
        user_id = client.get_user()

        if args.baskets_cmd == "list":
            for b in client.list_baskets(user_id):
                print(f"{b.id}  {b.name or '(no name)'}  {b.created_at or ''}")
            return 0

        if args.baskets_cmd == "ensure":
            b = ensure_basket(client, user_id, default_name=cfg.default_basket_name)
            print(f"{b.id}  {b.name}")
            return 0

    if args.cmd == "items":
        if args.items_cmd == "dump":
            for it in client.get_items(args.basket):
                print(f"{it.name}  qty: {it.quantity:g} | price: {it.unit_price:.2f} | line: {it.line_total:.2f}")
            return 0

        if args.items_cmd == "cleanup":
            merged = cleanup_basket(client, args.basket)
            print(f"OK: merged {merged} duplicate row(s)")
            return 0

    if args.cmd == "compare":
        return _run_compare(client, args)

    raise RuntimeError("unreachable")


def _run_compare(client: SupabaseClient, args) -> int:
    basket_a = client.get_basket(args.basket_a)
    basket_b = client.get_basket(args.basket_b)

    comparison = compare_baskets(
        client,
        basket_a.id,
        basket_b.id,
        mode=args.mode,
        config=MatchConfig(min_score=args.min_score),
    )
    _print_report(comparison, basket_a.name or basket_a.id, basket_b.name or basket_b.id, args.json_out)

    if args.save_best:
        try:
            user_id = client.get_user()
            created = create_best_basket(client, user_id, basket_a.name, basket_b.name, comparison.best)
        except SupabaseError as exc:
            print(f"ERROR saving best basket: {exc}")
            return 1
        print(f"\nOK: created basket {created.name} ({created.id})")
    return 0


def _print_report(comparison, name_a: str, name_b: str, json_out: str | None) -> None:
    report = build_report(comparison, basket_a=name_a, basket_b=name_b)
    print(report.summary_text())
    if json_out:
        path = report.write_json(json_out)
        print(f"\nReport written to {path}")


def _load_items_file(path: str) -> list[Item]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("items") or []
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of items")
    return [item_from_row(row) for row in data if isinstance(row, dict)]


if __name__ == "__main__":
    raise SystemExit(main())
