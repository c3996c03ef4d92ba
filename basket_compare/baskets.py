from __future__ import annotations

import logging
from dataclasses import dataclass

from .compare import compare_items
from .config import DEFAULT_BASKET_NAME
from .match import MatchConfig
from .models import Basket, BestList, Comparison, Item, coerce_number
from .normalize import normalize_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpsertResult:
    action: str  # "inserted", "skipped" or "merged"
    message: str


@dataclass(frozen=True)
class _StoredItem:
    # Row as stored; None means the column is null.
    id: str
    name: str
    quantity: float | None
    unit_price: float | None


def _stored_items(store, basket_id: str) -> list[_StoredItem]:
    out: list[_StoredItem] = []
    for row in store.get_item_rows(basket_id):
        out.append(
            _StoredItem(
                id=str(row.get("id")),
                name=str(row.get("name") or ""),
                quantity=coerce_number(row.get("qty"), None),
                unit_price=coerce_number(row.get("price"), None),
            )
        )
    return out


def ensure_basket(store, user_id: str, *, default_name: str = DEFAULT_BASKET_NAME) -> Basket:
    """Return the user's oldest basket, creating one if they have none."""
    existing = store.first_basket(user_id)
    if existing is not None:
        return existing
    logger.info("user %s has no basket yet, creating %r", user_id, default_name)
    return store.create_basket(user_id, default_name)


def upsert_item(
    store,
    basket_id: str,
    name: str,
    quantity: float = 1,
    unit_price: float = 0,
) -> UpsertResult:
    """Add an item to a basket, folding it into an existing row of the same name.

    A row with the same normalized name and identical quantity and price is
    left alone. Otherwise quantities are summed and the cheaper unit price
    is kept. A stored row with a null quantity counts as one unit, a null
    price as zero.
    """
    if not basket_id:
        raise ValueError("Missing basketId")
    if not name or not name.strip():
        raise ValueError("Missing name")

    key = normalize_name(name)
    existing = next(
        (it for it in _stored_items(store, basket_id) if normalize_name(it.name) == key),
        None,
    )

    if existing is None:
        store.insert_items(basket_id, [Item(name=name.strip(), quantity=quantity, unit_price=unit_price)])
        return UpsertResult("inserted", "Added as a new item.")

    ex_qty = 1.0 if existing.quantity is None else existing.quantity
    ex_price = 0.0 if existing.unit_price is None else existing.unit_price

    if ex_qty == quantity and ex_price == unit_price:
        return UpsertResult("skipped", f"Item already exists ({existing.name}). Nothing added.")

    new_qty = ex_qty + quantity
    new_price = min(ex_price, unit_price)
    store.update_item(existing.id, quantity=new_qty, unit_price=new_price)
    return UpsertResult(
        "merged",
        f"Item already exists ({existing.name}). "
        f"Merged quantities (qty {ex_qty:g} + {quantity:g} = {new_qty:g}).",
    )


def cleanup_basket(store, basket_id: str) -> int:
    """Merge duplicate rows of a basket in storage.

    The first row of each name keeps the summed quantity and the lowest
    price; the other rows are deleted. Returns how many rows were deleted.
    Null quantities count as one unit; null prices never lower the kept price.
    """
    if not basket_id:
        raise ValueError("Missing basketId")

    items = _stored_items(store, basket_id)
    if not items:
        return 0

    kept: dict[str, _StoredItem] = {}
    merged_qty: dict[str, float] = {}
    merged_price: dict[str, float] = {}
    to_delete: list[str] = []

    for it in items:
        key = normalize_name(it.name)
        qty = 1.0 if it.quantity is None else it.quantity
        if key not in kept:
            kept[key] = it
            merged_qty[key] = qty
            merged_price[key] = 0.0 if it.unit_price is None else it.unit_price
        else:
            merged_qty[key] += qty
            if it.unit_price is not None:
                merged_price[key] = min(merged_price[key], it.unit_price)
            to_delete.append(it.id)

    if not to_delete:
        return 0

    for key, it in kept.items():
        if merged_qty[key] != it.quantity or merged_price[key] != it.unit_price:
            store.update_item(it.id, quantity=merged_qty[key], unit_price=merged_price[key])

    store.delete_items(to_delete)
    logger.info("basket %s: merged %d duplicate row(s)", basket_id, len(to_delete))
    return len(to_delete)


def compare_baskets(
    store,
    basket_a: str,
    basket_b: str,
    *,
    mode: str = "unit",
    config: MatchConfig | None = None,
) -> Comparison:
    if not basket_a or not basket_b:
        raise ValueError("Select Basket A and Basket B.")
    if basket_a == basket_b:
        raise ValueError("Basket A and Basket B must be different.")

    items_a = store.get_items(basket_a)
    items_b = store.get_items(basket_b)
    logger.info("comparing %s (%d rows) with %s (%d rows)", basket_a, len(items_a), basket_b, len(items_b))
    return compare_items(items_a, items_b, mode=mode, config=config)


def best_basket_name(name_a: str, name_b: str) -> str:
    return f"Best ({name_a} vs {name_b})"


def create_best_basket(store, user_id: str, name_a: str, name_b: str, best: BestList) -> Basket:
    """Store a best list as a new basket of the user."""
    if not best.items:
        raise ValueError("No items provided")

    basket = store.create_basket(user_id, best_basket_name(name_a, name_b))
    store.insert_items(
        basket.id,
        [Item(name=b.name, quantity=b.quantity, unit_price=b.unit_price) for b in best.items],
        user_id=user_id,
    )
    return basket
