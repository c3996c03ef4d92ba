import pytest

from basket_compare.baskets import (
    cleanup_basket,
    compare_baskets,
    create_best_basket,
    ensure_basket,
    upsert_item,
)
from basket_compare.models import Basket, BestItem, BestList, Item, item_from_row


class FakeStore:
    """In-memory stand-in for SupabaseClient; rows keep null columns."""

    def __init__(self):
        self.baskets: list[Basket] = []
        self.rows: list[dict] = []
        self._next = 0

    def _id(self) -> str:
        self._next += 1
        return f"id-{self._next}"

    def add_row(self, basket_id, name, qty, price) -> str:
        row_id = self._id()
        self.rows.append({"id": row_id, "basket_id": basket_id, "name": name, "qty": qty, "price": price})
        return row_id

    def first_basket(self, user_id):
        return next((b for b in self.baskets if b.user_id == user_id), None)

    def create_basket(self, user_id, name):
        b = Basket(id=self._id(), name=name, user_id=user_id)
        self.baskets.append(b)
        return b

    def get_item_rows(self, basket_id):
        return [dict(r) for r in self.rows if r["basket_id"] == basket_id]

    def get_items(self, basket_id):
        return [item_from_row(r) for r in self.get_item_rows(basket_id)]

    def insert_items(self, basket_id, items, *, user_id=None):
        items = list(items)
        for it in items:
            self.add_row(basket_id, it.name, it.quantity, it.unit_price)
        return len(items)

    def update_item(self, item_id, *, quantity, unit_price):
        for r in self.rows:
            if r["id"] == item_id:
                r["qty"] = quantity
                r["price"] = unit_price

    def delete_items(self, ids):
        ids = set(ids)
        self.rows = [r for r in self.rows if r["id"] not in ids]
        return len(ids)


def test_ensure_basket_creates_default_once():
    store = FakeStore()
    first = ensure_basket(store, "u1")
    assert first.name == "Nakup"
    again = ensure_basket(store, "u1")
    assert again == first
    assert len(store.baskets) == 1


def test_ensure_basket_keeps_existing():
    store = FakeStore()
    existing = store.create_basket("u1", "Lidl")
    assert ensure_basket(store, "u1", default_name="Other") == existing


def test_upsert_inserts_new_item():
    store = FakeStore()
    result = upsert_item(store, "b1", "  Mléko ", 2, 19.9)
    assert result.action == "inserted"
    assert [(it.name, it.quantity, it.unit_price) for it in store.get_items("b1")] == [("Mléko", 2, 19.9)]


def test_upsert_skips_identical():
    store = FakeStore()
    upsert_item(store, "b1", "Mléko", 1, 20)
    result = upsert_item(store, "b1", "mleko", 1, 20)
    assert result.action == "skipped"
    assert "Mléko" in result.message
    assert len(store.get_items("b1")) == 1


def test_upsert_merges_and_keeps_cheaper_price():
    store = FakeStore()
    upsert_item(store, "b1", "Mléko", 1, 20)
    result = upsert_item(store, "b1", "MLEKO", 2, 18)
    assert result.action == "merged"
    assert "1 + 2 = 3" in result.message
    (it,) = store.get_items("b1")
    assert (it.name, it.quantity, it.unit_price) == ("Mléko", 3, 18)


def test_upsert_validates_input():
    store = FakeStore()
    with pytest.raises(ValueError):
        upsert_item(store, "", "milk")
    with pytest.raises(ValueError):
        upsert_item(store, "b1", "   ")


def test_cleanup_merges_duplicates():
    store = FakeStore()
    store.insert_items("b1", [
        Item("Milk", 1, 20),
        Item("milk ", 2, 18),
        Item("Bread", 1, 30),
        Item("MILK", 0, 25),
    ])
    store.insert_items("b2", [Item("milk", 1, 1)])

    assert cleanup_basket(store, "b1") == 2
    rows = {it.name: it for it in store.get_items("b1")}
    assert set(rows) == {"Milk", "Bread"}
    # a stored zero adds nothing
    assert rows["Milk"].quantity == 3
    assert rows["Milk"].unit_price == 18
    assert len(store.get_items("b2")) == 1


def test_cleanup_keeps_stored_zero_quantity():
    store = FakeStore()
    keep = store.add_row("b1", "milk", 0, 5)
    store.add_row("b1", "Milk", 2, 6)

    assert cleanup_basket(store, "b1") == 1
    (row,) = store.get_item_rows("b1")
    assert (row["id"], row["qty"], row["price"]) == (keep, 2, 5)


def test_cleanup_null_quantity_counts_as_one():
    store = FakeStore()
    store.add_row("b1", "milk", None, 5)
    store.add_row("b1", "milk", 2, 6)

    assert cleanup_basket(store, "b1") == 1
    (row,) = store.get_item_rows("b1")
    assert (row["qty"], row["price"]) == (3, 5)


def test_cleanup_ignores_null_duplicate_price():
    store = FakeStore()
    store.add_row("b1", "milk", 1, 5)
    store.add_row("b1", "milk", 1, None)

    assert cleanup_basket(store, "b1") == 1
    (row,) = store.get_item_rows("b1")
    assert (row["qty"], row["price"]) == (2, 5)


def test_upsert_onto_null_quantity_counts_as_one():
    store = FakeStore()
    store.add_row("b1", "milk", None, 20)
    result = upsert_item(store, "b1", "Milk", 2, 20)
    assert result.action == "merged"
    assert "1 + 2 = 3" in result.message
    (row,) = store.get_item_rows("b1")
    assert row["qty"] == 3
    assert row["price"] == 20


def test_cleanup_nothing_to_do():
    store = FakeStore()
    assert cleanup_basket(store, "empty") == 0
    store.insert_items("b1", [Item("Milk", 1, 20)])
    assert cleanup_basket(store, "b1") == 0


def test_compare_baskets_loads_both_sides():
    store = FakeStore()
    store.insert_items("a", [Item("Mléko", 1, 20)])
    store.insert_items("b", [Item("mleko", 1, 18)])
    cmp = compare_baskets(store, "a", "b")
    assert len(cmp.rows) == 1
    assert cmp.rows[0].cheaper == "B"
    assert cmp.best.total == 18


def test_compare_baskets_requires_two_distinct():
    store = FakeStore()
    with pytest.raises(ValueError):
        compare_baskets(store, "a", "")
    with pytest.raises(ValueError):
        compare_baskets(store, "a", "a")


def test_create_best_basket():
    store = FakeStore()
    best = BestList(
        items=[BestItem("Chléb", 2, 30, "A"), BestItem("Mléko", 1, 18, "B")],
        total=78,
    )
    basket = create_best_basket(store, "u1", "Lidl", "Albert", best)
    assert basket.name == "Best (Lidl vs Albert)"
    assert basket.user_id == "u1"
    assert [(it.name, it.quantity, it.unit_price) for it in store.get_items(basket.id)] == [
        ("Chléb", 2, 30),
        ("Mléko", 1, 18),
    ]


def test_create_best_basket_rejects_empty():
    with pytest.raises(ValueError):
        create_best_basket(FakeStore(), "u1", "A", "B", BestList())
