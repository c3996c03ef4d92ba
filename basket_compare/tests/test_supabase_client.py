import pytest

from basket_compare.config import Config
from basket_compare.models import Item
from basket_compare.supabase_client import BASKET_ITEMS, BASKETS, SupabaseClient, SupabaseError


class _Resp:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("no JSON")
        return self._data


class FakeHttp:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, path, **kw):
        self.calls.append((method, path, kw))
        return self.responses.pop(0)

    def get(self, path, *, params=None):
        return self._next("GET", path, params=params)

    def post(self, path, *, json, params=None, headers=None):
        return self._next("POST", path, json=json, params=params, headers=headers)

    def patch(self, path, *, json, params=None):
        return self._next("PATCH", path, json=json, params=params)

    def delete(self, path, *, params=None):
        return self._next("DELETE", path, params=params)


def _client(*responses):
    http = FakeHttp(*responses)
    return SupabaseClient(supabase_url="https://x.supabase.co", api_key="anon", http=http), http


def test_get_user():
    client, http = _client(_Resp(data={"id": "user-1", "email": "a@b.c"}))
    assert client.get_user() == "user-1"
    assert http.calls[0][1] == "/auth/v1/user"


def test_get_user_unauthenticated():
    client, _ = _client(_Resp(status_code=401, text="invalid JWT"))
    with pytest.raises(SupabaseError) as exc:
        client.get_user()
    assert exc.value.status == 401


def test_list_baskets_filters_by_user_newest_first():
    client, http = _client(_Resp(data=[
        {"id": "b2", "name": "Albert", "created_at": "2024-02-01", "user_id": "u1"},
        {"id": "b1", "name": None, "created_at": "2024-01-01", "user_id": "u1"},
    ]))
    baskets = client.list_baskets("u1")
    assert [b.id for b in baskets] == ["b2", "b1"]
    assert baskets[1].name == ""
    _, path, kw = http.calls[0]
    assert path == BASKETS
    assert kw["params"]["user_id"] == "eq.u1"
    assert kw["params"]["order"] == "created_at.desc"


def test_first_basket_none():
    client, http = _client(_Resp(data=[]))
    assert client.first_basket("u1") is None
    assert http.calls[0][2]["params"]["limit"] == 1


def test_get_items_coerces_bad_numbers():
    client, http = _client(_Resp(data=[
        {"id": 1, "basket_id": "b1", "name": "Milk", "qty": None, "price": "19.90"},
        {"id": 2, "basket_id": "b1", "name": "Bread", "qty": 2, "price": "NaN"},
    ]))
    items = client.get_items("b1")
    assert items[0] == Item("Milk", 0.0, 19.9, id="1", basket_id="b1")
    assert items[1].unit_price == 0.0
    assert http.calls[0][2]["params"]["basket_id"] == "eq.b1"


def test_create_basket_asks_for_representation():
    client, http = _client(_Resp(status_code=201, data=[{"id": "b9", "name": "Best (A vs B)", "user_id": "u1"}]))
    b = client.create_basket("u1", "Best (A vs B)")
    assert b.id == "b9"
    _, _, kw = http.calls[0]
    assert kw["json"] == {"user_id": "u1", "name": "Best (A vs B)"}
    assert kw["headers"]["Prefer"] == "return=representation"


def test_insert_items_payload():
    client, http = _client(_Resp(status_code=201))
    n = client.insert_items("b1", [Item(" Milk ", 2, 18)], user_id="u1")
    assert n == 1
    _, path, kw = http.calls[0]
    assert path == BASKET_ITEMS
    assert kw["json"] == [{"basket_id": "b1", "name": "Milk", "qty": 2, "price": 18, "user_id": "u1"}]


def test_insert_and_delete_nothing_skip_request():
    client, http = _client()
    assert client.insert_items("b1", []) == 0
    assert client.delete_items([]) == 0
    assert http.calls == []


def test_update_and_delete_filters():
    client, http = _client(_Resp(status_code=204), _Resp(status_code=204))
    client.update_item("i1", quantity=3, unit_price=18)
    client.delete_items(["i2", "i3"])
    assert http.calls[0][2]["params"] == {"id": "eq.i1"}
    assert http.calls[0][2]["json"] == {"qty": 3, "price": 18}
    assert http.calls[1][2]["params"] == {"id": "in.(i2,i3)"}


def test_error_status_raises():
    client, _ = _client(_Resp(status_code=500, text="boom"))
    with pytest.raises(SupabaseError, match="500"):
        client.get_items("b1")


def test_undecodable_json_raises():
    client, _ = _client(_Resp(status_code=200, data=None, text="<html>"))
    with pytest.raises(SupabaseError, match="decode"):
        client.list_baskets("u1")


def test_from_config_service_requires_key():
    cfg = Config(supabase_url="https://x.supabase.co", supabase_anon_key="anon")
    with pytest.raises(RuntimeError):
        SupabaseClient.from_config(cfg, service=True)
    client = SupabaseClient.from_config(cfg)
    assert client.http.token == "anon"
    assert client.http.api_key == "anon"
