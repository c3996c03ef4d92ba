from __future__ import annotations

import logging
from typing import Any, Iterable

from .config import Config
from .http import HttpClient
from .models import Basket, Item, item_from_row

logger = logging.getLogger(__name__)

BASKETS = "/rest/v1/baskets"
BASKET_ITEMS = "/rest/v1/basket_items"

_BASKET_COLUMNS = "id,name,created_at,user_id"
_ITEM_COLUMNS = "id,basket_id,name,price,qty,created_at"


class SupabaseError(RuntimeError):
    """The backend rejected a request or returned something unreadable."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


def _basket_from_row(row: dict[str, Any]) -> Basket:
    return Basket(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        user_id=str(row["user_id"]) if row.get("user_id") is not None else None,
        created_at=row.get("created_at"),
    )


class SupabaseClient:
    """Basket/item storage on Supabase's REST endpoint.

    Every call runs with the configured bearer token, so row-level security
    on the backend decides which rows are visible.
    """

    def __init__(self, *, supabase_url: str, api_key: str, token: str | None = None, http: HttpClient | None = None):
        self.http = http or HttpClient(base_url=supabase_url, api_key=api_key, token=token or api_key)

    @classmethod
    def from_config(cls, cfg: Config, *, service: bool = False) -> "SupabaseClient":
        token = cfg.bearer_token
        if service:
            if not cfg.service_role_key:
                raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY is required for this command")
            token = cfg.service_role_key
        return cls(supabase_url=cfg.supabase_url, api_key=cfg.supabase_anon_key, token=token)

    # -- auth ---------------------------------------------------------------

    def get_user(self) -> str:
        """Return the id of the user owning the bearer token."""
        data = self._json(self.http.get("/auth/v1/user"), "/auth/v1/user")
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise SupabaseError("Not authenticated", status=401)
        return str(user_id)

    # -- baskets ------------------------------------------------------------

    def list_baskets(self, user_id: str, *, ascending: bool = False) -> list[Basket]:
        params = {
            "select": _BASKET_COLUMNS,
            "user_id": f"eq.{user_id}",
            "order": f"created_at.{'asc' if ascending else 'desc'}",
        }
        rows = self._json(self.http.get(BASKETS, params=params), BASKETS)
        return [_basket_from_row(r) for r in rows]

    def first_basket(self, user_id: str) -> Basket | None:
        params = {
            "select": _BASKET_COLUMNS,
            "user_id": f"eq.{user_id}",
            "order": "created_at.asc",
            "limit": 1,
        }
        rows = self._json(self.http.get(BASKETS, params=params), BASKETS)
        return _basket_from_row(rows[0]) if rows else None

    def get_basket(self, basket_id: str) -> Basket:
        params = {"select": _BASKET_COLUMNS, "id": f"eq.{basket_id}"}
        rows = self._json(self.http.get(BASKETS, params=params), BASKETS)
        if not rows:
            raise SupabaseError(f"Basket not found: {basket_id}", status=404)
        return _basket_from_row(rows[0])

    def create_basket(self, user_id: str, name: str) -> Basket:
        rows = self._json(
            self.http.post(
                BASKETS,
                json={"user_id": user_id, "name": name},
                params={"select": _BASKET_COLUMNS},
                headers={"Prefer": "return=representation"},
            ),
            BASKETS,
        )
        if not rows:
            raise SupabaseError("Failed to create basket")
        basket = _basket_from_row(rows[0])
        logger.info("created basket %s (%s)", basket.id, basket.name)
        return basket

    # -- items --------------------------------------------------------------

    def get_item_rows(self, basket_id: str) -> list[dict[str, Any]]:
        """Item rows exactly as stored, null columns included."""
        params = {
            "select": _ITEM_COLUMNS,
            "basket_id": f"eq.{basket_id}",
            "order": "created_at.desc",
        }
        return self._json(self.http.get(BASKET_ITEMS, params=params), BASKET_ITEMS)

    def get_items(self, basket_id: str) -> list[Item]:
        return [item_from_row(r) for r in self.get_item_rows(basket_id)]

    def insert_items(self, basket_id: str, items: Iterable[Item], *, user_id: str | None = None) -> int:
        payload = []
        for it in items:
            row: dict[str, Any] = {
                "basket_id": basket_id,
                "name": it.name.strip(),
                "qty": it.quantity,
                "price": it.unit_price,
            }
            if user_id is not None:
                row["user_id"] = user_id
            payload.append(row)
        if not payload:
            return 0
        self._check(self.http.post(BASKET_ITEMS, json=payload), BASKET_ITEMS)
        logger.info("inserted %d item(s) into basket %s", len(payload), basket_id)
        return len(payload)

    def update_item(self, item_id: str, *, quantity: float, unit_price: float) -> None:
        self._check(
            self.http.patch(BASKET_ITEMS, json={"qty": quantity, "price": unit_price}, params={"id": f"eq.{item_id}"}),
            BASKET_ITEMS,
        )

    def delete_items(self, ids: Iterable[str]) -> int:
        ids = [str(i) for i in ids]
        if not ids:
            return 0
        self._check(self.http.delete(BASKET_ITEMS, params={"id": f"in.({','.join(ids)})"}), BASKET_ITEMS)
        logger.info("deleted %d item row(s)", len(ids))
        return len(ids)

    # -- plumbing -----------------------------------------------------------

    def _check(self, resp, path: str) -> None:
        if resp.status_code >= 400:
            logger.warning("Supabase %s returned %s", path, resp.status_code)
            raise SupabaseError(
                f"Supabase API error {resp.status_code} for {path}: {resp.text[:500]}",
                status=resp.status_code,
            )

    def _json(self, resp, path: str) -> Any:
        self._check(resp, path)
        try:
            return resp.json()
        except ValueError as e:
            raise SupabaseError(f"Failed to decode JSON from Supabase for {path}: {e}") from e
