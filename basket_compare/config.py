from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


REQUIRED_KEYS = [
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
]

OPTIONAL_KEYS = [
    # JWT of the signed-in user; row-level security scopes every query to it.
    "SUPABASE_ACCESS_TOKEN",
    # Bypasses row-level security. Only needed for item upserts run as a service.
    "SUPABASE_SERVICE_ROLE_KEY",
    # Name of the basket created for a user who has none.
    "BASKET_DEFAULT_NAME",
]

DEFAULT_BASKET_NAME = "Nakup"

_PLACEHOLDERS = {"PLACEHOLDER", "MASKED", "CHANGEME", ""}


@dataclass(frozen=True)
class Config:
    supabase_url: str
    supabase_anon_key: str
    access_token: str | None = None
    service_role_key: str | None = None
    default_basket_name: str = DEFAULT_BASKET_NAME

    @property
    def bearer_token(self) -> str:
        """Token sent as ``Authorization: Bearer``.

        The user's session token wins; the anon key is the fallback, which
        only sees rows that row-level security leaves public.
        """
        return self.access_token or self.supabase_anon_key

    @staticmethod
    def load_from_env(environ: Mapping[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ

        values: dict[str, str] = {}
        for k in REQUIRED_KEYS:
            if k not in env:
                raise RuntimeError(f"Missing environment variable: {k}")
            val = env[k]
            if not val or val.strip() in _PLACEHOLDERS:
                raise RuntimeError(f"Environment variable {k} is still a placeholder")
            values[k] = val.strip()

        optional = {k: (env.get(k) or "").strip() or None for k in OPTIONAL_KEYS}

        return Config(
            supabase_url=values["SUPABASE_URL"].rstrip("/"),
            supabase_anon_key=values["SUPABASE_ANON_KEY"],
            access_token=optional["SUPABASE_ACCESS_TOKEN"],
            service_role_key=optional["SUPABASE_SERVICE_ROLE_KEY"],
            default_basket_name=optional["BASKET_DEFAULT_NAME"] or DEFAULT_BASKET_NAME,
        )
