from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests


@dataclass(frozen=True)
class HttpClient:
    base_url: str
    api_key: str
    token: str
    timeout_s: float = 30.0

    def _url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        return requests.request(
            method,
            self._url(path),
            params=params,
            json=json,
            headers=self._headers(headers),
            timeout=self.timeout_s,
        )

    def get(self, path: str, *, params: dict | None = None) -> requests.Response:
        return self.request("GET", path, params=params)

    def post(self, path: str, *, json: Any, params: dict | None = None, headers: dict | None = None) -> requests.Response:
        return self.request("POST", path, params=params, json=json, headers=headers)

    def patch(self, path: str, *, json: Any, params: dict | None = None) -> requests.Response:
        return self.request("PATCH", path, params=params, json=json)

    def delete(self, path: str, *, params: dict | None = None) -> requests.Response:
        return self.request("DELETE", path, params=params)
