"""Thin ``requests`` wrapper over the inventory REST API."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

from .config import api_url, resolve_api_base_url
from .edit_sweet import EditForm, build_update_payload

logger = logging.getLogger("client")

DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """Non-2xx response carrying the server's error envelope."""

    def __init__(
        self,
        status_code: int,
        code: Any = None,
        message: str = "",
        details: Optional[dict] = None,
    ) -> None:
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


class SweetsClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = resolve_api_base_url() if base_url is None else base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token: Optional[str] = None

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        resp = self.session.request(
            method,
            api_url(path, self.base_url),
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )
        try:
            body = resp.json()
        except ValueError:
            body = None
        if not resp.ok:
            error = body.get("error") if isinstance(body, dict) else None
            error = error if isinstance(error, dict) else {}
            logger.warning("%s %s failed with %s", method, path, resp.status_code)
            raise ApiError(
                resp.status_code,
                error.get("code"),
                error.get("message") or resp.reason or "",
                error.get("details"),
            )
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    def register(self, username: str, password: str) -> dict:
        return self._request(
            "POST", "/api/auth/register", json={"username": username, "password": password}
        )

    def login(self, username: str, password: str) -> str:
        """Authenticate and keep the bearer token for later mutations."""

        data = self._request(
            "POST", "/api/auth/login", json={"username": username, "password": password}
        )
        self.token = data["access_token"]
        return self.token

    def list_sweets(self, **filters: Any) -> list[dict]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._request("GET", "/api/sweets", params=params)

    def search_sweets(
        self,
        name: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> list[dict]:
        params = {
            "name": name,
            "category": category,
            "minPrice": min_price,
            "maxPrice": max_price,
        }
        return self._request(
            "GET",
            "/api/sweets/search",
            params={k: v for k, v in params.items() if v is not None},
        )

    def get_sweet(self, sweet_id: int) -> dict:
        return self._request("GET", f"/api/sweets/{sweet_id}")

    def create_sweet(self, fields: Mapping[str, Any]) -> dict:
        return self._request("POST", "/api/sweets", json=dict(fields))

    def update_sweet(self, sweet_id: int, fields: Mapping[str, Any]) -> dict:
        return self._request("PUT", f"/api/sweets/{sweet_id}", json=dict(fields))

    def delete_sweet(self, sweet_id: int) -> dict:
        return self._request("DELETE", f"/api/sweets/{sweet_id}")

    def restock(self, sweet_id: int, amount: int) -> dict:
        return self._request(
            "POST", f"/api/sweets/{sweet_id}/restock", json={"amount": amount}
        )

    def purchase(self, sweet_id: int, quantity: int = 1) -> dict:
        return self._request(
            "POST", f"/api/sweets/{sweet_id}/purchase", json={"quantity": quantity}
        )

    def edit_sweet(self, previous: Mapping[str, Any], form: EditForm) -> dict:
        """Validate ``form`` against ``previous`` and submit the update.

        Validation and image errors propagate before any request is sent.
        """

        payload = build_update_payload(previous, form)
        return self.update_sweet(previous["id"], payload)
