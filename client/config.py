"""Where the client sends its requests."""

from __future__ import annotations

import os

# Checked in order; the first non-blank value wins.
BASE_URL_ENV = ("SWEETSHOP_PUBLIC_API_URL", "SWEETSHOP_API_URL")


def resolve_api_base_url() -> str:
    """Return the configured API base URL without a trailing slash.

    An empty string means paths are used as-is, relative to the page origin.
    """

    for name in BASE_URL_ENV:
        value = os.getenv(name, "").strip()
        if value:
            return value.rstrip("/")
    return ""


def api_url(path: str, base_url: str | None = None) -> str:
    base = resolve_api_base_url() if base_url is None else base_url.rstrip("/")
    if not path.startswith("/"):
        path = "/" + path
    return f"{base}{path}"
