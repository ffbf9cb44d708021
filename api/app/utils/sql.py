"""Helpers for building safe SQL clauses.

Column names are only ever taken from an explicit whitelist; values always
travel as bind parameters.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping


def build_set_clause(
    fields: Mapping[str, Any], allowed: Iterable[str]
) -> tuple[str, dict[str, Any]]:
    """Return an ``a = :set_a, b = :set_b`` fragment and its parameters.

    Keys outside ``allowed`` raise :class:`KeyError` rather than being dropped
    silently.
    """
    allowed = set(allowed)
    parts: list[str] = []
    params: dict[str, Any] = {}
    for key, value in fields.items():
        if key not in allowed:
            raise KeyError(key)
        param = f"set_{key}"
        parts.append(f"{key} = :{param}")
        params[param] = value
    return ", ".join(parts), params


def like_pattern(term: str) -> str:
    """Return a ``LIKE`` pattern matching ``term`` as a literal substring."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"
