"""Inventory operations over the ``sweets`` table.

Every operation is a single parameterized statement executed through the
:class:`~api.app.db.Database` gateway. Column names in dynamic fragments come
only from :data:`WRITABLE_COLUMNS`.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping, Optional, Type, TypeVar

import pydantic

from ..db import Database
from ..errors import InsufficientStock, NotFound, ValidationError
from ..schemas import Sweet, SweetCreate, SweetUpdate
from ..utils.sql import build_set_clause, like_pattern

COLUMNS = "id, name, category, price, quantity, image_url, created_at, updated_at"
WRITABLE_COLUMNS = ("name", "category", "price", "quantity", "image_url")

logger = logging.getLogger("api.sweets")

M = TypeVar("M", bound=pydantic.BaseModel)


def _validate(model: Type[M], fields: Mapping[str, Any] | M) -> M:
    """Coerce ``fields`` into ``model`` or raise :class:`ValidationError`."""
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(fields)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid sweet data", details={"errors": field_errors(exc.errors())}
        ) from exc


def field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into JSON-safe ``field``/``message`` pairs."""
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "invalid"),
        }
        for err in errors
    ]


class SweetService:
    """CRUD and stock adjustment for sweets."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def list(
        self,
        category: Optional[str] = None,
        name: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
    ) -> list[Sweet]:
        """Return sweets ordered by id, optionally filtered.

        ``category`` and ``name`` match case-insensitive substrings; the price
        bounds are inclusive.
        """
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("min_price must not exceed max_price")
        clauses: list[str] = []
        params: dict[str, Any] = {}
        if category:
            clauses.append("LOWER(category) LIKE :category ESCAPE '\\'")
            params["category"] = like_pattern(category)
        if name:
            clauses.append("LOWER(name) LIKE :name ESCAPE '\\'")
            params["name"] = like_pattern(name)
        if min_price is not None:
            clauses.append("price >= :min_price")
            params["min_price"] = Decimal(min_price)
        if max_price is not None:
            clauses.append("price <= :max_price")
            params["max_price"] = Decimal(max_price)
        where = " AND ".join(clauses) or "1=1"
        rows = await self.db.execute(
            f"SELECT {COLUMNS} FROM sweets WHERE {where} ORDER BY id", params
        )
        return [Sweet.model_validate(row) for row in rows]

    async def get(self, sweet_id: int) -> Sweet:
        rows = await self.db.execute(
            f"SELECT {COLUMNS} FROM sweets WHERE id = :id", {"id": sweet_id}
        )
        if not rows:
            raise NotFound(f"Sweet {sweet_id} not found")
        return Sweet.model_validate(rows[0])

    async def create(self, fields: Mapping[str, Any] | SweetCreate) -> Sweet:
        """Validate ``fields`` and insert a new sweet."""
        payload = _validate(SweetCreate, fields)
        rows = await self.db.execute(
            "INSERT INTO sweets (name, category, price, quantity, image_url) "
            "VALUES (:name, :category, :price, :quantity, :image_url) "
            f"RETURNING {COLUMNS}",
            payload.model_dump(),
        )
        sweet = Sweet.model_validate(rows[0])
        logger.info("sweet created id=%s", sweet.id)
        return sweet

    async def update(
        self, sweet_id: int, fields: Mapping[str, Any] | SweetUpdate
    ) -> Sweet:
        """Apply the supplied fields only; omitted fields keep their values."""
        changes = _validate(SweetUpdate, fields).changes()
        if not changes:
            return await self.get(sweet_id)
        set_clause, params = build_set_clause(changes, WRITABLE_COLUMNS)
        params["id"] = sweet_id
        rows = await self.db.execute(
            f"UPDATE sweets SET {set_clause}, updated_at = CURRENT_TIMESTAMP "
            f"WHERE id = :id RETURNING {COLUMNS}",
            params,
        )
        if not rows:
            raise NotFound(f"Sweet {sweet_id} not found")
        logger.info("sweet updated id=%s fields=%s", sweet_id, sorted(changes))
        return Sweet.model_validate(rows[0])

    async def delete(self, sweet_id: int) -> None:
        rows = await self.db.execute(
            "DELETE FROM sweets WHERE id = :id RETURNING id", {"id": sweet_id}
        )
        if not rows:
            raise NotFound(f"Sweet {sweet_id} not found")
        logger.info("sweet deleted id=%s", sweet_id)

    async def adjust_quantity(self, sweet_id: int, delta: int) -> Sweet:
        """Add ``delta`` (negative for a sale) to the stock of ``sweet_id``.

        The change is a single conditional update, so stock never drops below
        zero even under concurrent requests.
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError("delta must be an integer")
        rows = await self.db.execute(
            "UPDATE sweets SET quantity = quantity + :delta, "
            "updated_at = CURRENT_TIMESTAMP "
            f"WHERE id = :id AND quantity + :delta >= 0 RETURNING {COLUMNS}",
            {"id": sweet_id, "delta": delta},
        )
        if rows:
            logger.info("sweet stock adjusted id=%s delta=%s", sweet_id, delta)
            return Sweet.model_validate(rows[0])
        current = await self.get(sweet_id)
        raise InsufficientStock(
            f"Only {current.quantity} left in stock",
            details={"available": current.quantity, "requested": -delta},
        )

    async def purchase(self, sweet_id: int, quantity: int) -> Sweet:
        """Sell ``quantity`` units."""
        if quantity <= 0:
            raise ValidationError("quantity must be positive")
        return await self.adjust_quantity(sweet_id, -quantity)

    async def restock(self, sweet_id: int, amount: int) -> Sweet:
        """Add ``amount`` units."""
        if amount <= 0:
            raise ValidationError("amount must be positive")
        return await self.adjust_quantity(sweet_id, amount)


__all__ = ["SweetService", "field_errors"]
