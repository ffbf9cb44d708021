# schemas.py

"""Pydantic models for API payloads and responses."""

from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,(?P<payload>[A-Za-z0-9+/]*={0,2})$")

Text = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)
]
Price = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]
Quantity = Annotated[int, Field(ge=0)]


def normalize_image_url(value: Any) -> Optional[str]:
    """Return ``value`` as a stored image reference.

    Blank strings become ``None``. Anything else must be an ``http(s)`` URL or
    a base64 ``data:image/...`` payload decoding to at most 5 MB.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("image_url must be a string or null")
    value = value.strip()
    if not value:
        return None
    match = DATA_URL_RE.match(value)
    if match:
        payload = match.group("payload")
        decoded_size = len(payload) * 3 // 4 - payload.count("=")
        if decoded_size > MAX_IMAGE_BYTES:
            raise ValueError("image must be smaller than 5MB")
        try:
            base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ValueError("image data is not valid base64") from exc
        return value
    parsed = urlparse(value)
    if parsed.scheme in {"http", "https"} and parsed.netloc:
        return value
    raise ValueError("image_url must be an http(s) URL or a base64 image data URL")


class SweetCreate(BaseModel):
    """Input schema for creating a sweet."""

    model_config = ConfigDict(extra="forbid")

    name: Text
    category: Text
    price: Price
    quantity: Quantity
    image_url: Optional[str] = None

    @field_validator("image_url", mode="before")
    @classmethod
    def normalize_image(cls, value: Any) -> Optional[str]:
        return normalize_image_url(value)


class SweetUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied.

    ``image_url: null`` clears the image, while ``null`` for any other field
    is rejected.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[Text] = None
    category: Optional[Text] = None
    price: Optional[Price] = None
    quantity: Optional[Quantity] = None
    image_url: Optional[str] = None

    @field_validator("image_url", mode="before")
    @classmethod
    def normalize_image(cls, value: Any) -> Optional[str]:
        return normalize_image_url(value)

    @model_validator(mode="after")
    def required_not_null(self) -> "SweetUpdate":
        for field in ("name", "category", "price", "quantity"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Return only the fields supplied by the caller."""
        return self.model_dump(exclude_unset=True)


class Sweet(BaseModel):
    """Sweet representation returned from the API."""

    id: int
    name: str
    category: str
    price: float
    quantity: int
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RestockIn(BaseModel):
    """Units to add to stock."""

    amount: int = Field(..., gt=0, examples=[10])


class PurchaseIn(BaseModel):
    """Units sold."""

    quantity: int = Field(1, gt=0, examples=[1])


class Credentials(BaseModel):
    """Username/password payload for login and registration."""

    username: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=3, max_length=255)
    ] = Field(..., examples=["admin"])
    password: str = Field(..., min_length=6, max_length=128, examples=["secret123"])


class UserOut(BaseModel):
    """Public user fields."""

    id: int
    username: str
