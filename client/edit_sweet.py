"""Edit-form logic: decide the image value and build the update payload.

Nothing here talks to the network. A payload is only returned once every
field has been checked, so a failed edit never reaches the API.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from io import BytesIO
from typing import Any, Mapping, Optional

from PIL import Image, UnidentifiedImageError

MAX_IMAGE_BYTES = 5 * 1024 * 1024


class ValidationError(ValueError):
    """The form holds a value the API would reject."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class ImageTooLarge(ValueError):
    def __init__(self, size: int) -> None:
        super().__init__("Image must be smaller than 5MB")
        self.size = size


class ImageProcessingError(ValueError):
    """The selected file could not be read as an image."""


@dataclass
class UploadedImage:
    """A file picked in the image control."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ImageControl:
    """State of the image widget when the form is submitted."""

    file: Optional[UploadedImage] = None
    url: str = ""
    cleared: bool = False


@dataclass
class EditForm:
    name: str
    category: str
    price: Any
    quantity: Any
    image: ImageControl


def encode_image(upload: UploadedImage) -> str:
    """Return ``upload`` as a ``data:<mime>;base64,...`` URL.

    Size is checked before anything is decoded. The MIME type comes from the
    decoded image rather than the declared content type.
    """

    if upload.size > MAX_IMAGE_BYTES:
        raise ImageTooLarge(upload.size)
    try:
        with Image.open(BytesIO(upload.content)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageProcessingError(f"Failed to process image {upload.filename!r}") from exc
    mime = Image.MIME.get(fmt or "") or upload.content_type
    if not mime or not mime.startswith("image/"):
        raise ImageProcessingError(f"Unsupported image type for {upload.filename!r}")
    payload = base64.b64encode(upload.content).decode("ascii")
    return f"data:{mime};base64,{payload}"


def resolve_image_url(previous: Optional[str], control: ImageControl) -> Optional[str]:
    """Return the ``image_url`` to submit.

    A newly selected file wins, then a non-blank URL, then an explicit clear
    (only when there was an image to clear). Otherwise ``previous`` is kept.
    """

    if control.file is not None:
        return encode_image(control.file)
    url = (control.url or "").strip()
    if url:
        return url
    if control.cleared and previous:
        return None
    return previous


def _text(field: str, value: Any) -> str:
    value = "" if value is None else str(value).strip()
    if not value:
        raise ValidationError(field, "is required")
    return value


def _price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("price", "must be a number") from exc
    if not price.is_finite() or price <= 0:
        raise ValidationError("price", "must be greater than 0")
    return price


def _quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("quantity", "must be a whole number")
    try:
        quantity = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError("quantity", "must be a whole number") from exc
    if quantity < 0:
        raise ValidationError("quantity", "must not be negative")
    return quantity


def build_update_payload(previous: Mapping[str, Any], form: EditForm) -> dict[str, Any]:
    """Validate ``form`` and return the full body for ``PUT /api/sweets/{id}``.

    ``previous`` is the sweet as last fetched; only its ``image_url`` is used.
    """

    payload: dict[str, Any] = {
        "name": _text("name", form.name),
        "category": _text("category", form.category),
        "price": float(_price(form.price)),
        "quantity": _quantity(form.quantity),
    }
    payload["image_url"] = resolve_image_url(previous.get("image_url"), form.image)
    return payload
