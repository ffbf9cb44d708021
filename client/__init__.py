"""Client helpers for the sweet shop inventory API."""

from .api import ApiError, SweetsClient
from .config import api_url, resolve_api_base_url
from .edit_sweet import (
    EditForm,
    ImageControl,
    ImageProcessingError,
    ImageTooLarge,
    UploadedImage,
    ValidationError,
    build_update_payload,
    resolve_image_url,
)

__all__ = [
    "ApiError",
    "EditForm",
    "ImageControl",
    "ImageProcessingError",
    "ImageTooLarge",
    "SweetsClient",
    "UploadedImage",
    "ValidationError",
    "api_url",
    "build_update_payload",
    "resolve_api_base_url",
    "resolve_image_url",
]
