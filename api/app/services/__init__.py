"""Service layer for the API."""

from .sweets import SweetService
from .users import UserService

__all__ = ["SweetService", "UserService"]
