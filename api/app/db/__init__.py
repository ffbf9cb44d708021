"""Database access for the application."""

from .gateway import Database, resolve_database_url

__all__ = ["Database", "resolve_database_url"]
