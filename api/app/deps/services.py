"""Dependency helpers wiring request handlers to app-owned resources."""

from fastapi import Depends, Request

from config import Settings

from ..db import Database
from ..services import SweetService, UserService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """Return the :class:`Database` created by the app factory."""
    return request.app.state.db


def get_sweet_service(db: Database = Depends(get_database)) -> SweetService:
    return SweetService(db)


def get_user_service(
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(db, settings)
