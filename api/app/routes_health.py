"""Liveness probe endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from .db import Database
from .deps.services import get_database
from .utils.responses import ok

router = APIRouter()

logger = logging.getLogger("api.health")


@router.get("/health")
async def health(db: Database = Depends(get_database)) -> dict:
    """Report API liveness and database connectivity.

    Always answers 200; an unreachable database is reported as ``degraded``.
    """

    try:
        await db.ping()
    except Exception as exc:  # best effort only
        logger.warning("health check: database unreachable: %s", exc)
        return ok(
            {
                "status": "degraded",
                "database": "unreachable",
                "message": "Sweet Shop API is running but the database is unreachable",
            }
        )
    return ok(
        {
            "status": "ok",
            "database": "connected",
            "message": "Sweet Shop API is running",
        }
    )
