"""Statement timing for the inventory database."""

from __future__ import annotations

import hashlib
import logging
import os
import random
import time

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

SLOW_QUERY_MS = int(os.getenv("DB_SLOW_QUERY_MS", "200"))
SAMPLE_RATE = float(os.getenv("DB_QUERY_SAMPLE_RATE", "0.01"))
MAX_SQL_CHARS = 200

logger = logging.getLogger("api.db.queries")


def _shorten(statement: str) -> str:
    sql = " ".join(statement.split())
    if len(sql) > MAX_SQL_CHARS:
        return sql[: MAX_SQL_CHARS - 3] + "..."
    return sql


def add_query_logger(engine: AsyncEngine, label: str) -> None:
    """Time every statement run through ``engine``.

    Statements slower than ``DB_SLOW_QUERY_MS`` are logged as warnings and a
    ``DB_QUERY_SAMPLE_RATE`` share of the rest at info level. Bound values are
    never logged, only a short hash of them.
    """

    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _finish(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = int((time.perf_counter() - context._query_start_time) * 1000)
        if elapsed_ms > SLOW_QUERY_MS:
            log = logger.warning
            prefix = "slow query"
        elif random.random() < SAMPLE_RATE:
            log = logger.info
            prefix = "query"
        else:
            return
        params_hash = hashlib.sha256(repr(parameters).encode()).hexdigest()[:8]
        log(
            "%s %dms db=%s sql=%s params=%s",
            prefix,
            elapsed_ms,
            label,
            _shorten(statement),
            params_hash,
        )
