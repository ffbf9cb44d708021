"""Lazily initialised connection pool and the raw query primitive.

A :class:`Database` owns at most one :class:`~sqlalchemy.ext.asyncio.AsyncEngine`.
The engine is built on first use from the first non-empty connection source
(see :data:`config.DATABASE_URL_SOURCES`), probed with ``SELECT 1`` and then
reused for every call. Concurrent first calls wait on the same lock so only one
pool is ever built.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy import Numeric, bindparam, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from config import DATABASE_URL_SOURCES, Settings, SSLMode

from ..errors import ConfigurationError, ConnectivityError
from ..obs import add_query_logger

PROBE_SQL = "SELECT 1"

logger = logging.getLogger("api.db")

_ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
    "postgresql+psycopg": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def normalize_url(raw: str) -> str:
    """Return ``raw`` rewritten for the async driver of its dialect.

    ``sslmode`` query parameters are dropped; TLS is driven by ``db_ssl_mode``.
    """
    url = make_url(raw)
    drivername = _ASYNC_DRIVERS.get(url.drivername, url.drivername)
    url = url.set(drivername=drivername).difference_update_query(["sslmode"])
    return url.render_as_string(hide_password=False)


def resolve_database_url(settings: Settings) -> str:
    """Return the first configured connection string, normalized.

    Raises :class:`ConfigurationError` naming every source that was checked.
    """
    for name, value in settings.database_sources():
        if value and value.strip():
            logger.info("database url resolved from %s", name)
            return normalize_url(value.strip())
    raise ConfigurationError(
        "Database connection string not found. Please set one of: "
        + ", ".join(DATABASE_URL_SOURCES),
        details={name: "not set" for name in DATABASE_URL_SOURCES},
    )


def _ssl_arg(settings: Settings) -> Any:
    if settings.db_ssl_mode == SSLMode.REQUIRE:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx
    if settings.db_ssl_mode == SSLMode.VERIFY_CA:
        ctx = ssl.create_default_context(cafile=settings.db_ssl_root_cert)
        ctx.check_hostname = False
        return ctx
    return False


def engine_options(url: str, settings: Settings) -> dict[str, Any]:
    """Return keyword arguments for :func:`create_async_engine`."""
    if make_url(url).get_backend_name() == "sqlite":
        # SQLite picks its own pool class; sizing arguments do not apply.
        return {"future": True}
    return {
        "future": True,
        "pool_size": settings.db_pool_max,
        "max_overflow": 0,
        "pool_timeout": settings.db_connect_timeout_secs,
        "pool_recycle": settings.db_idle_timeout_secs,
        "pool_pre_ping": True,
        "connect_args": {
            "ssl": _ssl_arg(settings),
            "timeout": settings.db_connect_timeout_secs,
        },
    }


def _text(statement: str, params: Mapping[str, Any]):
    """Return a text clause with ``Decimal`` parameters typed as NUMERIC.

    Drivers without native decimals (SQLite) then receive floats.
    """
    typed = [
        bindparam(key, type_=Numeric(asdecimal=True))
        for key, value in params.items()
        if isinstance(value, Decimal)
    ]
    clause = text(statement)
    return clause.bindparams(*typed) if typed else clause


class Database:
    """Owner of the application's connection pool."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    async def engine(self) -> AsyncEngine:
        """Return the engine, building and probing it on first use."""
        if self._engine is not None:
            return self._engine
        async with self._lock:
            if self._engine is None:
                self._engine = await self._connect()
        return self._engine

    async def _connect(self) -> AsyncEngine:
        url = resolve_database_url(self.settings)
        engine = create_async_engine(url, **engine_options(url, self.settings))
        add_query_logger(engine, "sweets")
        try:
            async with engine.connect() as conn:
                await conn.execute(text(PROBE_SQL))
        except Exception as exc:
            await engine.dispose()
            logger.error(
                "database connection failed: %s (url prefix %s)",
                exc,
                url[:20],
            )
            raise ConnectivityError(f"Database connection failed: {exc}") from exc
        logger.info("database connected")
        return engine

    async def execute(
        self, statement: str, parameters: Mapping[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Run one parameterized statement and return its rows as dicts.

        The statement runs in its own transaction, committed on success.
        """
        engine = await self.engine()
        try:
            async with engine.begin() as conn:
                params = dict(parameters or {})
                result = await conn.execute(_text(statement, params), params)
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings().all()]
        except Exception:
            logger.error("query failed: %s", " ".join(statement.split()))
            raise

    async def ping(self) -> None:
        """Raise if the database cannot answer the probe query."""
        await self.execute(PROBE_SQL)

    async def dispose(self) -> None:
        async with self._lock:
            if self._engine is not None:
                await self._engine.dispose()
                self._engine = None


__all__ = [
    "Database",
    "PROBE_SQL",
    "engine_options",
    "normalize_url",
    "resolve_database_url",
]
