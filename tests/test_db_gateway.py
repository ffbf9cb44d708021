import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from api.app.db import gateway
from api.app.db.gateway import Database, engine_options, normalize_url, resolve_database_url
from api.app.errors import ConfigurationError, ConnectivityError
from config import Settings, SSLMode


def test_first_non_empty_source_wins():
    settings = Settings(
        database_url="  ",
        postgres_url="postgres://u:p@primary/shop?sslmode=require",
        postgres_prisma_url="postgres://u:p@prisma/shop",
    )
    assert resolve_database_url(settings) == "postgresql+asyncpg://u:p@primary/shop"


def test_database_url_preferred_over_postgres_url():
    settings = Settings(
        database_url="postgresql://u@first/db", postgres_url="postgresql://u@second/db"
    )
    assert resolve_database_url(settings) == "postgresql+asyncpg://u@first/db"


def test_missing_source_names_every_variable():
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_database_url(Settings())
    message = str(excinfo.value)
    for name in (
        "DATABASE_URL",
        "POSTGRES_URL",
        "POSTGRES_URL_NON_POOLING",
        "POSTGRES_PRISMA_URL",
    ):
        assert name in message


def test_sqlite_url_uses_async_driver():
    assert normalize_url("sqlite:///tmp/x.db") == "sqlite+aiosqlite:///tmp/x.db"


def test_pool_options_follow_settings():
    settings = Settings(db_pool_max=7, db_idle_timeout_secs=11, db_ssl_mode=SSLMode.NONE)
    opts = engine_options("postgresql+asyncpg://u@h/db", settings)
    assert opts["pool_size"] == 7
    assert opts["max_overflow"] == 0
    assert opts["pool_recycle"] == 11
    assert opts["connect_args"]["ssl"] is False


@pytest.mark.anyio
async def test_concurrent_first_use_builds_one_engine(settings, monkeypatch):
    created = []
    real = gateway.create_async_engine

    def counting(url, **kwargs):
        created.append(url)
        return real(url, **kwargs)

    monkeypatch.setattr(gateway, "create_async_engine", counting)
    db = Database(settings)
    try:
        results = await asyncio.gather(
            *(db.execute("SELECT 1 AS one") for _ in range(8))
        )
    finally:
        await db.dispose()
    assert len(created) == 1
    assert all(rows == [{"one": 1}] for rows in results)


@pytest.mark.anyio
async def test_probe_failure_raises_connectivity_error(tmp_path):
    missing = tmp_path / "no-such-dir" / "shop.db"
    db = Database(Settings(database_url=f"sqlite:///{missing}"))
    with pytest.raises(ConnectivityError):
        await db.execute("SELECT 1")
    assert not db.initialized


@pytest.mark.anyio
async def test_execute_binds_parameters(settings):
    db = Database(settings)
    try:
        inserted = await db.execute(
            "INSERT INTO sweets (name, category, price, quantity) "
            "VALUES (:name, :category, :price, :quantity) RETURNING id",
            {"name": "Barfi", "category": "Milk", "price": Decimal("3.25"), "quantity": 4},
        )
        rows = await db.execute(
            "SELECT name, price FROM sweets WHERE id = :id", {"id": inserted[0]["id"]}
        )
    finally:
        await db.dispose()
    assert rows[0]["name"] == "Barfi"
    assert float(rows[0]["price"]) == 3.25


@pytest.mark.anyio
async def test_failed_statement_propagates(settings):
    db = Database(settings)
    try:
        with pytest.raises(OperationalError):
            await db.execute("SELECT * FROM no_such_table")
        # The pool survives a bad statement.
        assert await db.execute("SELECT 1 AS one") == [{"one": 1}]
    finally:
        await db.dispose()
