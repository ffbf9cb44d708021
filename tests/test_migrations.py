import subprocess
import sys
from pathlib import Path

from sqlalchemy import create_engine, inspect, text

ROOT = Path(__file__).resolve().parents[1]


def _upgrade(url: str) -> None:
    subprocess.run(
        [
            sys.executable,
            "-m",
            "alembic",
            "-c",
            str(ROOT / "api" / "alembic.ini"),
            "-x",
            f"db_url={url}",
            "upgrade",
            "head",
        ],
        check=True,
        cwd=ROOT,
    )


def test_upgrade_creates_schema_and_is_repeatable(tmp_path):
    db = tmp_path / "migrated.db"
    _upgrade(f"sqlite+aiosqlite:///{db}")
    _upgrade(f"sqlite+aiosqlite:///{db}")

    engine = create_engine(f"sqlite:///{db}")
    try:
        tables = set(inspect(engine).get_table_names())
        assert {"sweets", "users", "alembic_version"} <= tables
        with engine.connect() as conn:
            version = conn.execute(text("SELECT version_num FROM alembic_version")).scalar()
        assert version == "0002_create_users"
    finally:
        engine.dispose()


def test_sync_url_is_supported(tmp_path):
    db = tmp_path / "sync.db"
    _upgrade(f"sqlite:///{db}")
    engine = create_engine(f"sqlite:///{db}")
    try:
        assert "sweets" in inspect(engine).get_table_names()
    finally:
        engine.dispose()
