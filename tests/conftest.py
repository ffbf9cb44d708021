import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from api.app.auth import create_access_token  # noqa: E402
from api.app.main import create_app  # noqa: E402
from api.app.models import Base  # noqa: E402
from config import DATABASE_URL_SOURCES, Settings  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _no_database_env(monkeypatch):
    for name in DATABASE_URL_SOURCES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_path(tmp_path) -> Path:
    """SQLite file with the application schema created."""
    path = tmp_path / "sweets.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture
def settings(db_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{db_path}",
        secret_key="x" * 32,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(settings) -> dict:
    token = create_access_token("tester", settings)
    return {"Authorization": f"Bearer {token.access_token}"}
