# start_app.py
"""Run database migrations and launch the API server."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

import config

BASE_DIR = Path(__file__).resolve().parent


def load_env_files() -> None:
    """Load ``.env`` from ``api/`` then the repository root.

    Earlier files win; variables already present in the environment are never
    overridden.
    """

    load_dotenv(BASE_DIR / "api" / ".env")
    load_dotenv(BASE_DIR / ".env")
    load_dotenv()


def run_migrations() -> None:
    """Apply Alembic migrations up to head, exiting on failure."""

    try:
        subprocess.run(
            [
                sys.executable,
                "-m",
                "alembic",
                "-c",
                str(BASE_DIR / "api" / "alembic.ini"),
                "upgrade",
                "head",
            ],
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        if exc.stdout:
            sys.stdout.write(exc.stdout)
        if exc.stderr:
            sys.stderr.write(exc.stderr)
        print(
            f"database migration failed (exit code {exc.returncode})",
            file=sys.stderr,
        )
        raise SystemExit(exc.returncode)


def main(argv: list[str] | None = None) -> None:
    """Load settings, optionally apply migrations, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--skip-db-migrations",
        action="store_true",
        help="Start without running Alembic migrations",
    )
    args = parser.parse_args(argv)

    load_env_files()

    env_flag = os.getenv("SKIP_DB_MIGRATIONS")
    skip = args.skip_db_migrations or (
        env_flag and env_flag.lower() not in {"0", "false"}
    )
    if not skip:
        run_migrations()

    config.get_settings.cache_clear()
    settings = config.get_settings()

    uvicorn.run(
        "api.app.main:app",
        host=settings.host,  # nosec B104: bind for local development
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
