"""Pytest fixtures shared by the test modules."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.database import Database  # noqa: E402


@pytest.fixture()
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point every ``USERS_*`` setting at the temporary directory."""

    monkeypatch.setenv("USERS_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("USERS_DB_PATH", str(tmp_path / "users.sqlite3"))
    monkeypatch.setenv("USERS_PUBLIC_DIR", str(tmp_path / "public"))
    monkeypatch.delenv("USERS_LOG_LEVEL", raising=False)
    return tmp_path


@pytest.fixture()
def seeded_database(tmp_path: Path) -> Database:
    database = Database(tmp_path / "seeded.sqlite3")
    database.initialize()
    return database
