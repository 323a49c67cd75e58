# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from focustools.core.config import Config
from focustools.storage.database import Database
from focustools.storage.session_store import SessionStore
from focustools.storage.task_store import TaskStore
from focustools.web.app import create_app


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    """Config with every path inside the per-test tmp dir."""
    return Config(
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        config_dir=tmp_path / "config",
    )


@pytest_asyncio.fixture()
async def db(config: Config):
    database = Database(config.db_path)
    await database.connect()
    yield database
    await database.close()


@pytest.fixture()
def task_store(db: Database) -> TaskStore:
    return TaskStore(db)


@pytest.fixture()
def session_store(db: Database) -> SessionStore:
    return SessionStore(db)


@pytest.fixture()
def client(config: Config):
    with TestClient(create_app(config)) as test_client:
        yield test_client
