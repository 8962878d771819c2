from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from lettercast.adapters.dev_email import DevEmailAdapter
from lettercast.adapters.sqlite_db import SQLiteConnectionPool, SQLiteSubscriberStore
from lettercast.adapters.sqlite.migrator import SQLiteMigrator
from lettercast.api.main import create_app
from lettercast.app_shell.context import ServiceContext
from lettercast.settings import Settings

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """A freshly migrated SQLite database in a temp directory."""
    path = str(tmp_path / "lettercast.db")
    SQLiteMigrator(path, str(MIGRATIONS_DIR)).run_migrations()
    return path


@pytest.fixture
def pool(db_path: str):
    pool = SQLiteConnectionPool(db_path, size=3, checkout_timeout=1.0)
    yield pool
    pool.close()


@pytest.fixture
def store(pool: SQLiteConnectionPool) -> SQLiteSubscriberStore:
    return SQLiteSubscriberStore(pool)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings.model_validate(
        {
            "database": {"path": str(tmp_path / "app.db"), "pool_size": 3},
            "application": {"base_url": "http://testserver"},
            "email_client": {
                "backend": "dev",
                "base_url": "http://localhost:9000",
                "sender_email": "newsletter@example.com",
                "authorization_token": "test-token",
                "timeout_ms": 200,
            },
            "migrations_dir": str(MIGRATIONS_DIR),
        }
    )


@pytest.fixture
def email_sender() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def test_ctx(test_settings: Settings, email_sender: DevEmailAdapter):
    """
    Creates a full ServiceContext backed by a temporary, migrated SQLite DB
    and an in-memory email sender.
    """
    ctx = ServiceContext.create(test_settings, email_sender=email_sender)
    yield ctx
    ctx.close()


@pytest.fixture
def client(test_ctx: ServiceContext):
    with TestClient(create_app(context=test_ctx)) as c:
        yield c
