import os
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")

import subprocess
import sys
import tempfile
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

_SQLITE_PATH = Path(tempfile.gettempdir()) / "worktime_test.db"
TEST_DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{_SQLITE_PATH}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from worktime import database
from worktime.models.worker import Worker
from worktime.services import worker_service


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if url.drivername.startswith("sqlite"):
        if url.database and Path(url.database).exists():
            Path(url.database).unlink()
        return

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _clear_tables() -> None:
    with database.engine.begin() as conn:
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    _ensure_database_exists(TEST_DATABASE_URL)

    env = os.environ.copy()
    env["DATABASE_URL"] = TEST_DATABASE_URL

    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        check=True,
        cwd=Path(__file__).resolve().parents[2],
        env=env,
    )

    database.configure_database()


@pytest.fixture(scope="function", autouse=True)
def _clear_tables_between_tests():
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture
def worker_factory():
    counter = {"n": 0}

    def _make(client_id: int = 1, name: str = None, email: str = "", tracking_mode: str = "clock", active: bool = True) -> Worker:
        counter["n"] += 1
        db = database.SessionLocal()
        try:
            worker = worker_service.create_worker(
                client_id,
                name or f"Worker {counter['n']}",
                email or f"worker{counter['n']}@example.com",
                contractor_id=f"C-{client_id}-{counter['n']}",
                tracking_mode=tracking_mode,
                db=db,
            )
            if active:
                worker_service.activate_worker(worker, datetime(2024, 1, 1, 9, 0))
            db.commit()
            return worker
        finally:
            db.close()

    return _make


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
