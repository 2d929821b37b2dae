from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from worktime.core.config import database_url

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()

DATABASE_URL = ""
engine = None
_configured_database_url = None


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_database() -> None:
    global DATABASE_URL, engine, _configured_database_url

    url = database_url()

    if engine is not None and _configured_database_url == url:
        return

    connect_args = {}
    if url.startswith("sqlite"):
        # request handlers run in a threadpool; sessions never cross threads concurrently
        connect_args["check_same_thread"] = False

    engine = create_engine(url, connect_args=connect_args)
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    SessionLocal.configure(bind=engine)
    DATABASE_URL = url
    _configured_database_url = url


configure_database()


def get_db():
    configure_database()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(db: Optional[Session] = None) -> Iterator[Session]:
    """
    If db is provided, the caller owns the transaction: nothing is committed or closed here.
    If db is None, a session is opened, committed on success, rolled back on error and closed.
    """
    owns_db = db is None
    if owns_db:
        configure_database()
        db = SessionLocal()

    try:
        yield db
        if owns_db:
            db.commit()
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()
