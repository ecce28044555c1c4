from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from permscope.settings import get_settings


_settings = get_settings()


def _connect_args(db_url: str, timeout: float) -> dict[str, object]:
    # Store calls time out and surface as StoreUnavailable instead of hanging a request.
    if db_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout}
    if db_url.startswith("postgresql"):
        return {"connect_timeout": int(timeout)}
    return {}


engine = create_engine(
    _settings.resolved_db_url(),
    connect_args=_connect_args(_settings.resolved_db_url(), _settings.store_timeout_seconds),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    """
    Main DB dependency.

    Writers (role transitions, grant edits) commit explicitly; anything left
    uncommitted when the request ends is rolled back by ``close()``.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
