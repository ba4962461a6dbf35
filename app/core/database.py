"""Engine and per-request sessions for the profile store."""

import logging
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings, settings

logger = logging.getLogger(__name__)


def engine_options(cfg: Settings) -> dict[str, Any]:
    """Pool and driver options; each statement is bounded by a server-side timeout."""
    return {
        "pool_pre_ping": True,
        "echo": cfg.DEBUG,
        "connect_args": {"options": f"-c statement_timeout={cfg.DB_STATEMENT_TIMEOUT_MS}"},
    }


engine = create_engine(settings.DATABASE_URL, **engine_options(settings))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; rolled back if the handler leaves a transaction open."""
    db = SessionLocal()
    try:
        yield db
    finally:
        if db.in_transaction():
            db.rollback()
        db.close()


def check_db_connected(db: Session) -> bool:
    """SELECT 1 against the store; False (and a warning) when it is unreachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed", extra={"error": str(exc)[:200]})
        return False
