# sessionbook/database.py
"""
Database engine, session factory, and metadata shared across the package.
"""

from datetime import datetime
import logging
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: Optional[str] = None, **overrides: Any) -> Engine:
    """
    Create an engine tuned for the target dialect.

    PostgreSQL gets a bounded pool and a server-side statement timeout so
    repository calls never block indefinitely. In-memory SQLite shares a
    single connection so every session sees the same database.
    """
    url = settings.get_database_url(database_url)

    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite://"):
            kwargs["poolclass"] = StaticPool
    else:
        connect_args: dict[str, Any] = {"application_name": "sessionbook"}
        if settings.db_statement_timeout_ms:
            connect_args["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"
        kwargs = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_timeout": settings.db_pool_timeout,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "connect_args": connect_args,
        }

    kwargs["echo"] = settings.db_echo
    kwargs.update(overrides)
    new_engine = create_engine(url, **kwargs)

    @event.listens_for(new_engine, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        logger.debug("Database connection established")

    return new_engine


engine: Engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """Yield a session that commits on success and rolls back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
