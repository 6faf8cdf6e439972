"""
Database engine, session factory and bootstrap for RailBooker.
"""

import logging
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from src.config import settings

logger = logging.getLogger(__name__)

def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine, allowing SQLite connections to cross FastAPI's threadpool"""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 3600)
    return create_engine(database_url, echo=settings.DATABASE_ECHO, **kwargs)

engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def instrument(db_engine: Engine, session_factory: sessionmaker) -> None:
    """Attach the SQL query log to an engine and change capture to a session factory"""
    from src.realtime.query_log import query_log
    from src.realtime.change_feed import install_change_capture

    query_log.install(db_engine)
    install_change_capture(session_factory)

instrument(engine, SessionLocal)

def get_db() -> Generator[Session, None, None]:
    """
    Database dependency for FastAPI routes.
    Yields a session per request and always closes it.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(
    db_engine: Optional[Engine] = None,
    session_factory: Optional[sessionmaker] = None
) -> None:
    """
    Create all tables and bootstrap the revenue ledger record.

    The revenue ledger is never created lazily by a payment, so this must run
    before the first booking is accepted.
    """
    import src.models  # noqa: F401  registers the mappers on Base
    from src.ledger.revenue import RevenueLedger

    db_engine = db_engine or engine
    session_factory = session_factory or SessionLocal

    Base.metadata.create_all(bind=db_engine)

    db = session_factory()
    try:
        RevenueLedger(db).initialize()
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    logger.info("Database initialized successfully")

def drop_db(db_engine: Optional[Engine] = None) -> None:
    """Drop all tables - use with caution!"""
    import src.models  # noqa: F401

    Base.metadata.drop_all(bind=db_engine or engine)
    logger.warning("All tables dropped")
