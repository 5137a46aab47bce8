import os
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from core.config import Config
from core.logging_setup import get_logger

logger = get_logger("database")

DB_PATH = Config.DB_PATH

# Base class for all models
Base = declarative_base()

# Session factory; rebound by configure_database()
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

engine = None


def _build_engine(db_path: str):
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )


def configure_database(db_path: str):
    """Point the engine and the session factory at a store file.

    Any pooled connections to the previous file are released first.
    """
    global engine, DB_PATH

    directory = os.path.dirname(os.path.abspath(db_path))
    os.makedirs(directory, exist_ok=True)

    if engine is not None:
        engine.dispose()

    DB_PATH = db_path
    engine = _build_engine(db_path)
    SessionLocal.configure(bind=engine)
    logger.debug("Database path: %s", db_path)
    return engine


def get_db_path() -> str:
    return DB_PATH


def get_engine():
    return engine


def init_db():
    """Create all tables that don't exist yet."""
    # Register models on Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def release_connections():
    """Close every pooled connection to the live store."""
    if engine is not None:
        engine.dispose()


def get_session():
    """Return a raw session. Caller closes it."""
    return SessionLocal()


@contextmanager
def get_db_context():
    """
    Context manager for database sessions.
    Automatically closes session when done.

    Usage:
        with get_db_context() as db:
            result = db.query(Model).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope():
    """Like get_db_context, but commits on success and rolls back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


configure_database(DB_PATH)
