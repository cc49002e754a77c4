"""
SQLite engine and session handling for stored editor state
"""
from sqlmodel import SQLModel, create_engine, Session
from contextlib import contextmanager
from typing import Generator
import logging

from katha.config import get_config
from katha.db_models import EditorSession  # noqa: F401  (registers the table)

logger = logging.getLogger(__name__)

# Created lazily from EditorConfig.db_file
_engine = None


def get_engine():
    """Return the shared engine, creating it on first use"""
    global _engine
    if _engine is None:
        db_file = get_config().db_file
        # Telegram handlers may run on different threads
        _engine = create_engine(
            f"sqlite:///{db_file}", connect_args={"check_same_thread": False}
        )
        logger.info(f"Editor state database: {db_file}")
    return _engine


def init_database() -> None:
    """Create the editor_sessions table if it is missing"""
    SQLModel.metadata.create_all(get_engine())
    logger.info("Editor state tables ready")


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Session scope for one handler call.
    Commits on success, rolls back and re-raises on error.
    """
    session = Session(get_engine())
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def close_database() -> None:
    """Dispose of the engine on bot shutdown"""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Editor state database closed")
