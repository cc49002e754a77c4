"""
Editor store - loads and saves a coach's SessionEditor between Telegram updates.
The record list is never stored; it is re-fetched from the backend.
"""

import logging
from datetime import timedelta
from typing import Optional

from katha.config import get_config
from katha.database import get_session
from katha.db_models import utc_now
from katha.editor import SessionEditor, SessionsBackend
from katha.repositories import EditorSessionRepository
from katha.session_api import CoachSessionsAPI

logger = logging.getLogger(__name__)


def load_editor(user_id: int, backend: Optional[SessionsBackend] = None) -> SessionEditor:
    """Restore the user's editor from the database, or start a fresh one"""
    with get_session() as session:
        repo = EditorSessionRepository(session)
        snapshot = repo.get_snapshot(user_id)
    return SessionEditor.restore(backend or CoachSessionsAPI(), snapshot)


def save_editor(user_id: int, editor: SessionEditor) -> None:
    """Persist the editor state and push its expiry forward"""
    expires_at = utc_now() + timedelta(seconds=get_config().editor_session_timeout)
    with get_session() as session:
        repo = EditorSessionRepository(session)
        repo.save_snapshot(user_id, editor.snapshot(), expires_at)


def cleanup_expired_editors() -> int:
    """Remove editor conversations nobody touched before they expired"""
    with get_session() as session:
        repo = EditorSessionRepository(session)
        removed = repo.cleanup_expired_sessions()
    if removed:
        logger.info(f"Cleaned up {removed} expired editor session(s)")
    return removed
