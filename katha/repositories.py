"""
Repository pattern for database access
Provides clean separation between business logic and data access
"""

from sqlmodel import Session, delete
from typing import Optional
from datetime import datetime
import json

from katha.db_models import EditorSession, as_utc, utc_now
from katha.editor import EditorMode, EditorSnapshot


class EditorSessionRepository:
    """Repository for EditorSession operations"""

    def __init__(self, session: Session):
        self.session = session

    def get_session(self, user_id: int) -> Optional[EditorSession]:
        """Get editor session row for a user, dropping it if expired"""
        editor_session = self.session.get(EditorSession, user_id)
        if editor_session and utc_now() > as_utc(editor_session.expires_at):
            self.delete_session(user_id)
            return None
        return editor_session

    def save_snapshot(
        self, user_id: int, snapshot: EditorSnapshot, expires_at: datetime
    ) -> EditorSession:
        """Create or overwrite the stored editor state for a user"""
        editor_session = self.session.get(EditorSession, user_id)
        if editor_session is None:
            editor_session = EditorSession(user_id=user_id, expires_at=expires_at)
            self.session.add(editor_session)

        editor_session.mode = EditorMode(snapshot.mode).value
        editor_session.offering_id = snapshot.offering_id
        editor_session.edit_draft = (
            json.dumps(snapshot.edit_draft) if snapshot.edit_draft is not None else None
        )
        editor_session.original = (
            json.dumps(snapshot.original) if snapshot.original is not None else None
        )
        editor_session.create_draft = json.dumps(snapshot.create_draft or {})
        editor_session.pending_delete_id = snapshot.pending_delete_id
        editor_session.updated_at = utc_now()
        editor_session.expires_at = expires_at

        self.session.commit()
        self.session.refresh(editor_session)
        return editor_session

    def get_snapshot(self, user_id: int) -> Optional[EditorSnapshot]:
        """Load the stored editor state for a user"""
        editor_session = self.get_session(user_id)
        if editor_session is None:
            return None
        return EditorSnapshot(
            mode=EditorMode(editor_session.mode),
            offering_id=editor_session.offering_id,
            edit_draft=json.loads(editor_session.edit_draft) if editor_session.edit_draft else None,
            original=json.loads(editor_session.original) if editor_session.original else None,
            create_draft=json.loads(editor_session.create_draft or "{}"),
            pending_delete_id=editor_session.pending_delete_id,
        )

    def delete_session(self, user_id: int) -> bool:
        """Delete editor session"""
        editor_session = self.session.get(EditorSession, user_id)
        if editor_session:
            self.session.delete(editor_session)
            self.session.commit()
            return True
        return False

    def cleanup_expired_sessions(self) -> int:
        """Delete all expired sessions"""
        statement = delete(EditorSession).where(
            EditorSession.expires_at < utc_now()
        )
        result = self.session.exec(statement)
        self.session.commit()
        return result.rowcount
