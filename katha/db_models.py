"""
Database models using SQLModel
Stores each coach's editor state between Telegram updates
"""

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware current time; all timestamps are stored in UTC"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite drops the offset on read, so naive values are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EditorSession(SQLModel, table=True):
    """Session editor conversation state for one Telegram user"""

    __tablename__ = "editor_sessions"

    user_id: int = Field(primary_key=True)
    mode: str = Field(default="idle", max_length=20)  # idle, editing
    offering_id: Optional[str] = Field(default=None, max_length=64)

    # Form state (JSON strings)
    edit_draft: Optional[str] = Field(default=None)
    original: Optional[str] = Field(default=None)
    create_draft: str = Field(default="{}")

    pending_delete_id: Optional[str] = Field(default=None, max_length=64)

    # Metadata
    created_at: datetime = Field(
        default_factory=utc_now, sa_type=DateTime(timezone=True), index=True
    )
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))  # Auto-cleanup after expiry
