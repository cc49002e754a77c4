"""
Type-safe data models for the session editor
Uses dataclasses and enums for better type safety and IDE support
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class SessionFormat(str, Enum):
    """Format of a session offering (wire field ``type``)"""
    INDIVIDUAL = "individual"
    GROUP = "group"
    WORKSHOP = "workshop"
    ONLINE = "online"
    IN_PERSON = "in-person"

    @property
    def label(self) -> str:
        return FORMAT_LABELS[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> "SessionFormat":
        """Map a backend value to a format, defaulting to individual like the backend does"""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            if value:
                logger.warning(f"Unknown session format {value!r}, using 'individual'")
            return cls.INDIVIDUAL


FORMAT_LABELS = {
    SessionFormat.INDIVIDUAL: "1-on-1 Individual",
    SessionFormat.GROUP: "Group Sessions",
    SessionFormat.WORKSHOP: "Workshops",
    SessionFormat.ONLINE: "Online Only",
    SessionFormat.IN_PERSON: "In-Person",
}


def _to_number(value: Any) -> float:
    if value is None or value == "":
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return int(number) if number.is_integer() else number


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class SessionOffering:
    """A coach-defined bookable session type as stored by the backend"""
    id: Optional[str]
    title: str
    duration_minutes: int
    price: float
    format: SessionFormat = SessionFormat.INDIVIDUAL
    description: Optional[str] = None
    default_date: Optional[str] = None  # YYYY-MM-DD
    default_time: Optional[str] = None  # HH:MM
    meeting_link: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SessionOffering":
        """Build an offering from the backend JSON shape"""
        raw_id = data.get("id")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            title=str(data.get("title") or data.get("name") or ""),
            duration_minutes=int(_to_number(data.get("duration"))),
            price=_to_number(data.get("price")),
            format=SessionFormat.parse(data.get("type")),
            description=_optional_text(data.get("description")),
            default_date=_optional_text(data.get("defaultDate")),
            default_time=_optional_text(data.get("defaultTime")),
            meeting_link=_optional_text(data.get("meetingLink")),
        )
