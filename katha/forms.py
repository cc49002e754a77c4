"""
Form state for creating and editing session offerings.

Forms hold string-bound copies of a record so typed input never touches
the editor's shared list until the form is submitted.
"""

from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, Any, Optional

from katha.models import SessionOffering, SessionFormat

REQUIRED_FIELDS = ("title", "duration", "price")
OPTIONAL_FIELDS = ("description", "default_date", "default_time", "meeting_link")

FIELD_LABELS = {
    "title": "Session Name",
    "price": "Price",
    "duration": "Duration (minutes)",
    "format": "Session Format",
    "default_date": "Default Date",
    "default_time": "Default Time",
    "meeting_link": "Meeting Link",
    "description": "Description",
}


def _blank_to_none(value: str) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def _whole_number(value: str) -> Optional[int]:
    """Coerce form text to an int for the wire, None if it is not numeric"""
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else None


@dataclass
class SessionDraft:
    """Form-bound session offering; every field is text"""
    title: str = ""
    description: str = ""
    duration: str = ""
    price: str = ""
    format: str = SessionFormat.INDIVIDUAL.value
    default_date: str = ""
    default_time: str = ""
    meeting_link: str = ""

    @classmethod
    def from_offering(cls, offering: SessionOffering) -> "SessionDraft":
        """Stage an offering for editing, coercing numbers to strings"""
        return cls(
            title=offering.title,
            description=offering.description or "",
            duration=str(offering.duration_minutes),
            price=str(offering.price),
            format=offering.format.value,
            default_date=offering.default_date or "",
            default_time=offering.default_time or "",
            meeting_link=offering.meeting_link or "",
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SessionDraft":
        known = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in (data or {}).items() if k in known and v is not None})

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def copy(self) -> "SessionDraft":
        return replace(self)

    def set_field(self, name: str, value: Any) -> None:
        if name not in FIELD_LABELS:
            raise KeyError(f"Unknown session field: {name}")
        if name == "format":
            value = SessionFormat.parse(value).value
        setattr(self, name, "" if value is None else str(value))

    def has_required_fields(self) -> bool:
        return all(str(getattr(self, name)).strip() for name in REQUIRED_FIELDS)

    def to_payload(self) -> Dict[str, Any]:
        """Backend request body; numeric fields coerced, blank optionals sent as null"""
        return {
            "title": self.title.strip(),
            "description": _blank_to_none(self.description),
            "duration": _whole_number(self.duration),
            "price": _whole_number(self.price),
            "type": SessionFormat.parse(self.format).value,
            "defaultDate": _blank_to_none(self.default_date),
            "defaultTime": _blank_to_none(self.default_time),
            "meetingLink": _blank_to_none(self.meeting_link),
        }


class EditSessionForm:
    """Private staging area for one existing offering"""

    def __init__(self, offering: SessionOffering, draft: Optional[SessionDraft] = None):
        self.offering_id = offering.id
        self.original = offering
        self.draft = draft.copy() if draft is not None else SessionDraft.from_offering(offering)

    def change(self, name: str, value: Any) -> None:
        self.draft.set_field(name, value)

    def staged(self) -> SessionDraft:
        """Independent copy handed to the editor on submit"""
        return self.draft.copy()

    @property
    def is_dirty(self) -> bool:
        return self.draft != SessionDraft.from_offering(self.original)


class CreateSessionForm:
    """The single persistent draft for a brand-new offering"""

    def __init__(self, draft: Optional[SessionDraft] = None):
        self.draft = draft if draft is not None else SessionDraft()

    def change(self, name: str, value: Any) -> None:
        self.draft.set_field(name, value)

    @property
    def can_submit(self) -> bool:
        return self.draft.has_required_fields()

    def reset(self) -> None:
        self.draft = SessionDraft()
