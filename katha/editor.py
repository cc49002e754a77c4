"""
Session offering editor - record store and CRUD orchestration.

The editor owns the coach's list of offerings, the create form and a single
edit state slot. The edit state is one of:

    Viewing            nothing is being edited
    Editing(id, form)  one offering is staged in a private form
    Saving(id, draft)  the staged copy is being sent to the backend

Every successful mutation is followed by a full re-fetch; the local list is
never patched from a backend response.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, Any, List, Optional, Protocol, Tuple, Union

from katha.errors import APIError, preferred_message
from katha.forms import CreateSessionForm, EditSessionForm, SessionDraft
from katha.models import SessionOffering
from katha.validation import validate

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load your sessions."
CREATE_FAILED_MESSAGE = "Failed to create session."
UPDATE_FAILED_MESSAGE = "Failed to update session."
DELETE_FAILED_MESSAGE = "Failed to delete session."
BUSY_MESSAGE = "Finish or cancel the session you are editing first."
STALE_EDIT_MESSAGE = "The session you were editing no longer exists. Your changes were discarded."


class SessionsBackend(Protocol):
    def fetch_sessions(self) -> List[SessionOffering]: ...

    def create_session(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    def update_session(
        self, offering_id: str, payload: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]: ...

    def delete_session(self, offering_id: str) -> None: ...


class EditorMode(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SAVING = "saving"


@dataclass(frozen=True)
class Viewing:
    mode = EditorMode.IDLE


@dataclass(frozen=True)
class Editing:
    offering_id: str
    form: EditSessionForm
    mode = EditorMode.EDITING


@dataclass(frozen=True)
class Saving:
    offering_id: str
    draft: SessionDraft
    original: SessionOffering
    mode = EditorMode.SAVING


EditState = Union[Viewing, Editing, Saving]


@dataclass(frozen=True)
class Notice:
    """A transient message for the coach"""
    level: str  # "success", "error" or "info"
    message: str


@dataclass
class EditorSnapshot:
    """Serialisable editor state, see SessionEditor.snapshot()"""
    mode: EditorMode = EditorMode.IDLE
    offering_id: Optional[str] = None
    edit_draft: Optional[Dict[str, str]] = None
    original: Optional[Dict[str, Any]] = None
    create_draft: Dict[str, str] = field(default_factory=dict)
    pending_delete_id: Optional[str] = None


def _offering_to_api(offering: SessionOffering) -> Dict[str, Any]:
    return {
        "id": offering.id,
        "title": offering.title,
        "description": offering.description,
        "duration": offering.duration_minutes,
        "price": offering.price,
        "type": offering.format.value,
        "defaultDate": offering.default_date,
        "defaultTime": offering.default_time,
        "meetingLink": offering.meeting_link,
    }


class SessionEditor:
    """Record store plus create/update/delete orchestration for one coach"""

    def __init__(
        self,
        backend: SessionsBackend,
        notify: Optional[Callable[[Notice], None]] = None,
        today: Callable[[], date] = date.today,
    ):
        self.backend = backend
        self.create_form = CreateSessionForm()
        self._notify = notify
        self._today = today
        self._offerings: Tuple[SessionOffering, ...] = ()
        self._state: EditState = Viewing()
        self._pending_delete_id: Optional[str] = None
        self._notices: List[Notice] = []

    # --- record store ---

    @property
    def offerings(self) -> Tuple[SessionOffering, ...]:
        return self._offerings

    def get(self, offering_id: str) -> Optional[SessionOffering]:
        for offering in self._offerings:
            if offering.id == offering_id:
                return offering
        return None

    def _replace_offerings(self, offerings: List[SessionOffering]) -> None:
        self._offerings = tuple(offerings)

    # --- state ---

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def mode(self) -> EditorMode:
        return self._state.mode

    @property
    def is_busy(self) -> bool:
        """True while an offering is being edited or saved"""
        return not isinstance(self._state, Viewing)

    @property
    def edit_form(self) -> Optional[EditSessionForm]:
        if isinstance(self._state, Editing):
            return self._state.form
        return None

    @property
    def active_offering_id(self) -> Optional[str]:
        if isinstance(self._state, (Editing, Saving)):
            return self._state.offering_id
        return None

    @property
    def pending_delete_id(self) -> Optional[str]:
        return self._pending_delete_id

    @property
    def can_create(self) -> bool:
        return not self.is_busy and self.create_form.can_submit

    def is_saving(self, offering_id: str) -> bool:
        return isinstance(self._state, Saving) and self._state.offering_id == offering_id

    def can_edit(self, offering_id: str) -> bool:
        return not self.is_busy and self.get(offering_id) is not None

    def can_delete(self, offering_id: str) -> bool:
        return self.can_edit(offering_id)

    def _set_state(self, state: EditState) -> None:
        logger.debug(f"Editor state {self._state.mode.value} -> {state.mode.value}")
        self._state = state

    # --- notices ---

    def _post(self, level: str, message: str) -> None:
        notice = Notice(level=level, message=message)
        self._notices.append(notice)
        if self._notify is not None:
            self._notify(notice)

    def drain_notices(self) -> List[Notice]:
        notices, self._notices = self._notices, []
        return notices

    # --- operations ---

    def fetch_all(self) -> bool:
        """
        Replace the record store with the backend's current list.

        On failure the last known list is kept and an error notice posted.
        An edit whose offering is gone from the new list is dropped.
        """
        try:
            offerings = self.backend.fetch_sessions()
        except APIError as e:
            logger.warning(f"Fetching session offerings failed: {e}")
            self._post("error", preferred_message(e, LOAD_FAILED_MESSAGE))
            return False
        self._replace_offerings(offerings)

        if isinstance(self._state, Editing) and self.get(self._state.offering_id) is None:
            logger.info(f"Session offering {self._state.offering_id} was removed while being edited")
            self._set_state(Viewing())
            self._post("info", STALE_EDIT_MESSAGE)
        if self._pending_delete_id is not None and self.get(self._pending_delete_id) is None:
            self._pending_delete_id = None
        return True

    def create(self) -> bool:
        """Validate and submit the create form draft"""
        if self.is_busy:
            logger.info("Create refused while an offering is being edited")
            self._post("error", BUSY_MESSAGE)
            return False

        draft = self.create_form.draft
        result = validate(draft, today=self._today())
        if not result.valid:
            self._post("error", result.first_error)
            return False

        try:
            self.backend.create_session(draft.to_payload())
        except APIError as e:
            logger.warning(f"Creating session offering failed: {e}")
            self._post("error", preferred_message(e, CREATE_FAILED_MESSAGE))
            return False

        self.create_form.reset()
        self._post("success", "Session created successfully.")
        self.fetch_all()
        return True

    def start_edit(self, offering_id: str) -> Optional[EditSessionForm]:
        """
        Stage an offering for editing.

        Returns None without changing anything if another offering is being
        edited or saved, or if the id is unknown.
        """
        if isinstance(self._state, Editing) and self._state.offering_id == offering_id:
            return self._state.form
        if self.is_busy:
            logger.info(
                f"Edit of {offering_id} refused, {self.active_offering_id} is {self.mode.value}"
            )
            return None
        offering = self.get(offering_id)
        if offering is None:
            logger.warning(f"Cannot edit unknown session offering {offering_id}")
            return None
        self._pending_delete_id = None
        form = EditSessionForm(offering)
        self._set_state(Editing(offering_id=offering_id, form=form))
        return form

    def cancel_edit(self) -> None:
        """Discard the staged copy; the shared list is untouched"""
        if isinstance(self._state, Editing):
            self._set_state(Viewing())

    def update(self, offering_id: str, draft: SessionDraft) -> bool:
        """
        Validate and save a staged copy.

        The editor is in Saving while the request runs. On failure it returns
        to Editing with the coach's draft intact.
        """
        if isinstance(self._state, Saving):
            logger.info(f"Update of {offering_id} refused while saving {self._state.offering_id}")
            return False
        if isinstance(self._state, Editing) and self._state.offering_id != offering_id:
            self._post("error", BUSY_MESSAGE)
            return False

        result = validate(draft, today=self._today())
        if not result.valid:
            self._post("error", result.first_error)
            return False

        if isinstance(self._state, Editing):
            original = self._state.form.original
        else:
            original = self.get(offering_id)
            if original is None:
                logger.warning(f"Cannot update unknown session offering {offering_id}")
                return False

        staged = draft.copy()
        self._set_state(Saving(offering_id=offering_id, draft=staged, original=original))
        try:
            self.backend.update_session(offering_id, staged.to_payload())
        except APIError as e:
            logger.warning(f"Updating session offering {offering_id} failed: {e}")
            self._set_state(
                Editing(offering_id=offering_id, form=EditSessionForm(original, staged))
            )
            self._post("error", preferred_message(e, UPDATE_FAILED_MESSAGE))
            return False

        self._set_state(Viewing())
        self._post("success", "Session updated successfully.")
        self.fetch_all()
        return True

    def save_edit(self) -> bool:
        """Submit the active edit form"""
        form = self.edit_form
        if form is None:
            return False
        return self.update(form.offering_id, form.staged())

    def request_delete(self, offering_id: str) -> Optional[SessionOffering]:
        """First step of a delete: remember which offering awaits confirmation"""
        if self.is_busy:
            self._post("error", BUSY_MESSAGE)
            return None
        offering = self.get(offering_id)
        if offering is None:
            return None
        self._pending_delete_id = offering_id
        return offering

    def cancel_delete(self) -> None:
        self._pending_delete_id = None

    def confirm_delete(self, offering_id: str) -> bool:
        """Delete an offering the coach has confirmed. No undo."""
        if self._pending_delete_id != offering_id:
            logger.warning(f"Delete of {offering_id} was not requested, ignoring")
            return False
        self._pending_delete_id = None
        if self.is_busy:
            self._post("error", BUSY_MESSAGE)
            return False

        try:
            self.backend.delete_session(offering_id)
        except APIError as e:
            logger.warning(f"Deleting session offering {offering_id} failed: {e}")
            self._post("error", preferred_message(e, DELETE_FAILED_MESSAGE))
            return False

        self._post("success", "Session deleted successfully.")
        self.fetch_all()
        return True

    # --- persistence ---

    def snapshot(self) -> EditorSnapshot:
        """
        Capture the editor state between conversation steps.

        A save in flight is recorded as editing so the draft survives.
        """
        snapshot = EditorSnapshot(
            create_draft=self.create_form.draft.to_dict(),
            pending_delete_id=self._pending_delete_id,
        )
        if isinstance(self._state, Editing):
            snapshot.mode = EditorMode.EDITING
            snapshot.offering_id = self._state.offering_id
            snapshot.edit_draft = self._state.form.draft.to_dict()
            snapshot.original = _offering_to_api(self._state.form.original)
        elif isinstance(self._state, Saving):
            snapshot.mode = EditorMode.EDITING
            snapshot.offering_id = self._state.offering_id
            snapshot.edit_draft = self._state.draft.to_dict()
            snapshot.original = _offering_to_api(self._state.original)
        return snapshot

    @classmethod
    def restore(
        cls,
        backend: SessionsBackend,
        snapshot: Optional[EditorSnapshot],
        notify: Optional[Callable[[Notice], None]] = None,
        today: Callable[[], date] = date.today,
    ) -> "SessionEditor":
        editor = cls(backend, notify=notify, today=today)
        if snapshot is None:
            return editor
        editor.create_form = CreateSessionForm(SessionDraft.from_dict(snapshot.create_draft))
        editor._pending_delete_id = snapshot.pending_delete_id
        if (
            snapshot.mode != EditorMode.IDLE
            and snapshot.offering_id
            and snapshot.original is not None
        ):
            original = SessionOffering.from_api(snapshot.original)
            form = EditSessionForm(original, SessionDraft.from_dict(snapshot.edit_draft))
            editor._state = Editing(offering_id=snapshot.offering_id, form=form)
        return editor
