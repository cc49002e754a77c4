"""
Formatting service - renders session offerings and forms as Telegram HTML
messages with inline keyboards.
"""

from html import escape
from typing import List, Tuple

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from katha.editor import SessionEditor, Notice
from katha.forms import SessionDraft, FIELD_LABELS, REQUIRED_FIELDS
from katha.models import SessionOffering, SessionFormat

NOTICE_ICONS = {"success": "✅", "error": "❌", "info": "ℹ️"}

# field buttons shown on a form, two per row
FORM_FIELD_ROWS = [
    ("title", "price"),
    ("duration", "format"),
    ("default_date", "default_time"),
    ("meeting_link", "description"),
]


def format_price(price) -> str:
    return f"${float(price):.2f}"


def format_offering(offering: SessionOffering) -> str:
    """Format one offering as a block of HTML text"""
    lines = [f"<b>{escape(offering.title)}</b>"]
    if offering.description:
        lines.append(escape(offering.description))
    lines.append(
        f"🕐 {offering.duration_minutes} min · 💲 {format_price(offering.price)}"
        f" · 👥 {offering.format.label}"
    )
    if offering.default_date:
        when = escape(offering.default_date)
        if offering.default_time:
            when += f" @ {escape(offering.default_time)}"
        lines.append(f"📅 {when}")
    if offering.meeting_link:
        lines.append("🌐 Meeting link set")
    return "\n".join(lines)


def format_notices(notices: List[Notice]) -> str:
    return "\n".join(f"{NOTICE_ICONS.get(n.level, '')} {escape(n.message)}" for n in notices)


def _short(text: str, limit: int = 24) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def build_session_list(editor: SessionEditor) -> Tuple[str, InlineKeyboardMarkup]:
    """
    Render the coach's offerings.

    While an offering is being edited or saved, no other offering gets edit
    or delete buttons and the create button is hidden.
    """
    blocks = ["🗂 <b>Your Session Types</b>"]
    keyboard = []

    if not editor.offerings:
        blocks.append(
            "No sessions defined yet. Use ➕ New session to create your first service offering."
        )

    for index, offering in enumerate(editor.offerings, start=1):
        if editor.is_saving(offering.id):
            blocks.append(f"{index}. ⏳ <i>Saving changes…</i>")
            continue
        block = f"{index}. {format_offering(offering)}"
        if offering.id == editor.active_offering_id:
            block += "\n✏️ <i>Editing</i>"
            keyboard.append(
                [InlineKeyboardButton(f"✏️ Continue editing {index}", callback_data=f"edit:{offering.id}")]
            )
        elif editor.can_edit(offering.id):
            keyboard.append(
                [
                    InlineKeyboardButton(
                        f"✏️ {index}. {_short(offering.title)}", callback_data=f"edit:{offering.id}"
                    ),
                    InlineKeyboardButton("🗑 Delete", callback_data=f"delete:{offering.id}"),
                ]
            )
        blocks.append(block)

    bottom_row = []
    if not editor.is_busy:
        bottom_row.append(InlineKeyboardButton("➕ New session", callback_data="new_session"))
    bottom_row.append(InlineKeyboardButton("🔄 Refresh", callback_data="sessions"))
    keyboard.append(bottom_row)

    return "\n\n".join(blocks), InlineKeyboardMarkup(keyboard)


def format_draft(draft: SessionDraft) -> str:
    """Format a form draft, marking required fields"""
    lines = []
    for row in FORM_FIELD_ROWS:
        for name in row:
            value = getattr(draft, name)
            if name == "format":
                value = SessionFormat.parse(value).label
            marker = "*" if name in REQUIRED_FIELDS else ""
            shown = escape(value) if value else "<i>not set</i>"
            lines.append(f"{FIELD_LABELS[name]}{marker}: {shown}")
    return "\n".join(lines)


def build_form(
    heading: str, draft: SessionDraft, can_submit: bool, submit_label: str
) -> Tuple[str, InlineKeyboardMarkup]:
    """Render a create or edit form with one button per field"""
    text = (
        f"{heading}\n\n{format_draft(draft)}\n\n"
        "<i>Tap a field to change it. * required</i>"
    )
    keyboard = [
        [
            InlineKeyboardButton(FIELD_LABELS[name], callback_data=f"field:{name}")
            for name in row
        ]
        for row in FORM_FIELD_ROWS
    ]
    last_row = []
    if can_submit:
        last_row.append(InlineKeyboardButton(submit_label, callback_data="submit_form"))
    last_row.append(InlineKeyboardButton("❌ Cancel", callback_data="cancel_form"))
    keyboard.append(last_row)
    return text, InlineKeyboardMarkup(keyboard)


def build_format_picker() -> InlineKeyboardMarkup:
    keyboard = [
        [InlineKeyboardButton(fmt.label, callback_data=f"format:{fmt.value}")]
        for fmt in SessionFormat
    ]
    keyboard.append([InlineKeyboardButton("⬅️ Back", callback_data="back_to_form")])
    return InlineKeyboardMarkup(keyboard)


def build_delete_confirmation(offering: SessionOffering) -> Tuple[str, InlineKeyboardMarkup]:
    text = (
        "🗑 <b>Delete this session?</b>\n\n"
        f"{format_offering(offering)}\n\n"
        "This cannot be undone."
    )
    keyboard = [
        [
            InlineKeyboardButton("✅ Yes, delete", callback_data=f"confirm_delete:{offering.id}"),
            InlineKeyboardButton("❌ No", callback_data="cancel_delete"),
        ]
    ]
    return text, InlineKeyboardMarkup(keyboard)
