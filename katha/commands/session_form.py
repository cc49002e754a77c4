"""
Session form conversation handler for Telegram bot
Drives the create and edit forms: pick a field, type a value, submit or cancel
"""

import logging
from datetime import datetime
from html import escape
from typing import Optional

from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import (
    ContextTypes,
    ConversationHandler,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from katha.editor import SessionEditor, BUSY_MESSAGE
from katha.forms import SessionDraft, FIELD_LABELS, OPTIONAL_FIELDS
from katha.handlers.access import ensure_coach
from katha.services.editor_store import load_editor, save_editor
from katha.services.formatting import (
    build_form,
    build_format_picker,
    build_session_list,
    format_notices,
)

logger = logging.getLogger(__name__)

# Conversation states
(
    FORM_MENU,
    AWAITING_VALUE,
    PICKING_FORMAT,
) = range(3)

FORM_KIND_KEY = "form_kind"
FIELD_KEY = "form_field"

CREATE = "create"
EDIT = "edit"

CLEAR_VALUE = "-"

FIELD_PROMPTS = {
    "title": "e.g. Discovery Call",
    "price": "a whole amount in multiples of 10, e.g. 100",
    "duration": "minutes in multiples of 30, e.g. 60",
    "default_date": "YYYY-MM-DD, e.g. 2025-01-20",
    "default_time": "HH:MM, e.g. 18:30",
    "meeting_link": "e.g. https://zoom.us/j/...",
    "description": "a short description of this session type",
}


def _active_draft(editor: SessionEditor, kind: str) -> Optional[SessionDraft]:
    if kind == CREATE:
        return editor.create_form.draft
    form = editor.edit_form
    return form.draft if form else None


def _render_form(editor: SessionEditor, kind: str):
    notices = format_notices(editor.drain_notices())
    if kind == CREATE:
        text, reply_markup = build_form(
            "➕ <b>Add New Session Type</b>",
            editor.create_form.draft,
            can_submit=editor.can_create,
            submit_label="➕ Add Session Type",
        )
    else:
        form = editor.edit_form
        text, reply_markup = build_form(
            f"✏️ <b>Editing:</b> {escape(form.original.title)}",
            form.draft,
            can_submit=form.is_dirty,
            submit_label="💾 Save",
        )
    if notices:
        text = f"{notices}\n\n{text}"
    return text, reply_markup


def _render_list(editor: SessionEditor):
    text, reply_markup = build_session_list(editor)
    notices = format_notices(editor.drain_notices())
    if notices:
        text = f"{notices}\n\n{text}"
    return text, reply_markup


def normalize_value(field: str, raw: str) -> str:
    """
    Turn typed text into a field value.

    Raises:
        ValueError: If a date or time is not in the expected format
    """
    value = raw.strip()
    if value == CLEAR_VALUE and field in OPTIONAL_FIELDS:
        return ""
    if field == "default_date":
        return datetime.strptime(value, "%Y-%m-%d").date().isoformat()
    if field == "default_time":
        return datetime.strptime(value, "%H:%M").strftime("%H:%M")
    return value


async def _open_create_form(update: Update, context: ContextTypes.DEFAULT_TYPE, reply) -> int:
    user_id = update.effective_user.id
    editor = load_editor(user_id)

    if editor.is_busy:
        await reply(f"❌ {BUSY_MESSAGE}\n\nUse /sessions to continue editing.")
        return ConversationHandler.END

    context.user_data[FORM_KIND_KEY] = CREATE
    save_editor(user_id, editor)
    logger.info(f"User {user_id} opened the create form")

    text, reply_markup = _render_form(editor, CREATE)
    await reply(text, reply_markup=reply_markup, parse_mode="HTML")
    return FORM_MENU


async def new_session_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """/newsession - open the create form"""
    if not await ensure_coach(update):
        return ConversationHandler.END
    return await _open_create_form(update, context, update.message.reply_text)


async def new_session_button(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """➕ New session button"""
    if not await ensure_coach(update):
        return ConversationHandler.END
    query = update.callback_query
    await query.answer()
    return await _open_create_form(update, context, query.edit_message_text)


async def start_edit(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """✏️ Edit button - stage one offering in the edit form"""
    if not await ensure_coach(update):
        return ConversationHandler.END

    query = update.callback_query
    user_id = update.effective_user.id
    offering_id = query.data.split(":", 1)[1]

    editor = load_editor(user_id)
    editor.fetch_all()
    form = editor.start_edit(offering_id)

    if form is None:
        if editor.is_busy:
            await query.answer(BUSY_MESSAGE, show_alert=True)
        else:
            await query.answer("This session no longer exists.", show_alert=True)
        text, reply_markup = _render_list(editor)
        await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")
        return ConversationHandler.END

    await query.answer()
    context.user_data[FORM_KIND_KEY] = EDIT
    save_editor(user_id, editor)
    logger.info(f"User {user_id} is editing session offering {offering_id}")

    text, reply_markup = _render_form(editor, EDIT)
    await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")
    return FORM_MENU


async def _form_closed(query) -> int:
    await query.edit_message_text("❌ This form is no longer open. Use /sessions to start again.")
    return ConversationHandler.END


async def field_selected(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """A field button was pressed - ask for its value"""
    query = update.callback_query
    await query.answer()

    field = query.data.split(":", 1)[1]
    if field not in FIELD_LABELS:
        logger.warning(f"Unknown form field in callback: {query.data}")
        return FORM_MENU

    if field == "format":
        await query.edit_message_text(
            "👥 <b>Choose the session format:</b>",
            reply_markup=build_format_picker(),
            parse_mode="HTML",
        )
        return PICKING_FORMAT

    context.user_data[FIELD_KEY] = field
    prompt = f"✍️ Send the new <b>{FIELD_LABELS[field]}</b> ({FIELD_PROMPTS[field]})."
    if field in OPTIONAL_FIELDS:
        prompt += f"\nSend <code>{CLEAR_VALUE}</code> to clear it."

    keyboard = [[InlineKeyboardButton("⬅️ Back", callback_data="back_to_form")]]
    await query.edit_message_text(
        prompt, reply_markup=InlineKeyboardMarkup(keyboard), parse_mode="HTML"
    )
    return AWAITING_VALUE


async def value_received(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Typed value for the selected field"""
    user_id = update.effective_user.id
    kind = context.user_data.get(FORM_KIND_KEY)
    field = context.user_data.get(FIELD_KEY)

    editor = load_editor(user_id)
    draft = _active_draft(editor, kind) if kind else None
    if draft is None or field is None:
        await update.message.reply_text("❌ Your form expired. Use /sessions to start again.")
        return ConversationHandler.END

    try:
        value = normalize_value(field, update.message.text)
    except ValueError:
        await update.message.reply_text(
            f"❌ Invalid {FIELD_LABELS[field]}. Expected {FIELD_PROMPTS[field]}."
        )
        return AWAITING_VALUE

    draft.set_field(field, value)
    context.user_data.pop(FIELD_KEY, None)
    save_editor(user_id, editor)

    text, reply_markup = _render_form(editor, kind)
    await update.message.reply_text(text, reply_markup=reply_markup, parse_mode="HTML")
    return FORM_MENU


async def format_selected(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """A session format was picked"""
    query = update.callback_query
    await query.answer()

    user_id = update.effective_user.id
    kind = context.user_data.get(FORM_KIND_KEY)
    editor = load_editor(user_id)
    draft = _active_draft(editor, kind) if kind else None
    if draft is None:
        return await _form_closed(query)

    draft.set_field("format", query.data.split(":", 1)[1])
    save_editor(user_id, editor)

    text, reply_markup = _render_form(editor, kind)
    await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")
    return FORM_MENU


async def back_to_form(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Return from a field prompt or the format picker"""
    query = update.callback_query
    await query.answer()

    kind = context.user_data.get(FORM_KIND_KEY)
    context.user_data.pop(FIELD_KEY, None)
    editor = load_editor(update.effective_user.id)
    if kind is None or _active_draft(editor, kind) is None:
        return await _form_closed(query)

    text, reply_markup = _render_form(editor, kind)
    await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")
    return FORM_MENU


async def submit_form(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Create the new offering or save the edited one"""
    query = update.callback_query
    await query.answer()

    user_id = update.effective_user.id
    kind = context.user_data.get(FORM_KIND_KEY)
    editor = load_editor(user_id)
    if kind is None or _active_draft(editor, kind) is None:
        return await _form_closed(query)

    if kind == CREATE:
        succeeded = editor.create()
    else:
        await query.edit_message_text("⏳ Saving changes…")
        succeeded = editor.save_edit()

    save_editor(user_id, editor)

    if not succeeded:
        text, reply_markup = _render_form(editor, kind)
        await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")
        return FORM_MENU

    logger.info(f"User {user_id} submitted the {kind} form")
    context.user_data.pop(FORM_KIND_KEY, None)
    text, reply_markup = _render_list(editor)
    await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")
    return ConversationHandler.END


def _discard_form(editor: SessionEditor, kind: Optional[str]) -> None:
    if kind == CREATE:
        editor.create_form.reset()
    elif editor.edit_form is not None:
        editor.cancel_edit()


async def cancel_form(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """❌ Cancel button - discard the form and show the list"""
    query = update.callback_query
    await query.answer()

    user_id = update.effective_user.id
    editor = load_editor(user_id)
    _discard_form(editor, context.user_data.pop(FORM_KIND_KEY, None))
    context.user_data.pop(FIELD_KEY, None)
    editor.fetch_all()
    save_editor(user_id, editor)

    text, reply_markup = _render_list(editor)
    await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")
    return ConversationHandler.END


async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """/cancel - discard the open form, or a pending edit left behind by an earlier one"""
    if not await ensure_coach(update):
        return ConversationHandler.END

    user_id = update.effective_user.id
    editor = load_editor(user_id)
    _discard_form(editor, context.user_data.pop(FORM_KIND_KEY, None))
    context.user_data.pop(FIELD_KEY, None)
    save_editor(user_id, editor)

    await update.message.reply_text("❌ Form cancelled. Use /sessions to see your sessions.")
    return ConversationHandler.END


async def leave_form(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Any other command closes the form but keeps the draft"""
    context.user_data.pop(FIELD_KEY, None)
    context.user_data.pop(FORM_KIND_KEY, None)
    await update.message.reply_text(
        "📝 Form closed. Your changes are kept - use /sessions to continue."
    )
    return ConversationHandler.END


# Create the conversation handler
session_form_conversation = ConversationHandler(
    entry_points=[
        CommandHandler("newsession", new_session_command),
        CallbackQueryHandler(new_session_button, pattern=r"^new_session$"),
        CallbackQueryHandler(start_edit, pattern=r"^edit:.+$"),
    ],
    states={
        FORM_MENU: [
            CallbackQueryHandler(field_selected, pattern=r"^field:\w+$"),
            CallbackQueryHandler(submit_form, pattern=r"^submit_form$"),
            CallbackQueryHandler(cancel_form, pattern=r"^cancel_form$"),
        ],
        AWAITING_VALUE: [
            CallbackQueryHandler(back_to_form, pattern=r"^back_to_form$"),
            MessageHandler(filters.TEXT & ~filters.COMMAND, value_received),
        ],
        PICKING_FORMAT: [
            CallbackQueryHandler(format_selected, pattern=r"^format:[\w-]+$"),
            CallbackQueryHandler(back_to_form, pattern=r"^back_to_form$"),
        ],
    },
    fallbacks=[
        CommandHandler("cancel", cancel_command),
        MessageHandler(filters.COMMAND, leave_form),
    ],
)
