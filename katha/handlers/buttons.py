"""
Button callback handlers for Telegram inline keyboards.
Handles the session list: refresh and the two-step delete.
Form buttons are handled by the session form conversation.
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

from katha.editor import BUSY_MESSAGE
from katha.handlers.access import ensure_coach
from katha.services.editor_store import load_editor, save_editor
from katha.services.formatting import (
    build_delete_confirmation,
    build_session_list,
    format_notices,
)

logger = logging.getLogger(__name__)

STALE_FORM_PREFIXES = ("field:", "format:", "submit_form", "cancel_form", "back_to_form")
# entry buttons on older list messages while another form is open
FORM_ENTRY_PREFIXES = ("edit:", "new_session")


async def show_session_list(query, editor) -> None:
    """Render the session list into the callback's message"""
    text, reply_markup = build_session_list(editor)
    notices = editor.drain_notices()
    if notices:
        text = f"{format_notices(notices)}\n\n{text}"
    await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")


async def button_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle list button presses"""
    if not await ensure_coach(update):
        return

    query = update.callback_query
    user_id = update.effective_user.id
    data = query.data or ""

    if data.startswith(STALE_FORM_PREFIXES):
        await query.answer("This form is closed.", show_alert=False)
        await query.edit_message_text(
            "📝 This form is closed. Use /sessions to continue."
        )
        return

    if data.startswith(FORM_ENTRY_PREFIXES):
        await query.answer(BUSY_MESSAGE, show_alert=True)
        return

    await query.answer()
    editor = load_editor(user_id)
    editor.fetch_all()

    if data == "sessions":
        save_editor(user_id, editor)
        await show_session_list(query, editor)

    elif data.startswith("delete:"):
        offering_id = data.split(":", 1)[1]
        offering = editor.request_delete(offering_id)
        save_editor(user_id, editor)
        if offering is None:
            await show_session_list(query, editor)
            return
        text, reply_markup = build_delete_confirmation(offering)
        await query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")

    elif data.startswith("confirm_delete:"):
        offering_id = data.split(":", 1)[1]
        if editor.confirm_delete(offering_id):
            logger.info(f"User {user_id} deleted session offering {offering_id}")
        save_editor(user_id, editor)
        await show_session_list(query, editor)

    elif data == "cancel_delete":
        editor.cancel_delete()
        save_editor(user_id, editor)
        await show_session_list(query, editor)

    else:
        logger.warning(f"Unhandled callback data from user {user_id}: {data}")
        await show_session_list(query, editor)
