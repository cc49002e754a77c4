"""
/sessions command - fetch and show the coach's session types
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

from katha.handlers.access import ensure_coach
from katha.services.editor_store import load_editor, save_editor
from katha.services.formatting import build_session_list, format_notices

logger = logging.getLogger(__name__)


async def sessions_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /sessions command"""
    if not await ensure_coach(update):
        return

    user_id = update.effective_user.id
    editor = load_editor(user_id)
    editor.fetch_all()
    save_editor(user_id, editor)

    text, reply_markup = build_session_list(editor)
    notices = editor.drain_notices()
    if notices:
        text = f"{format_notices(notices)}\n\n{text}"

    await update.message.reply_text(text, reply_markup=reply_markup, parse_mode="HTML")
