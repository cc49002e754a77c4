"""
Access check shared by all commands and buttons.
"""

import logging
from telegram import Update

from katha.config import get_config

logger = logging.getLogger(__name__)

NOT_AUTHORIZED_MESSAGE = "⛔ This bot manages a coach's sessions and is not available to you."


async def ensure_coach(update: Update) -> bool:
    """Return True if the user may edit sessions, otherwise tell them and return False"""
    user_id = update.effective_user.id
    if get_config().is_coach(user_id):
        return True

    logger.warning(f"User {user_id} is not the configured coach, ignoring")
    if update.callback_query:
        await update.callback_query.answer(NOT_AUTHORIZED_MESSAGE, show_alert=True)
    elif update.message:
        await update.message.reply_text(NOT_AUTHORIZED_MESSAGE)
    return False
