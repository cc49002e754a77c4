"""
/start and /help commands - welcome message and usage overview
"""

import logging
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import ContextTypes

from katha.handlers.access import ensure_coach

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "📖 <b>How it works</b>\n\n"
    "• /sessions - list your session types\n"
    "• /newsession - add a new session type\n"
    "• /cancel - leave the form you are filling in\n\n"
    "<b>Rules for a session type:</b>\n"
    "• Session Name, Duration and Price are required\n"
    "• Price is a whole amount in multiples of 10\n"
    "• Duration is in minutes, in multiples of 30\n"
    "• A default date cannot be in the past\n\n"
    "You can edit one session at a time. Other sessions are locked "
    "until you save or cancel."
)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the /start command"""
    if not await ensure_coach(update):
        return

    user = update.effective_user
    logger.info(f"User {user.id} started the session editor")

    welcome_msg = (
        f"👋 <b>Welcome to The Katha, {user.first_name or 'coach'}!</b>\n\n"
        "Here you manage the session types clients can book on your public profile.\n\n"
        + HELP_TEXT
    )

    keyboard = [[InlineKeyboardButton("🗂 My Sessions", callback_data="sessions")]]
    reply_markup = InlineKeyboardMarkup(keyboard)

    await update.message.reply_text(
        welcome_msg, reply_markup=reply_markup, parse_mode="HTML"
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the /help command"""
    if not await ensure_coach(update):
        return
    await update.message.reply_text(HELP_TEXT, parse_mode="HTML")
