"""
Katha Session Editor Bot - Main Entry Point
Minimal bot setup that wires together all commands and handlers.
"""
import logging
from telegram import BotCommand
from telegram.ext import Application, CommandHandler, CallbackQueryHandler

from katha.config import get_config
from katha.database import init_database, close_database

# Import commands
from katha.commands.start import start_command, help_command
from katha.commands.sessions import sessions_command
from katha.commands.session_form import session_form_conversation, cancel_command

# Import handlers
from katha.handlers.buttons import button_callback

# Import services
from katha.services.editor_store import cleanup_expired_editors

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


async def post_init(application: Application) -> None:
    """Post-initialization callback - set bot commands"""
    commands = [
        BotCommand("start", "Start the session editor"),
        BotCommand("sessions", "List your session types"),
        BotCommand("newsession", "Add a new session type"),
        BotCommand("cancel", "Leave the current form"),
        BotCommand("help", "How session types work"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands set")


async def post_shutdown(application: Application) -> None:
    """Post-shutdown callback - release the database engine"""
    close_database()


def register_handlers(application: Application) -> None:
    """Register all command, conversation and button handlers"""
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("sessions", sessions_command))

    # Session form conversation handler
    application.add_handler(session_form_conversation)

    # /cancel also works once the conversation is gone (restart, other command)
    application.add_handler(CommandHandler("cancel", cancel_command))

    # Button callback handler
    application.add_handler(CallbackQueryHandler(button_callback))


def main() -> None:
    """Start the bot"""
    config = get_config()

    # Initialize database
    logger.info("Initializing database...")
    init_database()
    cleanup_expired_editors()

    # Create application
    application = (
        Application.builder()
        .token(config.telegram_bot_token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )
    register_handlers(application)

    # Start bot
    logger.info(f"Starting bot against {config.api_base_url}...")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == '__main__':
    main()
