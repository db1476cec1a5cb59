"""
Rapid Rater · Telegram Chat Interface

Receives typed messages and voice notes from agents on Telegram and feeds
them to the quote conversation engine. Also implements the engine's
Notifier interface, so every reply goes back through the same bot.

Commands:
    /start   - Explain what to send
    /cancel  - Drop the quote request in progress

Messages:
    text     - Processed as a typed turn (no confirmation step)
    voice    - Transcribed with Whisper, echoed back, then processed as a
               voice turn (requires "Yes" before the quote runs)

Usage:
    bot = TelegramQuoteBot(transcriber=Transcriber())
    bot.engine = QuoteConversationEngine(..., notifier=bot)
    bot.run()
"""

from __future__ import annotations

import logging
from typing import Any, Hashable, Optional

from telegram import Update
from telegram.constants import ParseMode
from telegram.error import BadRequest
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from rapid_rater.agents.quote_intake.state_machine import Channel
from rapid_rater.config import settings

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "👋 Send me the client details as text or a voice note:\n"
    "age, state, gender, face amount and the email address for the quote.\n"
    "Optional: product, premium mode, table rating, flat extra."
)


class TelegramQuoteBot:
    """
    Telegram transport for the quote bot.

    Updates are processed concurrently across chats; the engine serializes
    turns within a chat.
    """

    def __init__(self, transcriber: Any, token: Optional[str] = None, engine: Any = None):
        self.token = token or settings.TELEGRAM_BOT_TOKEN or ""
        self.transcriber = transcriber
        self.engine = engine
        self._app: Optional[Application] = None

    # ------------------------------------------------------------------
    # Bot Setup
    # ------------------------------------------------------------------

    def _build_app(self) -> Application:
        if not self.token:
            raise ValueError("TELEGRAM_BOT_TOKEN not set. Add it to .env or pass token= parameter.")
        if self.engine is None:
            raise ValueError("No conversation engine attached to the bot.")

        app = Application.builder().token(self.token).concurrent_updates(True).build()

        app.add_handler(CommandHandler("start", self._cmd_start))
        app.add_handler(CommandHandler("cancel", self._cmd_cancel))
        app.add_handler(MessageHandler(filters.VOICE, self._on_voice))
        app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self._on_text))

        self._app = app
        return app

    def run(self) -> None:
        """Start long polling (blocking)."""
        app = self._build_app()
        logger.info("🤖 Rapid Rater Bot Online...")
        app.run_polling(allowed_updates=Update.ALL_TYPES)

    # ------------------------------------------------------------------
    # Notifier
    # ------------------------------------------------------------------

    async def send_message(self, conversation_id: Hashable, text: str) -> None:
        """Send a Markdown reply, falling back to plain text if Telegram rejects the markup."""
        if not self._app:
            raise RuntimeError("Telegram bot is not running")
        try:
            await self._app.bot.send_message(chat_id=conversation_id, text=text, parse_mode=ParseMode.MARKDOWN)
        except BadRequest as e:
            # Email addresses with underscores break legacy Markdown entities
            logger.warning(f"⚠️  Markdown rejected ({e}), resending as plain text")
            await self._app.bot.send_message(chat_id=conversation_id, text=text.replace("**", ""))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.message.reply_text(WELCOME_MESSAGE)

    async def _cmd_cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        cancelled = await self.engine.cancel(update.effective_chat.id)
        await update.message.reply_text(
            "🗑 Quote request cancelled." if cancelled else "Nothing to cancel."
        )

    async def _on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat_id = update.effective_chat.id
        logger.info(f"📩 Text from {chat_id}: {update.message.text}")
        try:
            await self.engine.handle_message(chat_id, update.message.text, Channel.TEXT)
        except Exception:
            logger.exception(f"❌ Failed to handle text from {chat_id}")

    async def _on_voice(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat_id = update.effective_chat.id
        try:
            voice_file = await context.bot.get_file(update.message.voice.file_id)
            audio = bytes(await voice_file.download_as_bytearray())
            transcript = await self.transcriber.transcribe(audio)
        except Exception as e:
            logger.error(f"❌ Voice error for {chat_id}: {e}")
            await update.message.reply_text("❌ Voice error.")
            return

        await self.send_message(chat_id, f"🗣 I heard: \"{transcript}\"")
        try:
            await self.engine.handle_message(chat_id, transcript, Channel.VOICE)
        except Exception:
            logger.exception(f"❌ Failed to handle voice turn from {chat_id}")
