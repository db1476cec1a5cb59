# --------------------------- rapid_rater/main.py ----------------------------
"""
Rapid Rater · Bot Entry Point

USAGE:
    rapid-rater            (console script)
    python -m rapid_rater.main

Wires the session store, adapters and Telegram transport together and starts
long polling. Configuration comes from the environment / .env file.
"""

import logging

from rapid_rater.agents.quote_intake.graph import QuoteConversationEngine
from rapid_rater.config import settings
from rapid_rater.interfaces.telegram_bot import TelegramQuoteBot
from rapid_rater.services.delivery import DeliveryPipeline, LeadLogger, QuoteEmailSender, QuoteFormatter
from rapid_rater.services.extraction import FieldExtractor
from rapid_rater.services.quoter import RapidRaterQuoter
from rapid_rater.services.session_store import InMemorySessionStore
from rapid_rater.services.transcription import Transcriber


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # httpx logs every Telegram long-poll request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_bot() -> TelegramQuoteBot:
    """Assemble the bot with production adapters."""
    bot = TelegramQuoteBot(transcriber=Transcriber())
    bot.engine = QuoteConversationEngine(
        store=InMemorySessionStore(),
        extractor=FieldExtractor(),
        quoter=RapidRaterQuoter(),
        delivery=DeliveryPipeline(
            formatter=QuoteFormatter(),
            email_sender=QuoteEmailSender(),
            lead_logger=LeadLogger(),
        ),
        notifier=bot,
    )
    return bot


def main() -> None:
    configure_logging()
    build_bot().run()


if __name__ == "__main__":
    main()
