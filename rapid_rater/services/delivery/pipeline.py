# --------------------------- rapid_rater/services/delivery/pipeline.py ----------------------------
"""
Rapid Rater · Quote Delivery Pipeline

OVERVIEW:
Everything that happens after Rapid Rater returned a quote.

WORKFLOW:
1. Format the raw quote text as an HTML table
2. Email the quote with the screenshot attached
3. Log the lead to Supabase (non-fatal)
4. Delete the screenshot artifact

BUSINESS LOGIC:
- Email failure fails the delivery; the screenshot stays on disk for manual
  inspection and the engine keeps the session for a retry
- A lead-log failure never blocks the user
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from rapid_rater.models.quote_request import QuoteRequest
from rapid_rater.services.delivery.email import QuoteEmailSender
from rapid_rater.services.delivery.formatter import QuoteFormatter
from rapid_rater.services.delivery.lead_log import LeadLogger
from rapid_rater.services.quoter import QuoteResult

logger = logging.getLogger(__name__)


@dataclass
class DeliveryReport:
    message_id: str
    lead_logged: bool


class DeliveryPipeline:
    """Format → email → log → clean up, for one quote."""

    def __init__(self, formatter: QuoteFormatter, email_sender: QuoteEmailSender, lead_logger: LeadLogger):
        self.formatter = formatter
        self.email_sender = email_sender
        self.lead_logger = lead_logger

    async def deliver(self, request: QuoteRequest, result: QuoteResult) -> DeliveryReport:
        """
        Deliver one quote.

        RAISES:
            DeliveryError: the email could not be sent (artifact is kept)
        """
        quote_table = await self.formatter.format_quote(result.quote_text)
        message_id = await self.email_sender.send_quote(request, quote_table, result.screenshot_path)
        lead_logged = await self.lead_logger.log_quote(request, result.quote_text)

        self._remove_artifact(result.screenshot_path)
        return DeliveryReport(message_id=message_id, lead_logged=lead_logged)

    @staticmethod
    def _remove_artifact(path: Path) -> None:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"⚠️  Could not delete screenshot {path}: {e}")
