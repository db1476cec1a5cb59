# --------------------------- rapid_rater/services/delivery/email.py ----------------------------
"""
Rapid Rater · Quote Email Sender

OVERVIEW:
Sends the formatted quote to the requested recipient through the Resend API,
with the Rapid Rater screenshot attached.

BUSINESS LOGIC:
- The email repeats the client summary so the agent can match it to a lead
- The screenshot is the carrier's own rendering of the quote
- A missing API key is a delivery failure, not a silent skip: the user must
  know the quote never left

DEPENDENCIES:
- Environment variables: RESEND_API_KEY, EMAIL_FROM
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional

import resend
from jinja2 import Environment

from rapid_rater.config import settings
from rapid_rater.errors import DeliveryError
from rapid_rater.models.quote_request import QuoteRequest, format_amount

logger = logging.getLogger(__name__)


class QuoteEmailTemplate:
    """Email layout for a delivered quote."""

    SUBJECT_TEMPLATE = "Quote: {{ product }} - {{ face_amount | money }}"

    HTML_TEMPLATE = """
<h3>Rapid Rater Quote Result</h3>
<p><strong>Client:</strong> {{ gender }}, Age {{ age }}, {{ state }}</p>
<p><strong>Details:</strong> {{ product }} ({{ mode }}) - {{ face_amount | money }}</p>
<p><strong>Rating:</strong> {{ table_rating }} | <strong>Flat Extra:</strong> {{ flat_extra }}</p>
{{ quote_table | safe }}
<p><em>Screenshot attached.</em></p>
"""


class QuoteEmailSender:
    """Resend-backed quote email delivery."""

    ATTACHMENT_NAME = "Quote.png"

    def __init__(self, api_key: Optional[str] = settings.RESEND_API_KEY, sender: str = settings.EMAIL_FROM):
        self.api_key = api_key
        self.sender = sender
        if self.api_key:
            resend.api_key = self.api_key

        self.jinja_env = Environment(autoescape=True)
        self.jinja_env.filters["money"] = format_amount

    def render(self, request: QuoteRequest, quote_table: str) -> Dict[str, str]:
        """Render subject and HTML body for a quote email."""
        data = {**request.field_values(), "quote_table": quote_table}
        return {
            "subject": self.jinja_env.from_string(QuoteEmailTemplate.SUBJECT_TEMPLATE).render(**data),
            "html": self.jinja_env.from_string(QuoteEmailTemplate.HTML_TEMPLATE).render(**data),
        }

    async def send_quote(self, request: QuoteRequest, quote_table: str, screenshot_path: Path) -> str:
        """
        Email the quote with the screenshot attached.

        RETURNS:
            str: Resend message id

        RAISES:
            DeliveryError: email not configured, screenshot unreadable or send failed
        """
        if not self.api_key:
            logger.warning("Resend API key not configured")
            raise DeliveryError("Email service not configured")

        content = self.render(request, quote_table)
        try:
            attachment = list(Path(screenshot_path).read_bytes())
        except OSError as e:
            raise DeliveryError(f"Screenshot unavailable: {e}") from e

        params = {
            "from": self.sender,
            "to": [request.recipient],
            "subject": content["subject"],
            "html": content["html"],
            "attachments": [{"filename": self.ATTACHMENT_NAME, "content": attachment}],
        }

        try:
            response = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            logger.error(f"Failed to send quote email: {e}")
            raise DeliveryError(f"Email failed: {e}") from e

        logger.info(f"✉️  Quote email sent to {request.recipient}: {response['id']}")
        return response["id"]
