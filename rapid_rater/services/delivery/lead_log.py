# --------------------------- rapid_rater/services/delivery/lead_log.py ----------------------------
"""
Rapid Rater · Lead Log (Supabase)

Appends every delivered quote to the Supabase `leads` table. Logging is
bookkeeping only: a failed insert is logged and reported as False, never
raised, so the user-visible flow is not affected.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from supabase import Client, create_client

from rapid_rater.config import settings
from rapid_rater.models.quote_request import QuoteRequest

logger = logging.getLogger(__name__)


def build_lead_row(request: QuoteRequest, quote_text: str) -> Dict[str, Any]:
    return {
        "recipient": request.recipient,
        "state": request.state,
        "age": request.age,
        "gender": request.gender,
        "face_amount": request.face_amount,
        "product": request.product,
        "mode": request.mode,
        "quote_result": quote_text,
        "table_rating": request.table_rating or "None",
        "flat_extra": request.flat_extra or 0,
    }


class LeadLogger:
    """Append-only lead records in Supabase."""

    def __init__(self, supabase: Optional[Client] = None, table: str = settings.LEADS_TABLE):
        self.table = table
        self.supabase = supabase
        if self.supabase is None and settings.SUPABASE_URL and settings.SUPABASE_SERVICE_KEY:
            self.supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)

    async def log_quote(self, request: QuoteRequest, quote_text: str) -> bool:
        if not self.supabase:
            logger.warning("⚠️  Supabase not configured - lead not logged")
            return False

        row = build_lead_row(request, quote_text)
        try:
            await asyncio.to_thread(self._insert, row)
        except Exception as e:
            logger.error(f"❌ Supabase log error: {e}")
            return False

        logger.info("📝 Lead saved to Supabase.")
        return True

    def _insert(self, row: Dict[str, Any]) -> None:
        self.supabase.table(self.table).insert(row).execute()
