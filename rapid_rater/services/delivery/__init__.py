"""Quote Delivery Services"""
from .formatter import QuoteFormatter, render_fallback_table
from .email import QuoteEmailSender, QuoteEmailTemplate
from .lead_log import LeadLogger, build_lead_row
from .pipeline import DeliveryPipeline, DeliveryReport

__all__ = [
    "QuoteFormatter", "render_fallback_table", "QuoteEmailSender", "QuoteEmailTemplate",
    "LeadLogger", "build_lead_row", "DeliveryPipeline", "DeliveryReport",
]
