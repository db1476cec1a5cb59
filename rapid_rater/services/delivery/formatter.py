# --------------------------- rapid_rater/services/delivery/formatter.py ----------------------------
"""
Rapid Rater · Quote Formatter

Converts the raw #QuickView text scraped from Rapid Rater into an HTML table
fragment for the quote email. An OpenAI chat model does the layout; if the
call fails the raw lines are rendered into a plain Jinja2 table so the quote
is still delivered.
"""

import logging
from typing import Any, Optional

from jinja2 import Environment
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from rapid_rater.config import settings
from rapid_rater.utils.llm_output import strip_code_fences

logger = logging.getLogger(__name__)

FORMAT_PROMPT = "Convert insurance text data to a clean HTML <table>. Blue header, clear rows. No html/body tags."

FALLBACK_TABLE_TEMPLATE = """<table style="border-collapse: collapse; width: 100%;">
    <tr><th style="background-color: #1f4e9c; color: white; padding: 8px; text-align: left;">Quote Result</th></tr>
    {% for line in lines %}
    <tr><td style="padding: 6px; border-bottom: 1px solid #eee;">{{ line }}</td></tr>
    {% endfor %}
</table>"""

_jinja_env = Environment(autoescape=True)


def render_fallback_table(raw_quote_text: str) -> str:
    lines = [line.strip() for line in raw_quote_text.splitlines() if line.strip()]
    return _jinja_env.from_string(FALLBACK_TABLE_TEMPLATE).render(lines=lines)


class QuoteFormatter:
    """LLM-backed raw quote → HTML table conversion."""

    def __init__(self, llm: Optional[Any] = None, model: str = settings.LLM_MODEL):
        self._llm = llm
        self.model = model

    @property
    def llm(self) -> Any:
        if self._llm is None:
            self._llm = ChatOpenAI(model=self.model, temperature=0.0, timeout=settings.LLM_TIMEOUT_SECONDS)
        return self._llm

    async def format_quote(self, raw_quote_text: str) -> str:
        """
        Format quote text as an HTML <table> fragment.

        ARGS:
            raw_quote_text: Text captured from the Rapid Rater result panel

        RETURNS:
            str: HTML fragment (never a full document)
        """
        try:
            response = await self.llm.ainvoke([
                SystemMessage(content=FORMAT_PROMPT),
                HumanMessage(content=raw_quote_text),
            ])
            html = strip_code_fences(str(response.content), "html")
            if "<table" in html.lower():
                return html
            logger.warning("⚠️  Formatter returned no <table>, using plain layout")
        except Exception as e:
            logger.warning(f"⚠️  Quote formatting failed, using plain layout: {e}")
        return render_fallback_table(raw_quote_text)
