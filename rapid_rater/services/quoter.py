# --------------------------- rapid_rater/services/quoter.py ----------------------------
"""
Rapid Rater · Quote Execution Adapter (Playwright)

OVERVIEW:
Drives the carrier's public QoL Rapid Rater web form with a headless Chromium
browser and returns the quote text plus a full-page screenshot.

WORKFLOW:
1. Open the Rapid Rater page
2. Select state (the product list reloads per state), then product and gender
3. Fill age and face amount, select premium mode
4. Apply table rating / flat extra when present
5. Submit and wait for the #QuickView result panel
6. Capture the result text and a screenshot artifact

BUSINESS LOGIC:
- Dropdowns are matched case-insensitively on value or label, then by
  substring, because the form's labels drift between releases
- The screenshot is the customer-facing proof of the quote; it is left on
  disk until delivery succeeds

TECHNICAL NOTES:
- Every step has its own timeout; the engine imposes none
- The browser is always closed, success or failure
- Any failure is raised as QuoteExecutionError with the underlying message

DEPENDENCIES:
- playwright (run `playwright install chromium` once)
- Environment variables: RAPID_RATER_URL, HEADLESS
"""

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from playwright.async_api import Page, async_playwright

from rapid_rater.config import settings
from rapid_rater.errors import QuoteExecutionError
from rapid_rater.models.quote_request import DEFAULT_TABLE_RATING, QuoteRequest

logger = logging.getLogger(__name__)


@dataclass
class QuoteResult:
    """Outcome of one successful form submission."""
    quote_text: str
    screenshot_path: Path


def match_option(options: List[Dict[str, str]], target: str) -> Optional[Dict[str, str]]:
    """
    Pick the dropdown option for a target label.

    MATCHING ORDER:
    1. Exact (case-insensitive) match on value or visible text
    2. Visible text containing the target (case-insensitive)

    ARGS:
        options: [{"text": ..., "value": ...}] scraped from the <select>
        target: Value we want selected, e.g. "OH" or "Monthly"

    RETURNS:
        The matching option dict, or None
    """
    wanted = str(target).strip().lower()
    for option in options:
        if option.get("value", "").lower() == wanted or option.get("text", "").lower() == wanted:
            return option
    for option in options:
        if wanted and wanted in option.get("text", "").lower():
            return option
    return None


def form_number(value: float) -> str:
    """Plain decimal text for a numeric form input (no exponent, no trailing zeros)."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


class RapidRaterQuoter:
    """Runs one quote per call against the Rapid Rater form."""

    def __init__(
        self,
        url: str = settings.RAPID_RATER_URL,
        headless: bool = settings.HEADLESS,
        artifact_dir: Path = settings.ARTIFACT_DIR,
        nav_timeout_ms: int = settings.QUOTE_NAV_TIMEOUT_MS,
        submit_timeout_ms: int = settings.QUOTE_SUBMIT_TIMEOUT_MS,
        result_timeout_ms: int = settings.QUOTE_RESULT_TIMEOUT_MS,
    ):
        self.url = url
        self.headless = headless
        self.artifact_dir = Path(artifact_dir)
        self.nav_timeout_ms = nav_timeout_ms
        self.submit_timeout_ms = submit_timeout_ms
        self.result_timeout_ms = result_timeout_ms

    async def run_quote(self, request: QuoteRequest) -> QuoteResult:
        """
        Submit the request to Rapid Rater.

        ARGS:
            request: Complete, validated quote request

        RETURNS:
            QuoteResult with the raw #QuickView text and the screenshot path

        RAISES:
            QuoteExecutionError: navigation, selection, submit or result wait failed
        """
        logger.info(f"🚀 Starting Rapid Rater automation: {request.field_values()}")
        self.artifact_dir.mkdir(parents=True, exist_ok=True)
        screenshot_path = self.artifact_dir / f"quote_result_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}.png"

        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=self.headless, args=["--start-maximized"])
            try:
                context = await browser.new_context(viewport={"width": 1280, "height": 800})
                page = await context.new_page()

                logger.info(f"🌐 Navigating to {self.url}...")
                await page.goto(self.url, wait_until="load", timeout=self.nav_timeout_ms)
                await page.wait_for_timeout(2000)

                await self._fill_form(page, request)

                submit = page.locator("#btnSubmit")
                await submit.wait_for(state="visible", timeout=self.submit_timeout_ms)
                await submit.click()

                await page.wait_for_selector("#QuickView", state="visible", timeout=self.result_timeout_ms)
                quote_text = await page.inner_text("#QuickView")
                await page.screenshot(path=str(screenshot_path), full_page=True)

            except QuoteExecutionError:
                raise
            except Exception as e:
                logger.error(f"❌ Automation failed: {e}")
                raise QuoteExecutionError(str(e)) from e
            finally:
                await browser.close()

        logger.info(f"✅ Quote captured ({len(quote_text)} chars), screenshot {screenshot_path.name}")
        return QuoteResult(quote_text=quote_text, screenshot_path=screenshot_path)

    async def _fill_form(self, page: Page, request: QuoteRequest) -> None:
        # State first: the product list is populated per state
        await self._safe_select(page, "#STATE", request.state)
        await page.wait_for_timeout(2000)
        await self._safe_select(page, "#DISPLAY_PRODUCT", request.product)
        await page.wait_for_timeout(500)
        await self._safe_select(page, "#SEX1", request.gender)

        await page.fill("#AGE1", str(request.age))
        await page.fill("#FACE_AMOUNT", str(request.face_amount))

        await self._safe_select(page, "#PREM_MODE", request.mode)

        if request.table_rating and request.table_rating != DEFAULT_TABLE_RATING:
            await self._safe_select(page, "#TABLE_RATING1", request.table_rating)

        if request.flat_extra:
            await page.fill("#FLAT_AMOUNT1", form_number(request.flat_extra))

    async def _safe_select(self, page: Page, selector: str, target: str) -> None:
        """
        Select an option in a dropdown, or click a radio input by value.

        RAISES:
            QuoteExecutionError: element missing or no option matches
        """
        element = await page.query_selector(selector)
        if not element:
            raise QuoteExecutionError(f"Selector {selector} not found")

        tag_name = await element.evaluate("el => el.tagName.toLowerCase()")
        if tag_name == "select":
            options = await page.eval_on_selector_all(
                f"{selector} option",
                "opts => opts.map(o => ({text: o.textContent.trim(), value: o.value}))",
            )
            match = match_option(options, target)
            if not match:
                logger.error(f"FAILED to select \"{target}\" for {selector}")
                raise QuoteExecutionError(f"No option found matching \"{target}\" for {selector}")
            await page.select_option(selector, value=match["value"])
            logger.info(f"   -> Selected \"{match['text']}\" (matched \"{target}\")")
            return

        # Radio buttons and other clickable inputs
        by_value = await page.query_selector(f"{selector}[value=\"{target}\"]")
        if by_value:
            await by_value.click()
            return

        raise QuoteExecutionError(f"No matching option/input found for {selector}")
