"""
Rapid Rater Configuration Settings

This module contains all configuration settings for the Rapid Rater quote bot.
Settings can be overridden by environment variables (a local .env file is
loaded first).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
ARTIFACT_DIR = Path(os.getenv("ARTIFACT_DIR", DATA_DIR / "artifacts"))

# Ensure directories exist
ARTIFACT_DIR.mkdir(parents=True, exist_ok=True)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# API Keys
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
RESEND_API_KEY = os.getenv("RESEND_API_KEY")

# Supabase Configuration
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_ANON_KEY")
LEADS_TABLE = os.getenv("LEADS_TABLE", "leads")

# Email Configuration
EMAIL_FROM = os.getenv("EMAIL_FROM", "Rapid Rater Bot <onboarding@resend.dev>")

# Model Configuration
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o")
TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

# Quote Automation
RAPID_RATER_URL = os.getenv(
    "RAPID_RATER_URL",
    "https://rapid-rater.live.web.corebridgefinancial.com/QoLRapidRater",
)
HEADLESS = os.getenv("HEADLESS", "true").lower() != "false"
QUOTE_NAV_TIMEOUT_MS = int(os.getenv("QUOTE_NAV_TIMEOUT_MS", "30000"))
QUOTE_SUBMIT_TIMEOUT_MS = int(os.getenv("QUOTE_SUBMIT_TIMEOUT_MS", "5000"))
QUOTE_RESULT_TIMEOUT_MS = int(os.getenv("QUOTE_RESULT_TIMEOUT_MS", "30000"))
