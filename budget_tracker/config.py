"""Configuration management for the budget tracker.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in budget_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_TRACKER_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORTS_DIR = Path(os.getenv("BUDGET_TRACKER_EXPORTS_DIR", DATA_DIR / "exports"))

# Record store
DB_PATH = Path(
    os.getenv("BUDGET_TRACKER_DB_PATH", DATA_DIR / "budget.db")
).resolve()

# Display
CURRENCY_SYMBOL = os.getenv("BUDGET_TRACKER_CURRENCY", "₦")
TIMEZONE = os.getenv("BUDGET_TRACKER_TIMEZONE", "UTC")

# Outbound email relay (EmailJS REST API)
EMAILJS_API_URL = os.getenv("EMAILJS_API_URL", "https://api.emailjs.com/api/v1.0/email/send")
EMAILJS_SERVICE_ID = os.getenv("EMAILJS_SERVICE_ID", "")
EMAILJS_TEMPLATE_ID = os.getenv("EMAILJS_TEMPLATE_ID", "")
EMAILJS_PUBLIC_KEY = os.getenv("EMAILJS_PUBLIC_KEY", "")
EMAIL_TIMEOUT_SECONDS = float(os.getenv("BUDGET_TRACKER_EMAIL_TIMEOUT", "10"))

# Forecasting
FORECAST_LOOKBACK_MONTHS = 6
SUGGESTED_TARGET_RATIO = 0.9


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, EXPORTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)


def emailjs_settings() -> dict:
    """Return the EmailJS credentials, read from the environment at call time."""
    return {
        'api_url': os.getenv("EMAILJS_API_URL", EMAILJS_API_URL),
        'service_id': os.getenv("EMAILJS_SERVICE_ID", EMAILJS_SERVICE_ID),
        'template_id': os.getenv("EMAILJS_TEMPLATE_ID", EMAILJS_TEMPLATE_ID),
        'public_key': os.getenv("EMAILJS_PUBLIC_KEY", EMAILJS_PUBLIC_KEY),
    }
