"""Central configuration loader for minvar."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the minvar/ package directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


def load_settings() -> dict:
    """Load settings from configs/settings.yaml."""
    settings_path = PROJECT_ROOT / "configs" / "settings.yaml"
    if not settings_path.exists():
        return {}
    with open(settings_path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()

# Lookback window bounds accepted by the pipeline (days)
MIN_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 2000


# --- API Keys ---
class Keys:
    TELEGRAM_TOKEN = os.getenv("TELEGRAM_TOKEN", "")
    COINGECKO = os.getenv("COINGECKO_API_KEY", "")


# --- Paths ---
class Paths:
    CONFIGS = PROJECT_ROOT / "configs"
