# config.py
"""
Runtime configuration read from environment variables.

Every value can be overridden in deployment; defaults suit local development.
"""

import os


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


# Storage
DB_FILE = os.getenv("BRIXSHIELD_DB", "brixshield.db")
DATABASE_URL = os.getenv("BRIXSHIELD_DATABASE_URL", f"sqlite:///{DB_FILE}")
STORAGE_BACKEND = os.getenv("BRIXSHIELD_STORAGE", "sql").lower()
STORAGE_KEY = os.getenv("BRIXSHIELD_STORAGE_KEY", "brixshield_scan_history")
MAX_SCANS = _int_env("BRIXSHIELD_MAX_SCANS", 1000)
REDIS_URL = os.getenv("REDIS_URL")

# Rules
RULES_FILE = os.getenv("BRIXSHIELD_RULES_FILE")

# Reputation lookups
SAFE_BROWSING_API_KEY = os.getenv("GOOGLE_SAFE_BROWSING_API_KEY")
REPUTATION_TIMEOUT = _float_env("BRIXSHIELD_REPUTATION_TIMEOUT", 5.0)

# AI recommendations
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "anthropic/claude-3.5-sonnet")
SITE_URL = os.getenv("BRIXSHIELD_SITE_URL", "http://localhost:5050")

# API
API_KEY = os.getenv("BRIXSHIELD_API_KEY")
MAX_UPLOAD_BYTES = _int_env("BRIXSHIELD_MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
RATELIMIT_ENABLED = _bool_env("BRIXSHIELD_RATELIMIT_ENABLED", True)
PORT = _int_env("PORT", 5050)
LOG_LEVEL = os.getenv("BRIXSHIELD_LOG_LEVEL", "INFO").upper()
