"""
Configuration module for reportseal.

Centralizes configuration with environment variable support and validation.
Values are read once at import time.
"""

import os
from typing import Dict

from .hashing import HashVersion

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("REPORTSEAL_ENV", "dev")  # dev|stage|prod

# Algorithm for newly created signatures. Verification always uses the
# version stored on the record.
SIGNATURE_HASH_VERSION = os.getenv("REPORTSEAL_HASH_VERSION", HashVersion.FRAMED_V2.value)

# Upper bound for a captured signature mark (UTF-8 bytes)
MAX_SIGNATURE_SVG_BYTES = int(os.getenv("REPORTSEAL_MAX_SVG_BYTES", "100000"))

# Logging
LOG_LEVEL = os.getenv("REPORTSEAL_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("REPORTSEAL_LOG_JSON", "true").lower() in ("1", "true", "yes")
# Optional file that receives a copy of every log record
LOG_FILE = os.getenv("REPORTSEAL_LOG_FILE") or None


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, str]:
    """
    Validate configuration values.
    Returns dict of setting -> problem (empty when everything is usable).
    """
    problems = {}

    if SIGNATURE_HASH_VERSION not in [v.value for v in HashVersion]:
        problems["REPORTSEAL_HASH_VERSION"] = f"unknown hash version {SIGNATURE_HASH_VERSION!r}"

    if MAX_SIGNATURE_SVG_BYTES <= 0:
        problems["REPORTSEAL_MAX_SVG_BYTES"] = "must be positive"

    if LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        problems["REPORTSEAL_LOG_LEVEL"] = f"unknown log level {LOG_LEVEL!r}"

    if ENV not in ("dev", "stage", "prod"):
        problems["REPORTSEAL_ENV"] = f"unknown environment {ENV!r}"

    if is_production() and SIGNATURE_HASH_VERSION == HashVersion.STREAM_V1.value:
        problems["REPORTSEAL_HASH_VERSION"] = "v1 cannot see field boundaries; use it only to read stored records"

    return problems


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("REPORTSEAL_DEBUG", "").lower() in ("1", "true", "yes")
