"""Centralised configuration for event_clustering.

Environment variables are loaded once and all related constants are
grouped by service for easier maintenance.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Core credentials and service settings (from environment)
# ---------------------------------------------------------------------------
OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
MONGODB_URI: str | None = os.getenv("MONGODB_URI")
MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "news")
OPENAI_TIMEOUT_SECONDS: float = _env_float("OPENAI_TIMEOUT_SECONDS", 30.0)
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Clustering
# ---------------------------------------------------------------------------
SAME_LANGUAGE_THRESHOLD: float = _env_float("CLUSTER_THRESHOLD_SAME_LANG", 0.80)
CROSS_LANGUAGE_THRESHOLD: float = _env_float("CLUSTER_THRESHOLD_CROSS_LANG", 0.75)
MAX_EVENT_AGE_DAYS: int = _env_int("CLUSTER_MAX_EVENT_AGE_DAYS", 7)
CANDIDATE_WINDOW_HOURS: int = _env_int("CLUSTER_CANDIDATE_WINDOW_HOURS", 48)
LANGUAGE_AWARE_THRESHOLDS: bool = _env_bool("CLUSTER_LANGUAGE_AWARE", False)
STALE_EVENT_DAYS: int = _env_int("STALE_EVENT_DAYS", 7)

# ---------------------------------------------------------------------------
# Scheduling
# A pass holds this lease so only one clustering writer runs at a time
# ---------------------------------------------------------------------------
CLUSTER_LEASE_NAME: str = "cluster-events"
CLUSTER_LEASE_SECONDS: int = _env_int("CLUSTER_LEASE_SECONDS", 30 * 60)

# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # credentials
    "OPENAI_API_KEY",
    "MONGODB_URI",
    "MONGODB_DATABASE",
    "OPENAI_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    # clustering
    "SAME_LANGUAGE_THRESHOLD",
    "CROSS_LANGUAGE_THRESHOLD",
    "MAX_EVENT_AGE_DAYS",
    "CANDIDATE_WINDOW_HOURS",
    "LANGUAGE_AWARE_THRESHOLDS",
    "STALE_EVENT_DAYS",
    # scheduling
    "CLUSTER_LEASE_NAME",
    "CLUSTER_LEASE_SECONDS",
]
