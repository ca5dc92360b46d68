"""
Burn-rate configuration — single source of truth for health bands,
overserving thresholds, window lengths and settings keys.

Import from here in services and routes rather than hardcoding values.
"""
from __future__ import annotations

import os

# ── Health band ────────────────────────────────────────────────────────────────
# burn_pct_mtd strictly above OVER → OVER, strictly below UNDER → UNDER.
# The band [HEALTH_UNDER_THRESHOLD, HEALTH_OVER_THRESHOLD] is ON_TRACK.
HEALTH_OVER_THRESHOLD: float = 1.10
HEALTH_UNDER_THRESHOLD: float = 0.90


# ── Overserving analysis ───────────────────────────────────────────────────────

# Average per-entry cost / retainer ratio an employee may reach before counting
# as overserving.
BASELINE_RETAINER_USAGE: float = 0.20

# Trailing window used for the dashboard top-N lists (calendar months)
DEFAULT_WINDOW_MONTHS: int = 3

# Window used for the lost revenue estimate (calendar months)
LOST_REVENUE_WINDOW_MONTHS: int = 1

# Rows returned by each top-N overserving list
TOP_N: int = 5


# ── Settings ───────────────────────────────────────────────────────────────────

HOURLY_RATE_SETTING_KEY: str = "hourly_rate"

# Dollars per hour used when the hourly_rate setting is absent
DEFAULT_HOURLY_RATE: float = float(os.getenv("DEFAULT_HOURLY_RATE", "150"))


# ── Client detail ──────────────────────────────────────────────────────────────

RECENT_TIME_ENTRIES_LIMIT: int = 10
