"""
burn_metrics.py — Per-client burn percentage, variance and health.

All monetary inputs are integer cents. Percentages are returned as real
ratios (1.15 == 115 %); display formatting happens in the front-end.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Union

from burnboard.services.config import HEALTH_OVER_THRESHOLD, HEALTH_UNDER_THRESHOLD
from burnboard.services.time_period import ideal_target_spend_to_date


class HealthStatus(str, Enum):
    OVER = "OVER"
    ON_TRACK = "ON_TRACK"
    UNDER = "UNDER"


def burn_pct(spend_cents: int, retainer_cents: int) -> float:
    """Share of the monthly retainer consumed; 0.0 when there is no retainer."""
    if retainer_cents == 0:
        return 0.0
    return spend_cents / retainer_cents


def variance(spend_cents: int, target_cents: int) -> Dict[str, Any]:
    """
    Actual spend against the ideal target.

    Returns:
        variance_cents — spend − target (exact integer)
        variance_pct   — spend / target − 1, or 0.0 when target is 0
    """
    variance_cents = spend_cents - target_cents
    variance_pct = (spend_cents / target_cents) - 1 if target_cents > 0 else 0.0
    return {
        "variance_cents": variance_cents,
        "variance_pct": variance_pct,
    }


def health(burn_pct_mtd: float) -> HealthStatus:
    if burn_pct_mtd > HEALTH_OVER_THRESHOLD:
        return HealthStatus.OVER
    if burn_pct_mtd < HEALTH_UNDER_THRESHOLD:
        return HealthStatus.UNDER
    return HealthStatus.ON_TRACK


def calculate_client_metrics(
    spend_cents: int,
    retainer_cents: int,
    as_of: Union[date, datetime],
) -> Dict[str, Any]:
    """
    Full metrics bundle for one client as of ``as_of``.

    Keys: burn_pct_mtd, ideal_target_spend_to_date_cents, variance_cents,
    variance_pct, health.
    """
    ideal_target = ideal_target_spend_to_date(retainer_cents, as_of)
    burn_percentage = burn_pct(spend_cents, retainer_cents)
    variance_data = variance(spend_cents, ideal_target)

    return {
        "burn_pct_mtd": burn_percentage,
        "ideal_target_spend_to_date_cents": ideal_target,
        "variance_cents": variance_data["variance_cents"],
        "variance_pct": variance_data["variance_pct"],
        "health": health(burn_percentage),
    }
