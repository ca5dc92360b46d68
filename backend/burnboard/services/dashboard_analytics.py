"""
dashboard_analytics.py — Combines the overserving lists and the lost revenue
estimate into the dashboard analytics payload.
"""

import logging
from datetime import datetime
from typing import Sequence

from burnboard.models.schemas import DashboardAnalytics
from burnboard.services.config import DEFAULT_WINDOW_MONTHS, LOST_REVENUE_WINDOW_MONTHS
from burnboard.services.lost_revenue import estimate_lost_revenue, hourly_rate_cents
from burnboard.services.overserving import (
    WorkEntry,
    top_overserving_clients,
    top_overserving_employees,
)

logger = logging.getLogger("burnboard-analytics")


def compose_dashboard_analytics(
    entries: Sequence[WorkEntry],
    hourly_rate: float,
    as_of: datetime,
) -> DashboardAnalytics:
    """
    Build the analytics report as of ``as_of``.

    ``entries`` must cover at least the DEFAULT_WINDOW_MONTHS trailing window;
    each analysis applies its own window to them. The lost revenue figure is
    computed from separate single-month analyses.
    """
    top_clients = top_overserving_clients(entries, as_of, months=DEFAULT_WINDOW_MONTHS)
    top_employees = top_overserving_employees(entries, as_of, months=DEFAULT_WINDOW_MONTHS)

    lost_revenue_cents = estimate_lost_revenue(
        top_overserving_clients(entries, as_of, months=LOST_REVENUE_WINDOW_MONTHS),
        top_overserving_employees(entries, as_of, months=LOST_REVENUE_WINDOW_MONTHS),
        hourly_rate,
    )

    logger.info(
        "Dashboard analytics: %d overserving clients, %d overserving employees, "
        "lost revenue %d cents",
        len(top_clients),
        len(top_employees),
        lost_revenue_cents,
    )

    return DashboardAnalytics(
        top_overserving_clients=top_clients,
        top_overserving_employees=top_employees,
        total_lost_revenue_cents=lost_revenue_cents,
        hourly_rate_cents=hourly_rate_cents(hourly_rate),
    )
