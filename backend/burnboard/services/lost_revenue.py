"""
lost_revenue.py — Monetary estimate of overserving.

Client-side and employee-side overserving hours are two views of the same
underlying work, so the estimate takes the larger of the two totals rather
than their sum. This is an approximation, not a reconciliation.
"""

from typing import List

from burnboard.models.schemas import OverservingClientData, OverservingEmployeeData
from burnboard.services.time_period import round_half_up


def hourly_rate_cents(hourly_rate: float) -> int:
    """Configured dollars-per-hour rate expressed in cents."""
    return round_half_up(hourly_rate * 100)


def estimate_lost_revenue(
    overserving_clients: List[OverservingClientData],
    overserving_employees: List[OverservingEmployeeData],
    hourly_rate: float,
) -> int:
    """
    Lost revenue in cents for one month of overserving.

    Args:
        overserving_clients:   single-month (months=1) client analysis
        overserving_employees: single-month (months=1) employee analysis
        hourly_rate:           dollars per hour

    Returns:
        max(Σ client hours, Σ employee hours) × hourly rate in cents
    """
    client_hours = sum(max(0.0, c.average_overserving_hours) for c in overserving_clients)
    employee_hours = sum(max(0.0, e.average_overserving_hours) for e in overserving_employees)

    total_overserving_hours = max(client_hours, employee_hours)
    return round_half_up(total_overserving_hours * hourly_rate_cents(hourly_rate))
