"""
overserving.py — Trailing-window overserving analysis.

Covers:
  - Top overserving clients: window spend above the cumulative retainer
  - Top overserving employees: average per-entry share of the client retainer
    above the baseline utilisation (20 %)

Inputs are time entries joined with their client and team member
(``WorkEntry``). Only ACTIVE clients are considered and the window is
``[as_of − months, as_of]``. Results are monthly averages over the window.

Ranking ties are broken by id ascending so identical inputs always produce
identical lists.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List

from burnboard.models.schemas import (
    ClientStatus,
    OverservingClientData,
    OverservingEmployeeData,
)
from burnboard.services.config import BASELINE_RETAINER_USAGE, DEFAULT_WINDOW_MONTHS, TOP_N
from burnboard.services.time_period import round_half_up, subtract_months

logger = logging.getLogger("burnboard-analytics")


@dataclass(frozen=True)
class WorkEntry:
    """One time entry joined with its client and team member."""
    client_id: str
    client_name: str
    account_manager: str
    client_status: str
    retainer_cents: int
    member_id: str
    member_name: str
    department: str
    cost_cents: int
    hours: float
    start: datetime


def _window_entries(
    entries: Iterable[WorkEntry], as_of: datetime, months: int
) -> List[WorkEntry]:
    if months < 1:
        raise ValueError(f"months must be >= 1, got {months}")
    window_start = subtract_months(as_of, months)
    return [
        e for e in entries
        if e.client_status == ClientStatus.ACTIVE and window_start <= e.start <= as_of
    ]


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

def top_overserving_clients(
    entries: Iterable[WorkEntry],
    as_of: datetime,
    months: int = DEFAULT_WINDOW_MONTHS,
    limit: int = TOP_N,
) -> List[OverservingClientData]:
    """
    Clients whose window spend exceeds ``retainer × months``.

        overserving_cents = total_cost − retainer × months
        overserving_hours = overserving_cents / total_cost × total_hours

    Both are divided by ``months``. Ranked by overserving_cents descending.
    """
    totals: Dict[str, Dict[str, Any]] = {}
    for e in _window_entries(entries, as_of, months):
        bucket = totals.get(e.client_id)
        if bucket is None:
            bucket = totals[e.client_id] = {
                "entry": e,
                "cost_cents": 0,
                "hours": 0.0,
            }
        bucket["cost_cents"] += e.cost_cents
        bucket["hours"] += e.hours

    ranked = []
    for client_id, bucket in totals.items():
        allowance_cents = bucket["entry"].retainer_cents * months
        total_cost = bucket["cost_cents"]
        if total_cost <= allowance_cents:
            continue
        overserving_cents = total_cost - allowance_cents
        overserving_hours = (
            overserving_cents / total_cost * bucket["hours"] if total_cost > 0 else 0.0
        )
        ranked.append((overserving_cents, client_id, overserving_hours, bucket["entry"]))

    ranked.sort(key=lambda r: (-r[0], r[1]))

    return [
        OverservingClientData(
            client_id=client_id,
            client_name=entry.client_name,
            account_manager=entry.account_manager,
            average_overserving_hours=overserving_hours / months,
            average_overserving_cents=round_half_up(overserving_cents / months),
        )
        for overserving_cents, client_id, overserving_hours, entry in ranked[:limit]
    ]


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------

def top_overserving_employees(
    entries: Iterable[WorkEntry],
    as_of: datetime,
    months: int = DEFAULT_WINDOW_MONTHS,
    limit: int = TOP_N,
) -> List[OverservingEmployeeData]:
    """
    Team members whose average per-entry ``cost / client retainer`` ratio
    exceeds BASELINE_RETAINER_USAGE.

    Entries against a zero-retainer client carry no ratio: they are left out
    of the average but still count towards the member's hours and cost.

        overserving_hours = (avg_ratio − baseline) × total_hours

    Reported per month: hours / months and total_cost / months. Ranked by
    total window cost descending.
    """
    totals: Dict[str, Dict[str, Any]] = {}
    skipped_ratio_entries = 0
    for e in _window_entries(entries, as_of, months):
        bucket = totals.get(e.member_id)
        if bucket is None:
            bucket = totals[e.member_id] = {
                "entry": e,
                "cost_cents": 0,
                "hours": 0.0,
                "ratio_sum": 0.0,
                "ratio_count": 0,
            }
        bucket["cost_cents"] += e.cost_cents
        bucket["hours"] += e.hours
        if e.retainer_cents > 0:
            bucket["ratio_sum"] += e.cost_cents / e.retainer_cents
            bucket["ratio_count"] += 1
        else:
            skipped_ratio_entries += 1

    if skipped_ratio_entries:
        logger.debug(
            "Excluded %d zero-retainer entries from employee usage ratios",
            skipped_ratio_entries,
        )

    ranked = []
    for member_id, bucket in totals.items():
        if bucket["ratio_count"] == 0:
            continue
        avg_ratio = bucket["ratio_sum"] / bucket["ratio_count"]
        if avg_ratio <= BASELINE_RETAINER_USAGE:
            continue
        overserving_hours = (avg_ratio - BASELINE_RETAINER_USAGE) * bucket["hours"]
        ranked.append((bucket["cost_cents"], member_id, overserving_hours, bucket["entry"]))

    ranked.sort(key=lambda r: (-r[0], r[1]))

    return [
        OverservingEmployeeData(
            member_id=member_id,
            member_name=entry.member_name,
            department=entry.department,
            average_overserving_hours=overserving_hours / months,
            average_overserving_cents=round_half_up(total_cost / months),
        )
        for total_cost, member_id, overserving_hours, entry in ranked[:limit]
    ]
