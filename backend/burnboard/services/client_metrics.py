"""
client_metrics.py — Decorates client records with month-to-date burn metrics.

The storage layer supplies the client list (already filtered by status,
account manager and name search) together with month-to-date cost/hours sums
from a single group-by query. This module joins the two, applies the burn
calculator and the derived-value filters (health, department membership),
and rolls the active portfolio up into the dashboard summary.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Set, Union

from burnboard.models.schemas import ClientOut, ClientWithMetrics, DashboardSummary
from burnboard.services.burn_metrics import HealthStatus, calculate_client_metrics
from burnboard.services.time_period import round_half_up


@dataclass(frozen=True)
class SpendTotals:
    """Summed cost and hours of a client's time entries within one window."""
    spend_cents: int = 0
    hours: float = 0.0


_NO_SPEND = SpendTotals()


def build_clients_with_metrics(
    clients: Iterable[Any],
    mtd_totals: Mapping[str, SpendTotals],
    as_of: Union[date, datetime],
    health: Optional[HealthStatus] = None,
    department_client_ids: Optional[Set[str]] = None,
) -> List[ClientWithMetrics]:
    """
    Compute ``ClientWithMetrics`` for every client, then filter.

    Args:
        clients:               client records (ORM rows or anything with the
                               same attributes)
        mtd_totals:            client_id → month-to-date SpendTotals; clients
                               without time entries may be absent
        as_of:                 the day the ideal target is paced to
        health:                keep only clients with this computed health
        department_client_ids: when given, keep only these client ids

    Returns the surviving clients ordered by name ascending.
    """
    result: List[ClientWithMetrics] = []

    for client in clients:
        if department_client_ids is not None and client.id not in department_client_ids:
            continue

        totals = mtd_totals.get(client.id, _NO_SPEND)
        retainer_cents = client.monthly_retainer_amount_cents or 0
        metrics = calculate_client_metrics(totals.spend_cents, retainer_cents, as_of)

        if health is not None and metrics["health"] != health:
            continue

        record = ClientOut.model_validate(client).model_dump()
        result.append(
            ClientWithMetrics(
                **record,
                mtd_spend_cents=totals.spend_cents,
                mtd_hours=totals.hours,
                **metrics,
            )
        )

    result.sort(key=lambda c: c.name)
    return result


def summarize_portfolio(
    active_clients: List[ClientWithMetrics],
    total_retainer_cents: int,
    mtd_spend_cents: int,
) -> DashboardSummary:
    """Headline figures for the dashboard; on-track share is a whole percent."""
    active_count = len(active_clients)
    on_track = sum(1 for c in active_clients if c.health == HealthStatus.ON_TRACK)
    on_track_percentage = (
        round_half_up(on_track / active_count * 100) if active_count > 0 else 0
    )
    return DashboardSummary(
        active_clients=active_count,
        on_track_percentage=on_track_percentage,
        total_retainer_cents=total_retainer_cents,
        mtd_spend_cents=mtd_spend_cents,
    )
