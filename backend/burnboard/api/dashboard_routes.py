"""Dashboard routes — portfolio summary and overserving analytics."""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from burnboard.api.deps import get_now, get_storage
from burnboard.models.schemas import ClientStatus, DashboardAnalytics, DashboardSummary
from burnboard.services.client_metrics import build_clients_with_metrics, summarize_portfolio
from burnboard.services.config import DEFAULT_WINDOW_MONTHS
from burnboard.services.dashboard_analytics import compose_dashboard_analytics
from burnboard.services.storage import Storage
from burnboard.services.time_period import subtract_months

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])
logger = logging.getLogger("burnboard-api")


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(
    storage: Storage = Depends(get_storage),
    now: datetime = Depends(get_now),
):
    """Active client count, on-track share, retainer total and month-to-date spend."""
    active_clients = await storage.list_clients(status=ClientStatus.ACTIVE)
    mtd_totals = await storage.mtd_totals_by_client(now)
    with_metrics = build_clients_with_metrics(active_clients, mtd_totals, now)

    return summarize_portfolio(
        with_metrics,
        total_retainer_cents=await storage.active_retainer_total(),
        mtd_spend_cents=await storage.active_mtd_spend(now),
    )


@router.get("/analytics", response_model=DashboardAnalytics)
async def dashboard_analytics(
    storage: Storage = Depends(get_storage),
    now: datetime = Depends(get_now),
):
    """Top overserving clients/employees and the estimated lost revenue."""
    entries = await storage.work_entries_since(subtract_months(now, DEFAULT_WINDOW_MONTHS))
    hourly_rate = await storage.get_hourly_rate()
    return compose_dashboard_analytics(entries, hourly_rate, now)
