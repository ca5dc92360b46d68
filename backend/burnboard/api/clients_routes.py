"""
Client routes — burn metrics list, client detail bundle, history and
per-department time breakdown.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from burnboard.api.deps import get_now, get_storage
from burnboard.models.schemas import (
    BurnSnapshotOut,
    ClientDetailResponse,
    ClientHistoryResponse,
    ClientListResponse,
    ClientOut,
    ClientStatus,
    DepartmentTimeResponse,
    MonthlySummaryOut,
    TeamMemberOut,
    TimeEntryOut,
)
from burnboard.services.burn_metrics import HealthStatus
from burnboard.services.client_metrics import build_clients_with_metrics
from burnboard.services.config import RECENT_TIME_ENTRIES_LIMIT
from burnboard.services.storage import Storage
from burnboard.services.time_period import month_bounds, parse_month

router = APIRouter(prefix="/api/clients", tags=["Clients"])
logger = logging.getLogger("burnboard-api")


async def _require_client(storage: Storage, client_id: str):
    client = await storage.get_client(client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("", response_model=ClientListResponse)
async def list_clients(
    status: ClientStatus = ClientStatus.ACTIVE,
    am: Optional[str] = Query(None, description="Account manager"),
    health: Optional[HealthStatus] = None,
    dept: Optional[str] = Query(None, description="Department name"),
    search: Optional[str] = None,
    storage: Storage = Depends(get_storage),
    now: datetime = Depends(get_now),
):
    """Clients with month-to-date burn metrics, ordered by name."""
    clients = await storage.list_clients(status=status, account_manager=am, search=search)
    mtd_totals = await storage.mtd_totals_by_client(now)

    department_client_ids = None
    if dept:
        department_client_ids = await storage.client_ids_with_department_activity(dept, now)

    return ClientListResponse(
        clients=build_clients_with_metrics(
            clients,
            mtd_totals,
            now,
            health=health,
            department_client_ids=department_client_ids,
        )
    )


@router.get("/{client_id}", response_model=ClientDetailResponse)
async def get_client(
    client_id: str,
    storage: Storage = Depends(get_storage),
    now: datetime = Depends(get_now),
):
    """Client record, team roster, this month's snapshots and latest time entries."""
    client = await _require_client(storage, client_id)
    month_start, next_month = month_bounds(now)

    team_members = await storage.team_members_for_client(client_id)
    snapshots = await storage.burn_snapshots(client_id, start=month_start.date())
    recent_entries = await storage.time_entries(
        client_id, start=month_start, end=next_month, limit=RECENT_TIME_ENTRIES_LIMIT
    )

    return ClientDetailResponse(
        client=ClientOut.model_validate(client),
        team_members=[TeamMemberOut.model_validate(m) for m in team_members],
        burn_snapshots=[BurnSnapshotOut.model_validate(s) for s in snapshots],
        recent_time_entries=[TimeEntryOut.model_validate(e) for e in recent_entries],
    )


@router.get("/{client_id}/history", response_model=ClientHistoryResponse)
async def get_client_history(
    client_id: str,
    storage: Storage = Depends(get_storage),
    now: datetime = Depends(get_now),
):
    month_start, _ = month_bounds(now)
    summaries = await storage.monthly_summaries(client_id)
    snapshots = await storage.burn_snapshots(client_id, start=month_start.date())
    return ClientHistoryResponse(
        monthly_summaries=[MonthlySummaryOut.model_validate(s) for s in summaries],
        daily_snapshots=[BurnSnapshotOut.model_validate(s) for s in snapshots],
    )


@router.get("/{client_id}/time-by-dept", response_model=DepartmentTimeResponse)
async def get_client_time_by_department(
    client_id: str,
    month: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}$", description="YYYY-MM"),
    storage: Storage = Depends(get_storage),
    now: datetime = Depends(get_now),
):
    """Hours, spend and headcount per department for one month (default: current)."""
    if month:
        try:
            month_start = parse_month(month)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    else:
        month_start = now.date().replace(day=1)

    department_data = await storage.time_by_department(client_id, month_start)
    return DepartmentTimeResponse(department_data=department_data)
