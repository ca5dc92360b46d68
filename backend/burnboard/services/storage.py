"""
storage.py — Persistence queries behind the burn-rate API.

``Storage`` wraps one request-scoped ``AsyncSession``. It returns ORM rows for
plain records and pre-aggregated values (``SpendTotals``, ``WorkEntry``) for
the computation services, so per-client month-to-date sums come from a single
grouped query instead of one query per client.

Failures propagate to the caller; ``get_db`` rolls the session back.
"""
import logging
import math
from datetime import date, datetime
from typing import Dict, List, Optional, Set

from sqlalchemy import distinct, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from burnboard.models.orm_models import (
    BurnSnapshot,
    Client,
    ClientTeam,
    Department,
    MonthlySummary,
    Setting,
    TeamMember,
    TimeEntry,
)
from burnboard.models.schemas import ClientStatus, DepartmentTimeData
from burnboard.services.client_metrics import SpendTotals
from burnboard.services.config import DEFAULT_HOURLY_RATE, HOURLY_RATE_SETTING_KEY
from burnboard.services.overserving import WorkEntry
from burnboard.services.time_period import month_bounds

logger = logging.getLogger("burnboard-storage")


class Storage:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Clients ──────────────────────────────────────────────────────────────

    async def list_clients(
        self,
        status: Optional[ClientStatus] = ClientStatus.ACTIVE,
        account_manager: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Client]:
        """Clients ordered by name. ``search`` is a case-insensitive substring match."""
        query = select(Client)
        if status is not None:
            query = query.where(Client.status == status.value)
        if account_manager:
            query = query.where(Client.account_manager == account_manager)
        if search:
            query = query.where(Client.name.ilike(f"%{search}%"))
        result = await self.db.execute(query.order_by(Client.name))
        return list(result.scalars().all())

    async def get_client(self, client_id: str) -> Optional[Client]:
        result = await self.db.execute(select(Client).where(Client.id == client_id))
        return result.scalar_one_or_none()

    async def get_client_by_external_id(self, accelo_id: str) -> Optional[Client]:
        result = await self.db.execute(select(Client).where(Client.accelo_id == accelo_id))
        return result.scalar_one_or_none()

    async def upsert_client(
        self,
        accelo_id: str,
        name: str,
        status: ClientStatus = ClientStatus.ACTIVE,
        start_date: Optional[date] = None,
        monthly_retainer_amount_cents: int = 0,
        account_manager: str = "",
    ) -> Client:
        """
        Insert a client keyed by its external id, or refresh name/status of the
        existing one. Retainer, start date and account manager are only set on
        insert so repeated webhook pushes never reset them.
        """
        stmt = pg_insert(Client).values(
            accelo_id=accelo_id,
            name=name,
            status=status.value,
            start_date=start_date or date.today(),
            monthly_retainer_amount_cents=monthly_retainer_amount_cents,
            account_manager=account_manager,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Client.accelo_id],
            set_={
                "name": stmt.excluded.name,
                "status": stmt.excluded.status,
                "updated_at": func.now(),
            },
        ).returning(Client)
        result = await self.db.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one()

    # ── Month-to-date aggregates ────────────────────────────────────────────

    async def mtd_totals_by_client(self, as_of: datetime) -> Dict[str, SpendTotals]:
        """Cost and hours per client for the month containing ``as_of``."""
        start, next_start = month_bounds(as_of)
        result = await self.db.execute(
            select(
                TimeEntry.client_id,
                func.coalesce(func.sum(TimeEntry.cost_cents), 0),
                func.coalesce(func.sum(TimeEntry.hours), 0.0),
            )
            .where(TimeEntry.start >= start, TimeEntry.start < next_start)
            .group_by(TimeEntry.client_id)
        )
        return {
            client_id: SpendTotals(spend_cents=int(cost), hours=float(hours))
            for client_id, cost, hours in result.all()
        }

    async def client_ids_with_department_activity(
        self, department_name: str, as_of: datetime
    ) -> Set[str]:
        """Clients with at least one entry this month by a member of the department."""
        start, next_start = month_bounds(as_of)
        result = await self.db.execute(
            select(distinct(TimeEntry.client_id))
            .join(TeamMember, TimeEntry.member_id == TeamMember.id)
            .join(Department, TeamMember.department_id == Department.id)
            .where(
                Department.name == department_name,
                TimeEntry.start >= start,
                TimeEntry.start < next_start,
            )
        )
        return set(result.scalars().all())

    async def active_retainer_total(self) -> int:
        total = await self.db.scalar(
            select(func.coalesce(func.sum(Client.monthly_retainer_amount_cents), 0))
            .where(Client.status == ClientStatus.ACTIVE.value)
        )
        return int(total or 0)

    async def active_mtd_spend(self, as_of: datetime) -> int:
        start, next_start = month_bounds(as_of)
        total = await self.db.scalar(
            select(func.coalesce(func.sum(TimeEntry.cost_cents), 0))
            .join(Client, TimeEntry.client_id == Client.id)
            .where(
                Client.status == ClientStatus.ACTIVE.value,
                TimeEntry.start >= start,
                TimeEntry.start < next_start,
            )
        )
        return int(total or 0)

    # ── Overserving input ────────────────────────────────────────────────────

    async def work_entries_since(self, start: datetime) -> List[WorkEntry]:
        """Time entries of ACTIVE clients starting at or after ``start``, joined for analysis."""
        result = await self.db.execute(
            select(
                TimeEntry.client_id,
                Client.name,
                Client.account_manager,
                Client.status,
                Client.monthly_retainer_amount_cents,
                TimeEntry.member_id,
                TeamMember.name,
                Department.name,
                TimeEntry.cost_cents,
                TimeEntry.hours,
                TimeEntry.start,
            )
            .join(Client, TimeEntry.client_id == Client.id)
            .join(TeamMember, TimeEntry.member_id == TeamMember.id)
            .join(Department, TeamMember.department_id == Department.id)
            .where(
                TimeEntry.start >= start,
                Client.status == ClientStatus.ACTIVE.value,
            )
        )
        return [
            WorkEntry(
                client_id=row[0],
                client_name=row[1],
                account_manager=row[2] or "",
                client_status=row[3],
                retainer_cents=row[4] or 0,
                member_id=row[5],
                member_name=row[6],
                department=row[7],
                cost_cents=row[8] or 0,
                hours=float(row[9] or 0.0),
                start=row[10],
            )
            for row in result.all()
        ]

    # ── Departments & team ──────────────────────────────────────────────────

    async def list_departments(self) -> List[Department]:
        result = await self.db.execute(select(Department).order_by(Department.name))
        return list(result.scalars().all())

    async def team_members_for_client(self, client_id: str) -> List[TeamMember]:
        result = await self.db.execute(
            select(TeamMember)
            .join(ClientTeam, ClientTeam.member_id == TeamMember.id)
            .where(ClientTeam.client_id == client_id)
            .order_by(TeamMember.name)
        )
        return list(result.scalars().all())

    async def time_by_department(self, client_id: str, month: date) -> List[DepartmentTimeData]:
        start, next_start = month_bounds(month)
        result = await self.db.execute(
            select(
                Department.id,
                Department.name,
                func.coalesce(func.sum(TimeEntry.hours), 0.0),
                func.coalesce(func.sum(TimeEntry.cost_cents), 0),
                func.count(distinct(TimeEntry.member_id)),
            )
            .join(Department, TimeEntry.department_id == Department.id)
            .where(
                TimeEntry.client_id == client_id,
                TimeEntry.start >= start,
                TimeEntry.start < next_start,
            )
            .group_by(Department.id, Department.name)
            .order_by(Department.name)
        )
        return [
            DepartmentTimeData(
                department_id=dept_id,
                department_name=dept_name,
                hours=float(hours),
                spend_cents=int(spend),
                member_count=int(members),
            )
            for dept_id, dept_name, hours, spend, members in result.all()
        ]

    # ── Time entries & snapshots ─────────────────────────────────────────────

    async def time_entries(
        self,
        client_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[TimeEntry]:
        """Newest first."""
        query = select(TimeEntry).where(TimeEntry.client_id == client_id)
        if start is not None:
            query = query.where(TimeEntry.start >= start)
        if end is not None:
            query = query.where(TimeEntry.start < end)
        query = query.order_by(TimeEntry.start.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def burn_snapshots(
        self,
        client_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[BurnSnapshot]:
        """Oldest first."""
        query = select(BurnSnapshot).where(BurnSnapshot.client_id == client_id)
        if start is not None:
            query = query.where(BurnSnapshot.date >= start)
        if end is not None:
            query = query.where(BurnSnapshot.date <= end)
        result = await self.db.execute(query.order_by(BurnSnapshot.date))
        return list(result.scalars().all())

    async def upsert_burn_snapshot(
        self,
        client_id: str,
        snapshot_date: date,
        spend_to_date_cents: int,
        hours_to_date: float,
        target_spend_to_date_cents: int = 0,
    ) -> BurnSnapshot:
        """One snapshot per (client, date); a second push for the same day overwrites it."""
        stmt = pg_insert(BurnSnapshot).values(
            client_id=client_id,
            date=snapshot_date,
            spend_to_date_cents=spend_to_date_cents,
            hours_to_date=hours_to_date,
            target_spend_to_date_cents=target_spend_to_date_cents,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[BurnSnapshot.client_id, BurnSnapshot.date],
            set_={
                "spend_to_date_cents": stmt.excluded.spend_to_date_cents,
                "hours_to_date": stmt.excluded.hours_to_date,
                "target_spend_to_date_cents": stmt.excluded.target_spend_to_date_cents,
            },
        ).returning(BurnSnapshot)
        result = await self.db.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one()

    async def monthly_summaries(self, client_id: str) -> List[MonthlySummary]:
        """Newest month first."""
        result = await self.db.execute(
            select(MonthlySummary)
            .where(MonthlySummary.client_id == client_id)
            .order_by(MonthlySummary.year.desc(), MonthlySummary.month.desc())
        )
        return list(result.scalars().all())

    # ── Settings ─────────────────────────────────────────────────────────────

    async def list_settings(self) -> List[Setting]:
        result = await self.db.execute(select(Setting).order_by(Setting.key))
        return list(result.scalars().all())

    async def get_setting(self, key: str) -> Optional[Setting]:
        result = await self.db.execute(select(Setting).where(Setting.key == key))
        return result.scalar_one_or_none()

    async def set_setting(self, key: str, value: str, value_type: str = "string") -> Setting:
        setting = await self.get_setting(key)
        if not setting:
            setting = Setting(key=key, value=value, value_type=value_type)
            self.db.add(setting)
        else:
            setting.value = value
            setting.value_type = value_type
        await self.db.flush()
        await self.db.refresh(setting)
        return setting

    async def get_hourly_rate(self) -> float:
        """
        Dollars per hour from the ``hourly_rate`` setting.

        DEFAULT_HOURLY_RATE when unset, or when the stored value is not a
        finite, non-negative number ("nan", "inf", "-20", "lots").
        """
        setting = await self.get_setting(HOURLY_RATE_SETTING_KEY)
        if not setting:
            return DEFAULT_HOURLY_RATE
        try:
            rate = float(setting.value)
        except ValueError:
            rate = None
        if rate is None or not math.isfinite(rate) or rate < 0:
            logger.warning(
                f"Setting {HOURLY_RATE_SETTING_KEY}={setting.value!r} is not a usable rate, "
                f"using default {DEFAULT_HOURLY_RATE}"
            )
            return DEFAULT_HOURLY_RATE
        return rate
