"""
conftest.py — Shared pytest fixtures for the Burnboard backend test suite.

No database is required. Computation services are exercised directly; API
routes run through FastAPI's TestClient with ``FakeStorage`` (an in-memory
stand-in for ``burnboard.services.storage.Storage``) and a pinned clock
injected via ``app.dependency_overrides``.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``burnboard.*`` imports resolve regardless of where pytest is invoked.
"""

import sys
import os
from datetime import date, datetime
from types import SimpleNamespace
from typing import Dict, List, Optional, Set

import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any burnboard imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from burnboard.models.schemas import ClientStatus, DepartmentTimeData  # noqa: E402
from burnboard.services.client_metrics import SpendTotals  # noqa: E402
from burnboard.services.overserving import WorkEntry  # noqa: E402
from burnboard.services.storage import Storage  # noqa: E402
from burnboard.services.time_period import month_bounds  # noqa: E402


# 15 September 2026, day 15 of a 30-day month
NOW = datetime(2026, 9, 15, 12, 0)


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

def make_client(**overrides):
    """Client record shaped like the ORM row."""
    record = {
        "id": "c-1",
        "name": "Client One",
        "accelo_id": None,
        "status": "ACTIVE",
        "start_date": date(2024, 1, 15),
        "monthly_retainer_amount_cents": 1_500_000,
        "planned_hours": None,
        "hourly_blended_rate_cents": None,
        "account_manager": "Sarah Johnson",
        "created_at": None,
        "updated_at": None,
    }
    record.update(overrides)
    return SimpleNamespace(**record)


def make_work_entry(**overrides) -> WorkEntry:
    """Joined time entry for the overserving analyzer."""
    record = {
        "client_id": "c-1",
        "client_name": "Client One",
        "account_manager": "Sarah Johnson",
        "client_status": "ACTIVE",
        "retainer_cents": 1_000_000,
        "member_id": "m-1",
        "member_name": "Alex Smith",
        "department": "SEO",
        "cost_cents": 100_000,
        "hours": 10.0,
        "start": datetime(2026, 9, 1, 9, 0),
    }
    record.update(overrides)
    return WorkEntry(**record)


@pytest.fixture
def client_factory():
    return make_client


@pytest.fixture
def entry_factory():
    return make_work_entry


# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------

class FakeStorage:
    """Implements the Storage query surface over plain lists."""

    def __init__(self):
        self.clients: List[SimpleNamespace] = []
        self.departments: List[SimpleNamespace] = []
        self.members: List[SimpleNamespace] = []
        self.client_teams: List[tuple] = []
        self.time_entries_rows: List[SimpleNamespace] = []
        self.snapshots: List[SimpleNamespace] = []
        self.summaries: List[SimpleNamespace] = []
        self.settings: Dict[str, SimpleNamespace] = {}
        self._ids = 0

    def _next_id(self, prefix: str) -> str:
        self._ids += 1
        return f"{prefix}-{self._ids}"

    def _client(self, client_id: str) -> Optional[SimpleNamespace]:
        return next((c for c in self.clients if c.id == client_id), None)

    def _member(self, member_id: str) -> SimpleNamespace:
        return next(m for m in self.members if m.id == member_id)

    def _department(self, department_id: str) -> SimpleNamespace:
        return next(d for d in self.departments if d.id == department_id)

    def _in_month(self, entry, as_of) -> bool:
        start, next_start = month_bounds(as_of)
        return start <= entry.start < next_start

    # ── Clients ──────────────────────────────────────────────────────────────

    async def list_clients(self, status=ClientStatus.ACTIVE, account_manager=None, search=None):
        rows = self.clients
        if status is not None:
            rows = [c for c in rows if c.status == status.value]
        if account_manager:
            rows = [c for c in rows if c.account_manager == account_manager]
        if search:
            rows = [c for c in rows if search.lower() in c.name.lower()]
        return sorted(rows, key=lambda c: c.name)

    async def get_client(self, client_id):
        return self._client(client_id)

    async def get_client_by_external_id(self, accelo_id):
        return next((c for c in self.clients if c.accelo_id == accelo_id), None)

    async def upsert_client(
        self,
        accelo_id,
        name,
        status=ClientStatus.ACTIVE,
        start_date=None,
        monthly_retainer_amount_cents=0,
        account_manager="",
    ):
        existing = await self.get_client_by_external_id(accelo_id)
        if existing:
            existing.name = name
            existing.status = status.value
            return existing
        client = make_client(
            id=self._next_id("c"),
            accelo_id=accelo_id,
            name=name,
            status=status.value,
            start_date=start_date or date.today(),
            monthly_retainer_amount_cents=monthly_retainer_amount_cents,
            account_manager=account_manager,
        )
        self.clients.append(client)
        return client

    # ── Aggregates ───────────────────────────────────────────────────────────

    async def mtd_totals_by_client(self, as_of) -> Dict[str, SpendTotals]:
        totals: Dict[str, SpendTotals] = {}
        for e in self.time_entries_rows:
            if not self._in_month(e, as_of):
                continue
            current = totals.get(e.client_id, SpendTotals())
            totals[e.client_id] = SpendTotals(
                spend_cents=current.spend_cents + e.cost_cents,
                hours=current.hours + e.hours,
            )
        return totals

    async def client_ids_with_department_activity(self, department_name, as_of) -> Set[str]:
        return {
            e.client_id
            for e in self.time_entries_rows
            if self._in_month(e, as_of)
            and self._department(self._member(e.member_id).department_id).name == department_name
        }

    async def active_retainer_total(self):
        return sum(c.monthly_retainer_amount_cents for c in self.clients if c.status == "ACTIVE")

    async def active_mtd_spend(self, as_of):
        return sum(
            e.cost_cents
            for e in self.time_entries_rows
            if self._in_month(e, as_of) and self._client(e.client_id).status == "ACTIVE"
        )

    async def work_entries_since(self, start) -> List[WorkEntry]:
        rows = []
        for e in self.time_entries_rows:
            client = self._client(e.client_id)
            if e.start < start or client.status != "ACTIVE":
                continue
            member = self._member(e.member_id)
            rows.append(
                WorkEntry(
                    client_id=client.id,
                    client_name=client.name,
                    account_manager=client.account_manager,
                    client_status=client.status,
                    retainer_cents=client.monthly_retainer_amount_cents,
                    member_id=member.id,
                    member_name=member.name,
                    department=self._department(member.department_id).name,
                    cost_cents=e.cost_cents,
                    hours=e.hours,
                    start=e.start,
                )
            )
        return rows

    # ── Departments & team ──────────────────────────────────────────────────

    async def list_departments(self):
        return sorted(self.departments, key=lambda d: d.name)

    async def team_members_for_client(self, client_id):
        member_ids = {m for c, m in self.client_teams if c == client_id}
        return sorted((m for m in self.members if m.id in member_ids), key=lambda m: m.name)

    async def time_by_department(self, client_id, month):
        grouped: Dict[str, Dict] = {}
        for e in self.time_entries_rows:
            if e.client_id != client_id or not self._in_month(e, month):
                continue
            bucket = grouped.setdefault(
                e.department_id, {"hours": 0.0, "spend": 0, "members": set()}
            )
            bucket["hours"] += e.hours
            bucket["spend"] += e.cost_cents
            bucket["members"].add(e.member_id)
        return [
            DepartmentTimeData(
                department_id=dept_id,
                department_name=self._department(dept_id).name,
                hours=b["hours"],
                spend_cents=b["spend"],
                member_count=len(b["members"]),
            )
            for dept_id, b in sorted(grouped.items(), key=lambda kv: self._department(kv[0]).name)
        ]

    # ── Time entries & snapshots ─────────────────────────────────────────────

    async def time_entries(self, client_id, start=None, end=None, limit=None):
        rows = [e for e in self.time_entries_rows if e.client_id == client_id]
        if start is not None:
            rows = [e for e in rows if e.start >= start]
        if end is not None:
            rows = [e for e in rows if e.start < end]
        rows.sort(key=lambda e: e.start, reverse=True)
        return rows[:limit] if limit is not None else rows

    async def burn_snapshots(self, client_id, start=None, end=None):
        rows = [s for s in self.snapshots if s.client_id == client_id]
        if start is not None:
            rows = [s for s in rows if s.date >= start]
        if end is not None:
            rows = [s for s in rows if s.date <= end]
        return sorted(rows, key=lambda s: s.date)

    async def upsert_burn_snapshot(
        self,
        client_id,
        snapshot_date,
        spend_to_date_cents,
        hours_to_date,
        target_spend_to_date_cents=0,
    ):
        existing = next(
            (s for s in self.snapshots if s.client_id == client_id and s.date == snapshot_date),
            None,
        )
        if existing is None:
            existing = SimpleNamespace(id=self._next_id("s"), client_id=client_id, date=snapshot_date)
            self.snapshots.append(existing)
        existing.spend_to_date_cents = spend_to_date_cents
        existing.hours_to_date = hours_to_date
        existing.target_spend_to_date_cents = target_spend_to_date_cents
        return existing

    async def monthly_summaries(self, client_id):
        rows = [s for s in self.summaries if s.client_id == client_id]
        return sorted(rows, key=lambda s: (s.year, s.month), reverse=True)

    # ── Settings ─────────────────────────────────────────────────────────────

    async def list_settings(self):
        return sorted(self.settings.values(), key=lambda s: s.key)

    async def get_setting(self, key):
        return self.settings.get(key)

    async def set_setting(self, key, value, value_type="string"):
        setting = self.settings.get(key)
        if setting is None:
            setting = SimpleNamespace(
                id=self._next_id("set"), key=key, created_at=None, updated_at=None
            )
            self.settings[key] = setting
        setting.value = value
        setting.value_type = value_type
        return setting

    # Same parsing and fallback rules as the database-backed store
    get_hourly_rate = Storage.get_hourly_rate


def _entry(storage, client_id, member_id, start, hours, cost_cents):
    member = storage._member(member_id)
    storage.time_entries_rows.append(
        SimpleNamespace(
            id=storage._next_id("t"),
            client_id=client_id,
            member_id=member_id,
            department_id=member.department_id,
            start=start,
            end=start.replace(hour=min(start.hour + 1, 23)),
            hours=hours,
            cost_cents=cost_cents,
            created_at=None,
        )
    )


@pytest.fixture
def seeded_storage():
    """
    Portfolio as of NOW (15 Sep 2026):

      Acme Corporation    ACTIVE   $15,000  Sep: 900,000¢ / 60 h (SEO)      → UNDER
      Global Dynamics     ACTIVE    $8,000  Sep: 800,000¢ / 60 h (Web)      → ON_TRACK
                                            Jul+Aug: 2 × 1,100,000¢ / 80 h
      TechFlow Solutions  ACTIVE   $25,000  Sep: 3,000,000¢ / 200 h (Web)   → OVER
      Old Retail Co       INACTIVE  $5,000  Sep: 100,000¢ / 8 h (SEO)
    """
    s = FakeStorage()
    s.departments = [
        SimpleNamespace(id="d-seo", name="SEO"),
        SimpleNamespace(id="d-web", name="Web Development"),
    ]
    s.members = [
        SimpleNamespace(id="m-ann", name="Ann Lee", email="ann@example.com", role="Strategist",
                        department_id="d-seo", created_at=None, updated_at=None),
        SimpleNamespace(id="m-bob", name="Bob Ray", email="bob@example.com", role="Developer",
                        department_id="d-web", created_at=None, updated_at=None),
    ]
    s.clients = [
        make_client(id="c-acme", name="Acme Corporation", accelo_id="ACC001",
                    monthly_retainer_amount_cents=1_500_000, account_manager="Sarah Johnson"),
        make_client(id="c-global", name="Global Dynamics", accelo_id="ACC003",
                    monthly_retainer_amount_cents=800_000, account_manager="Emma Davis"),
        make_client(id="c-tech", name="TechFlow Solutions", accelo_id="ACC002",
                    monthly_retainer_amount_cents=2_500_000, account_manager="Mike Chen"),
        make_client(id="c-old", name="Old Retail Co", accelo_id="ACC009", status="INACTIVE",
                    monthly_retainer_amount_cents=500_000, account_manager="Emma Davis"),
    ]
    s.client_teams = [("c-acme", "m-ann"), ("c-global", "m-bob"), ("c-tech", "m-bob")]

    _entry(s, "c-acme", "m-ann", datetime(2026, 9, 3, 9), 60.0, 900_000)
    _entry(s, "c-global", "m-bob", datetime(2026, 9, 10, 9), 60.0, 800_000)
    _entry(s, "c-global", "m-bob", datetime(2026, 7, 1, 9), 80.0, 1_100_000)
    _entry(s, "c-global", "m-bob", datetime(2026, 8, 1, 9), 80.0, 1_100_000)
    _entry(s, "c-tech", "m-bob", datetime(2026, 9, 12, 9), 200.0, 3_000_000)
    _entry(s, "c-old", "m-ann", datetime(2026, 9, 5, 9), 8.0, 100_000)

    s.snapshots = [
        SimpleNamespace(id="s-aug", client_id="c-acme", date=date(2026, 8, 31),
                        spend_to_date_cents=1_400_000, hours_to_date=95.0,
                        target_spend_to_date_cents=1_500_000),
        SimpleNamespace(id="s-sep", client_id="c-acme", date=date(2026, 9, 14),
                        spend_to_date_cents=900_000, hours_to_date=60.0,
                        target_spend_to_date_cents=700_000),
    ]
    s.summaries = [
        SimpleNamespace(id="ms-jul", client_id="c-acme", month=7, year=2026, total_hours=110.0,
                        total_spend_cents=1_450_000, variance_cents=-50_000, variance_pct=-0.0333),
        SimpleNamespace(id="ms-aug", client_id="c-acme", month=8, year=2026, total_hours=95.0,
                        total_spend_cents=1_400_000, variance_cents=-100_000, variance_pct=-0.0667),
    ]
    return s


@pytest.fixture
def api_client(seeded_storage):
    """TestClient bound to ``seeded_storage`` with the clock pinned at NOW."""
    from fastapi.testclient import TestClient
    from burnboard.api.deps import get_now, get_storage
    from burnboard.main import app

    app.dependency_overrides[get_storage] = lambda: seeded_storage
    app.dependency_overrides[get_now] = lambda: NOW
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
