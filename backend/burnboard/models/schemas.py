"""
API payload models.

Field names are snake_case in Python and camelCase on the wire; every model
accepts either spelling on input and FastAPI serializes by alias.
"""
from datetime import date, datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from burnboard.services.burn_metrics import HealthStatus


class ClientStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Records ─────────────────────────────────────────────────────────────────

class ClientOut(CamelModel):
    id: str
    name: str
    accelo_id: Optional[str] = None
    status: ClientStatus
    start_date: date
    monthly_retainer_amount_cents: int
    planned_hours: Optional[float] = None
    hourly_blended_rate_cents: Optional[int] = None
    account_manager: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ClientWithMetrics(ClientOut):
    mtd_spend_cents: int
    mtd_hours: float
    burn_pct_mtd: float = Field(..., alias="burnPctMTD")
    ideal_target_spend_to_date_cents: int
    variance_cents: int
    variance_pct: float
    health: HealthStatus


class DepartmentOut(CamelModel):
    id: str
    name: str


class TeamMemberOut(CamelModel):
    id: str
    name: str
    email: str
    role: str
    department_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TimeEntryOut(CamelModel):
    id: str
    client_id: str
    member_id: str
    department_id: str
    start: datetime
    end: datetime
    hours: float
    cost_cents: int
    created_at: Optional[datetime] = None


class BurnSnapshotOut(CamelModel):
    id: str
    client_id: str
    date: date
    spend_to_date_cents: int
    hours_to_date: float
    target_spend_to_date_cents: int


class MonthlySummaryOut(CamelModel):
    id: str
    client_id: str
    month: int
    year: int
    total_hours: float
    total_spend_cents: int
    variance_cents: int
    variance_pct: float


class SettingOut(CamelModel):
    id: str
    key: str
    value: str
    value_type: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ─── Analytics ───────────────────────────────────────────────────────────────

class DepartmentTimeData(CamelModel):
    department_id: str
    department_name: str
    hours: float
    spend_cents: int
    member_count: int


class OverservingClientData(CamelModel):
    client_id: str
    client_name: str
    account_manager: str
    average_overserving_hours: float
    average_overserving_cents: int


class OverservingEmployeeData(CamelModel):
    member_id: str
    member_name: str
    department: str
    average_overserving_hours: float
    average_overserving_cents: int


class DashboardAnalytics(CamelModel):
    top_overserving_clients: List[OverservingClientData]
    top_overserving_employees: List[OverservingEmployeeData]
    total_lost_revenue_cents: int
    hourly_rate_cents: int


class DashboardSummary(CamelModel):
    active_clients: int
    on_track_percentage: int
    total_retainer_cents: int
    mtd_spend_cents: int


# ─── Responses ───────────────────────────────────────────────────────────────

class ClientListResponse(CamelModel):
    clients: List[ClientWithMetrics]


class ClientDetailResponse(CamelModel):
    client: ClientOut
    team_members: List[TeamMemberOut]
    burn_snapshots: List[BurnSnapshotOut]
    recent_time_entries: List[TimeEntryOut]


class ClientHistoryResponse(CamelModel):
    monthly_summaries: List[MonthlySummaryOut]
    daily_snapshots: List[BurnSnapshotOut]


class DepartmentTimeResponse(CamelModel):
    department_data: List[DepartmentTimeData]


class DepartmentListResponse(CamelModel):
    departments: List[DepartmentOut]


class SettingsListResponse(CamelModel):
    settings: List[SettingOut]


class SettingResponse(CamelModel):
    setting: SettingOut


# ─── Requests ────────────────────────────────────────────────────────────────

class SettingUpsertRequest(CamelModel):
    key: str = Field(..., min_length=1)
    value: str
    value_type: str = "string"


class TimeEntryWebhookData(CamelModel):
    client_id: str = Field(..., min_length=1, description="External (Accelo) company id")
    period_id: Optional[str] = None
    date: date
    spend_to_date_cents: int = Field(..., ge=0)
    hours_to_date: float = Field(..., ge=0)
    target_spend_to_date_cents: Optional[int] = Field(None, ge=0)


class TimeEntryWebhook(CamelModel):
    type: Literal["time_entry"]
    data: TimeEntryWebhookData


class WebhookClient(CamelModel):
    id: str = Field(..., min_length=1, description="External (Accelo) company id")
    name: str = Field(..., min_length=1)
    status: ClientStatus = ClientStatus.ACTIVE


class ClientsUpsertWebhook(CamelModel):
    clients: List[WebhookClient]


class WebhookAck(CamelModel):
    success: bool = True
    saved: bool = True


class ClientsUpsertAck(CamelModel):
    success: bool = True
    created: int
