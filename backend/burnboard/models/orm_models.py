"""ORM Models for Burnboard — SQLAlchemy 2.0"""
import uuid
from datetime import datetime, date
from typing import Optional
from sqlalchemy import (
    String, Text, Integer, Float, DateTime, Date,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from burnboard.db import Base


def gen_uuid():
    return str(uuid.uuid4())


# ── CLIENTS ───────────────────────────────────────────────────────────────────
class Client(Base):
    __tablename__ = "clients"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Accelo company id; webhooks upsert on it
    accelo_id: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE", index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, server_default=func.current_date())
    monthly_retainer_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    planned_hours: Mapped[Optional[float]] = mapped_column(Float)
    hourly_blended_rate_cents: Mapped[Optional[int]] = mapped_column(Integer)
    account_manager: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
    time_entries: Mapped[list["TimeEntry"]] = relationship("TimeEntry", back_populates="client")
    burn_snapshots: Mapped[list["BurnSnapshot"]] = relationship("BurnSnapshot", back_populates="client")


# ── TEAM ──────────────────────────────────────────────────────────────────────
class Department(Base):
    __tablename__ = "departments"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    team_members: Mapped[list["TeamMember"]] = relationship("TeamMember", back_populates="department")


class TeamMember(Base):
    __tablename__ = "team_members"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    department_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("departments.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
    department: Mapped["Department"] = relationship("Department", back_populates="team_members")


class ClientTeam(Base):
    __tablename__ = "client_teams"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    client_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("clients.id"), nullable=False)
    member_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("team_members.id"), nullable=False)
    __table_args__ = (UniqueConstraint("client_id", "member_id", name="uq_client_team_member"),)


# ── TIME TRACKING ─────────────────────────────────────────────────────────────
class TimeEntry(Base):
    __tablename__ = "time_entries"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    client_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("clients.id"), nullable=False)
    member_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("team_members.id"), nullable=False)
    department_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("departments.id"), nullable=False)
    start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    hours: Mapped[float] = mapped_column(Float, nullable=False)
    cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    client: Mapped["Client"] = relationship("Client", back_populates="time_entries")
    __table_args__ = (Index("ix_time_entries_client_start", "client_id", "start"),)


class BurnSnapshot(Base):
    __tablename__ = "burn_snapshots"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    client_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("clients.id"), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    spend_to_date_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    hours_to_date: Mapped[float] = mapped_column(Float, nullable=False)
    target_spend_to_date_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    client: Mapped["Client"] = relationship("Client", back_populates="burn_snapshots")
    __table_args__ = (UniqueConstraint("client_id", "date", name="uq_burn_snapshot_client_date"),)


class MonthlySummary(Base):
    __tablename__ = "monthly_summaries"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    client_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("clients.id"), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    total_hours: Mapped[float] = mapped_column(Float, nullable=False)
    total_spend_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    variance_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    variance_pct: Mapped[float] = mapped_column(Float, nullable=False)


# ── SETTINGS ──────────────────────────────────────────────────────────────────
class Setting(Base):
    __tablename__ = "settings"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    key: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    value_type: Mapped[str] = mapped_column(String(20), nullable=False, default="string")
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
