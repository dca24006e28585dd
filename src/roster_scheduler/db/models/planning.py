from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roster_scheduler.db.base import Base
from roster_scheduler.db.models.resource import new_id


class ManpowerPlan(Base):
    __table_args__ = (UniqueConstraint("org_id", "group_id", "month", name="uq_manpowerplan_scope"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    org_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    group_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    month: Mapped[str] = mapped_column(String(7), index=True)  # Format YYYY-MM
    requirement_defaults: Mapped[dict] = mapped_column(JSON, default=dict)
    daily_requirements: Mapped[dict] = mapped_column(JSON, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False
    )


class Schedule(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    org_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    group_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    month: Mapped[str] = mapped_column(String(7), index=True)  # Format YYYY-MM
    status: Mapped[str] = mapped_column(String(32), default="draft")
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_score: Mapped[int] = mapped_column(Integer, default=0)
    violated_rules: Mapped[list[str]] = mapped_column(JSON, default=list)
    generation_method: Mapped[str] = mapped_column(String(32), default="smart")

    assignments: Mapped[list["Assignment"]] = relationship(
        back_populates="schedule", cascade="all, delete-orphan"
    )


class Assignment(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    schedule_id: Mapped[str] = mapped_column(ForeignKey("schedule.id", ondelete="CASCADE"), index=True)
    worker_id: Mapped[str] = mapped_column(String(36), index=True)
    worker_name: Mapped[str] = mapped_column(String(120), default="")
    daily_shifts: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)

    schedule: Mapped[Schedule] = relationship(back_populates="assignments")
