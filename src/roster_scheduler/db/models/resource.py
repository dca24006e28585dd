from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roster_scheduler.db.base import Base

if TYPE_CHECKING:
    from roster_scheduler.db.models.group import Group


def new_id() -> str:
    return str(uuid.uuid4())


class Worker(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    org_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    group_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("group.id", ondelete="SET NULL"), index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    employee_id: Mapped[Optional[str]] = mapped_column(String(64))
    joined_at: Mapped[datetime] = mapped_column(DateTime, server_default=sa.func.now(), nullable=False)

    group: Mapped[Optional["Group"]] = relationship(back_populates="members")


class ShiftType(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    org_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    group_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    short_code: Mapped[str] = mapped_column(String(16), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    color: Mapped[str] = mapped_column(String(9), default="#4A90E2")


class ShiftRequest(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    org_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    worker_id: Mapped[str] = mapped_column(ForeignKey("worker.id", ondelete="CASCADE"), index=True)
    worker_name: Mapped[str] = mapped_column(String(120), default="")
    date: Mapped[str] = mapped_column(String(10), index=True)  # Format YYYY-MM-DD
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    details: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=sa.func.now(), nullable=False)
