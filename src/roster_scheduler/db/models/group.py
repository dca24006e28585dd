from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roster_scheduler.db.base import Base
from roster_scheduler.db.models.resource import new_id

if TYPE_CHECKING:
    from roster_scheduler.db.models.resource import Worker


class Group(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    org_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    group_name: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=sa.func.now(), nullable=False)

    # Scheduler lease; lease_version is bumped on every lease write.
    scheduler_id: Mapped[Optional[str]] = mapped_column(String(64))
    scheduler_name: Mapped[Optional[str]] = mapped_column(String(120))
    lease_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    lease_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    members: Mapped[list["Worker"]] = relationship(back_populates="group")
