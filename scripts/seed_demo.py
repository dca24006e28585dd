"""Seed one demo group for local development.

Run this after applying Alembic migrations:

    python -m alembic upgrade head
    python scripts/seed_demo.py
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from roster_scheduler.core.config import get_settings
from roster_scheduler.core.logging import configure_logging
from roster_scheduler.db.models.group import Group
from roster_scheduler.repositories import group as group_repo
from roster_scheduler.repositories import planning as planning_repo
from roster_scheduler.repositories import resource as resource_repo
from roster_scheduler.repositories import system as system_repo
from roster_scheduler.schemas.group import GroupCreate
from roster_scheduler.schemas.planning import ManpowerPlanWrite
from roster_scheduler.schemas.resource import ShiftTypeCreate, WorkerCreate
from roster_scheduler.services.manpower import apply_requirement_defaults, plan_from_payload
from roster_scheduler.services.rules import load_default_templates

logger = logging.getLogger(__name__)

ORG_ID = "demo-org"
WORKER_NAMES = ["Chen Mei", "Lin Yu", "Wang Hao", "Huang Ting", "Liu Jie", "Tsai Wen"]
SHIFT_TYPES = [
    ("Off", "OFF", "00:00", "00:00", "#CCCCCC"),
    ("Day", "D", "08:00", "16:00", "#4A90E2"),
    ("Evening", "E", "16:00", "00:00", "#F5A623"),
    ("值班(夜)", "N", "00:00", "08:00", "#4A4A4A"),
]


def _next_month() -> str:
    today = date.today()
    year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
    return f"{year:04d}-{month:02d}"


async def seed() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    engine = create_async_engine(settings.database_url, future=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async with session_factory() as session:
        existing = await session.scalar(select(func.count(Group.id)).where(Group.org_id == ORG_ID))
        if existing:
            logger.info("Demo organisation %s already seeded", ORG_ID)
            await engine.dispose()
            return

        group = await group_repo.create_group(session, GroupCreate(org_id=ORG_ID, group_name="Ward 7 nursing"))
        shift_ids: dict[str, str] = {}
        for name, code, start, end, color in SHIFT_TYPES:
            shift = await resource_repo.create_shift_type(
                session,
                ShiftTypeCreate(org_id=ORG_ID, name=name, short_code=code, start_time=start, end_time=end, color=color),
            )
            shift_ids[code] = shift.id

        for index, name in enumerate(WORKER_NAMES, start=1):
            await resource_repo.create_worker(
                session,
                WorkerCreate(org_id=ORG_ID, name=name, group_id=group.id, employee_id=f"N{index:03d}"),
            )

        for template in load_default_templates():
            await system_repo.create_rule_config_from_template(session, template, org_id=ORG_ID, group_id=group.id)

        month = _next_month()
        defaults = {
            "weekday": {shift_ids["D"]: 2, shift_ids["E"]: 1, shift_ids["N"]: 1},
            "saturday": {shift_ids["D"]: 1, shift_ids["E"]: 1, shift_ids["N"]: 1},
            "sunday": {shift_ids["D"]: 1, shift_ids["N"]: 1},
            "holiday": {shift_ids["D"]: 1, shift_ids["N"]: 1},
        }
        plan = apply_requirement_defaults(plan_from_payload(ORG_ID, group.id, month, defaults, {}))
        await planning_repo.save_manpower_plan(
            session,
            ORG_ID,
            group.id,
            month,
            ManpowerPlanWrite.model_validate(
                {
                    "requirement_defaults": defaults,
                    "daily_requirements": {day: entry.to_mapping() for day, entry in plan.daily_requirements.items()},
                }
            ),
        )
        await session.commit()
        logger.info("Seeded group %s with %d workers and a %s manpower plan", group.id, len(WORKER_NAMES), month)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
