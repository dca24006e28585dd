from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roster_scheduler.db.models.planning import Assignment, ManpowerPlan, Schedule
from roster_scheduler.db.models.resource import new_id
from roster_scheduler.schemas.planning import ManpowerPlanWrite
from roster_scheduler.services.types import ScheduleGenerationResult


async def get_manpower_plan(
    session: AsyncSession, org_id: str, group_id: str, month: str
) -> ManpowerPlan | None:
    result = await session.execute(
        select(ManpowerPlan)
        .where(ManpowerPlan.org_id == org_id)
        .where(ManpowerPlan.group_id == group_id)
        .where(ManpowerPlan.month == month)
    )
    return result.scalars().first()


async def save_manpower_plan(
    session: AsyncSession,
    org_id: str,
    group_id: str,
    month: str,
    payload: ManpowerPlanWrite,
) -> ManpowerPlan:
    data = payload.model_dump()
    plan = await get_manpower_plan(session, org_id, group_id, month)
    if plan is None:
        plan = ManpowerPlan(org_id=org_id, group_id=group_id, month=month)
        session.add(plan)
    plan.requirement_defaults = data["requirement_defaults"]
    plan.daily_requirements = data["daily_requirements"]
    await session.flush()
    await session.refresh(plan)
    return plan


async def store_generated_schedule(session: AsyncSession, result: ScheduleGenerationResult) -> Schedule:
    """Add a generated schedule and all of its assignments to the session.

    Every stored run gets fresh row ids; the generator's own ids only identify
    the in-memory result. Nothing is committed here; the caller commits once
    so the batch lands atomically.
    """
    generated = result.schedule
    schedule = Schedule(
        id=new_id(),
        org_id=generated.org_id,
        group_id=generated.group_id,
        month=generated.month,
        status=generated.status,
        generated_at=generated.generated_at,
        total_score=generated.total_score,
        violated_rules=list(generated.violated_rules),
        generation_method=generated.generation_method,
    )
    schedule.assignments = [
        Assignment(
            id=new_id(),
            worker_id=item.worker_id,
            worker_name=item.worker_name,
            daily_shifts=dict(item.daily_shifts),
        )
        for item in result.assignments
    ]
    session.add(schedule)
    await session.flush()
    return schedule


async def list_schedules(
    session: AsyncSession,
    org_id: str,
    *,
    group_id: str | None = None,
    month: str | None = None,
) -> list[Schedule]:
    query = select(Schedule).where(Schedule.org_id == org_id)
    if group_id:
        query = query.where(Schedule.group_id == group_id)
    if month:
        query = query.where(Schedule.month == month)
    result = await session.execute(query.order_by(Schedule.generated_at.desc()))
    return list(result.scalars().all())


async def get_schedule(session: AsyncSession, schedule_id: str) -> Schedule | None:
    return await session.get(Schedule, schedule_id, options=[selectinload(Schedule.assignments)])


async def list_assignments(session: AsyncSession, schedule_id: str) -> list[Assignment]:
    result = await session.execute(
        select(Assignment)
        .where(Assignment.schedule_id == schedule_id)
        .order_by(Assignment.worker_name.asc(), Assignment.worker_id.asc())
    )
    return list(result.scalars().all())


async def get_assignment(session: AsyncSession, schedule_id: str, assignment_id: str) -> Assignment | None:
    result = await session.execute(
        select(Assignment)
        .where(Assignment.schedule_id == schedule_id)
        .where(Assignment.id == assignment_id)
    )
    return result.scalars().first()


async def update_schedule_score(
    session: AsyncSession, schedule: Schedule, *, total_score: int, violated_rules: list[str]
) -> Schedule:
    schedule.total_score = total_score
    schedule.violated_rules = list(violated_rules)
    await session.flush()
    return schedule


async def delete_schedule(session: AsyncSession, schedule: Schedule) -> None:
    await session.delete(schedule)
