import logging
import random
from typing import Annotated, Sequence

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roster_scheduler.core.clock import Clock, get_clock
from roster_scheduler.core.config import Settings, get_settings
from roster_scheduler.db.models.planning import Assignment, Schedule
from roster_scheduler.db.models.resource import ShiftRequest, ShiftType
from roster_scheduler.db.models.system import SchedulingRuleConfig
from roster_scheduler.db.session import get_db_session
from roster_scheduler.repositories import planning as planning_repo
from roster_scheduler.repositories import resource as resource_repo
from roster_scheduler.repositories import system as system_repo
from roster_scheduler.schemas.planning import (
    ApplyDefaultsRequest,
    AssignmentRead,
    AssignmentUpdate,
    ManpowerPlanRead,
    ManpowerPlanWrite,
    ScheduleGenerationRequest,
    ScheduleGenerationResponse,
    ScheduleRead,
    ScheduleUpdate,
)
from roster_scheduler.services import lease as lease_service
from roster_scheduler.services.manpower import apply_requirement_defaults, day_key, month_days, plan_from_payload
from roster_scheduler.services.scheduler import SchedulingContext, generate_schedule, score_assignments
from roster_scheduler.services.types import (
    RuleConfig,
    SchedulingRequest,
    SchedulingShift,
    SchedulingWorker,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _to_shift(shift_type: ShiftType) -> SchedulingShift:
    return SchedulingShift(
        id=shift_type.id,
        name=shift_type.name,
        short_code=shift_type.short_code,
        start_time=shift_type.start_time,
        end_time=shift_type.end_time,
        color=shift_type.color,
    )


def _to_request(request: ShiftRequest) -> SchedulingRequest:
    details = request.details or {}
    return SchedulingRequest(
        worker_id=request.worker_id,
        date=request.date,
        type=request.type,
        status=request.status,
        shift_type_id=details.get("shiftId"),
    )


def _to_rule_config(config: SchedulingRuleConfig) -> RuleConfig:
    return RuleConfig(
        id=config.id,
        rule_key=config.rule_key,
        rule_name=config.rule_name,
        rule_type=config.rule_type,
        penalty_score=config.penalty_score,
        is_enabled=config.is_enabled,
        parameters={str(key): str(value) for key, value in (config.parameters or {}).items()},
    )


async def _load_rule_inputs(
    session: AsyncSession, org_id: str, group_id: str
) -> tuple[list[SchedulingShift], list[RuleConfig]]:
    shift_types = await resource_repo.list_shift_types(session, org_id, group_id=group_id)
    configs = await system_repo.list_rule_configs(session, org_id, group_id=group_id, enabled_only=True)
    return [_to_shift(shift) for shift in shift_types], [_to_rule_config(config) for config in configs]


async def _load_context(
    session: AsyncSession, org_id: str, group_id: str, month: str
) -> SchedulingContext:
    workers = await resource_repo.list_workers(session, org_id, group_id=group_id)
    shift_types, rule_configs = await _load_rule_inputs(session, org_id, group_id)
    requests = await resource_repo.list_requests(session, org_id, month=month)
    stored_plan = await planning_repo.get_manpower_plan(session, org_id, group_id, month)

    member_ids = {worker.id for worker in workers}
    manpower_plan = None
    if stored_plan is not None:
        manpower_plan = plan_from_payload(
            org_id, group_id, month, stored_plan.requirement_defaults, stored_plan.daily_requirements
        )
    return SchedulingContext(
        org_id=org_id,
        group_id=group_id,
        month=month,
        workers=[SchedulingWorker(id=worker.id, name=worker.name, org_id=worker.org_id) for worker in workers],
        shift_types=shift_types,
        requests=[_to_request(request) for request in requests if request.worker_id in member_ids],
        rule_configs=rule_configs,
        manpower_plan=manpower_plan,
    )


async def _require_lease(
    session: AsyncSession, org_id: str, group_id: str, user_id: str, clock: Clock
) -> None:
    try:
        held = await lease_service.is_held_by(session, org_id, group_id, user_id, clock=clock)
    except lease_service.GroupNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if not held:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An active scheduler lease on this group is required",
        )


async def _get_schedule_or_404(session: AsyncSession, schedule_id: str) -> Schedule:
    schedule = await planning_repo.get_schedule(session, schedule_id)
    if not schedule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")
    return schedule


async def _rescore(session: AsyncSession, schedule: Schedule, assignments: Sequence[Assignment]) -> Schedule:
    shift_types, rule_configs = await _load_rule_inputs(session, schedule.org_id, schedule.group_id)
    workers = [SchedulingWorker(id=item.worker_id, name=item.worker_name) for item in assignments]
    violations, score = score_assignments(
        workers,
        {item.worker_id: dict(item.daily_shifts or {}) for item in assignments},
        shift_types,
        rule_configs,
    )
    return await planning_repo.update_schedule_score(
        session,
        schedule,
        total_score=score,
        violated_rules=[violation.message for violation in violations],
    )


async def _validate_daily_shifts(session: AsyncSession, schedule: Schedule, daily_shifts: dict[str, str]) -> None:
    valid_days = {day_key(current) for current in month_days(schedule.month)}
    shift_types = await resource_repo.list_shift_types(session, schedule.org_id, group_id=schedule.group_id)
    known_ids = {shift.id for shift in shift_types}

    bad_days = sorted(day for day in daily_shifts if day not in valid_days)
    if bad_days:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Days outside {schedule.month}: {', '.join(bad_days)}",
        )
    unknown = sorted({shift_id for shift_id in daily_shifts.values() if shift_id not in known_ids})
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown shift types for this group: {', '.join(unknown)}",
        )


@router.get("/manpower/{org_id}/{group_id}/{month}", response_model=ManpowerPlanRead)
async def get_manpower_plan(
    org_id: str,
    group_id: str,
    month: str,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ManpowerPlanRead:
    plan = await planning_repo.get_manpower_plan(session, org_id, group_id, month)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Manpower plan not found")
    return ManpowerPlanRead.model_validate(plan)


@router.put("/manpower/{org_id}/{group_id}/{month}", response_model=ManpowerPlanRead)
async def save_manpower_plan(
    org_id: str,
    group_id: str,
    month: str,
    payload: ManpowerPlanWrite,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ManpowerPlanRead:
    plan = await planning_repo.save_manpower_plan(session, org_id, group_id, month, payload)
    await session.commit()
    return ManpowerPlanRead.model_validate(plan)


@router.post("/manpower/{org_id}/{group_id}/{month}/apply-defaults", response_model=ManpowerPlanRead)
async def apply_manpower_defaults(
    org_id: str,
    group_id: str,
    month: str,
    payload: ApplyDefaultsRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ManpowerPlanRead:
    stored = await planning_repo.get_manpower_plan(session, org_id, group_id, month)
    if not stored:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Manpower plan not found")
    plan = apply_requirement_defaults(
        plan_from_payload(org_id, group_id, month, stored.requirement_defaults, stored.daily_requirements),
        payload.holidays,
    )
    write = ManpowerPlanWrite.model_validate(
        {
            "requirement_defaults": stored.requirement_defaults or {},
            "daily_requirements": {day: entry.to_mapping() for day, entry in plan.daily_requirements.items()},
        }
    )
    saved = await planning_repo.save_manpower_plan(session, org_id, group_id, month, write)
    await session.commit()
    return ManpowerPlanRead.model_validate(saved)


@router.post("/generate", response_model=ScheduleGenerationResponse, status_code=status.HTTP_201_CREATED)
async def generate(
    payload: ScheduleGenerationRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ScheduleGenerationResponse:
    await _require_lease(session, payload.org_id, payload.group_id, payload.requested_by, clock)

    context = await _load_context(session, payload.org_id, payload.group_id, payload.month)
    seed = payload.seed if payload.seed is not None else settings.generation_seed
    result = generate_schedule(context, rng=random.Random(seed), clock=clock)

    schedule = await planning_repo.store_generated_schedule(session, result)
    await session.commit()
    if schedule.status == "error":
        logger.warning("Stored failed schedule %s: %s", schedule.id, "; ".join(result.violations))

    return ScheduleGenerationResponse(
        schedule=ScheduleRead.model_validate(schedule),
        assignments=[AssignmentRead.model_validate(item) for item in schedule.assignments],
        score=result.score,
        violations=result.violations,
    )


@router.get("/schedules", response_model=list[ScheduleRead])
async def list_schedules(
    org_id: Annotated[str, Query()],
    session: Annotated[AsyncSession, Depends(get_db_session)],
    group_id: Annotated[str | None, Query()] = None,
    month: Annotated[str | None, Query()] = None,
) -> list[ScheduleRead]:
    schedules = await planning_repo.list_schedules(session, org_id, group_id=group_id, month=month)
    return [ScheduleRead.model_validate(schedule) for schedule in schedules]


@router.get("/schedules/{schedule_id}", response_model=ScheduleRead)
async def get_schedule(
    schedule_id: str, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> ScheduleRead:
    schedule = await _get_schedule_or_404(session, schedule_id)
    return ScheduleRead.model_validate(schedule)


@router.patch("/schedules/{schedule_id}", response_model=ScheduleRead)
async def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ScheduleRead:
    schedule = await _get_schedule_or_404(session, schedule_id)
    await _require_lease(session, schedule.org_id, schedule.group_id, payload.editor_id, clock)
    if payload.status is not None:
        schedule.status = payload.status
    await session.commit()
    await session.refresh(schedule)
    return ScheduleRead.model_validate(schedule)


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: str,
    editor_id: Annotated[str, Query()],
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> None:
    schedule = await _get_schedule_or_404(session, schedule_id)
    await _require_lease(session, schedule.org_id, schedule.group_id, editor_id, clock)
    await planning_repo.delete_schedule(session, schedule)
    await session.commit()


@router.get("/schedules/{schedule_id}/assignments", response_model=list[AssignmentRead])
async def list_assignments(
    schedule_id: str, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> list[AssignmentRead]:
    await _get_schedule_or_404(session, schedule_id)
    assignments = await planning_repo.list_assignments(session, schedule_id)
    return [AssignmentRead.model_validate(item) for item in assignments]


@router.put("/schedules/{schedule_id}/assignments/{assignment_id}", response_model=AssignmentRead)
async def update_assignment(
    schedule_id: str,
    assignment_id: str,
    payload: AssignmentUpdate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AssignmentRead:
    schedule = await _get_schedule_or_404(session, schedule_id)
    await _require_lease(session, schedule.org_id, schedule.group_id, payload.editor_id, clock)

    assignment = await planning_repo.get_assignment(session, schedule_id, assignment_id)
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    await _validate_daily_shifts(session, schedule, payload.daily_shifts)
    assignment.daily_shifts = dict(sorted(payload.daily_shifts.items()))
    await session.flush()

    await _rescore(session, schedule, await planning_repo.list_assignments(session, schedule_id))
    await session.commit()
    await session.refresh(assignment)
    return AssignmentRead.model_validate(assignment)
