from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from roster_scheduler.core.clock import Clock, utc_now
from roster_scheduler.services.manpower import ManpowerPlan, day_key, day_key_from_iso, month_days
from roster_scheduler.services.rule_engine import RuleEngine
from roster_scheduler.services.rules import RuleViolation
from roster_scheduler.services.types import (
    GeneratedAssignment,
    GeneratedSchedule,
    RuleConfig,
    ScheduleGenerationResult,
    SchedulingRequest,
    SchedulingShift,
    SchedulingWorker,
)

logger = logging.getLogger(__name__)

MISSING_OFF_SCORE = -9999
MISSING_OFF_MESSAGE = "Missing required shift type: no shift type with short code 'OFF' is configured."
PREFERENCE_BONUS = 10
TIEBREAK_MAX = 4
SCHEDULE_ID_NAMESPACE = uuid.UUID("5b7c1f0e-3d2a-4e8b-9a61-2f4c8d0e7b13")


@dataclass
class SchedulingContext:
    org_id: str
    group_id: str
    month: str
    workers: list[SchedulingWorker]
    shift_types: list[SchedulingShift]
    requests: list[SchedulingRequest] = field(default_factory=list)
    rule_configs: list[RuleConfig] = field(default_factory=list)
    manpower_plan: Optional[ManpowerPlan] = None


class RosterDraft:
    """Partial day -> shift assignment for every worker of a run.

    Leave placement forces a day; the fill passes only ever claim days that
    are still open.
    """

    def __init__(self, workers: Iterable[SchedulingWorker]) -> None:
        self._shifts: dict[str, dict[str, str]] = {worker.id: {} for worker in workers}

    def __contains__(self, worker_id: str) -> bool:
        return worker_id in self._shifts

    def force(self, worker_id: str, day: str, shift_id: str) -> None:
        if worker_id in self._shifts:
            self._shifts[worker_id][day] = shift_id

    def fill(self, worker_id: str, day: str, shift_id: str) -> bool:
        if worker_id not in self._shifts or self.is_assigned(worker_id, day):
            return False
        self._shifts[worker_id][day] = shift_id
        return True

    def is_assigned(self, worker_id: str, day: str) -> bool:
        return day in self._shifts.get(worker_id, {})

    def count_on(self, day: str, shift_id: str) -> int:
        return sum(1 for days in self._shifts.values() if days.get(day) == shift_id)

    def shifts_for(self, worker_id: str) -> dict[str, str]:
        return dict(sorted(self._shifts.get(worker_id, {}).items()))


def generate_schedule(
    context: SchedulingContext,
    *,
    rng: Optional[random.Random] = None,
    clock: Clock = utc_now,
    engine: Optional[RuleEngine] = None,
) -> ScheduleGenerationResult:
    """
    Greedy monthly planner: approved leave first, then manpower targets, then
    preference-weighted filling of every remaining slot, and finally rule
    validation and scoring.

    All randomness (shuffles, tie-breaks, identifiers) comes from `rng`, so a
    seeded generator together with a fixed `clock` reproduces a run exactly.
    """
    rng = rng or random.Random()
    engine = engine or RuleEngine()

    off_shift = next((shift for shift in context.shift_types if shift.is_off), None)
    if off_shift is None:
        logger.warning(
            "Aborting generation for %s/%s %s: no OFF shift type", context.org_id, context.group_id, context.month
        )
        return _failed_result(context, rng, clock)

    logger.info(
        "Generating schedule for %s/%s %s with %d workers and %d shift types",
        context.org_id,
        context.group_id,
        context.month,
        len(context.workers),
        len(context.shift_types),
    )
    days = [day_key(current) for current in month_days(context.month)]
    draft = RosterDraft(context.workers)

    _place_approved_leave(draft, context, off_shift)
    preferences = _preference_index(context)
    _fill_manpower_targets(draft, context, days, rng)
    _fill_remaining_days(draft, context, days, off_shift, preferences, rng)

    assignments = {worker.id: draft.shifts_for(worker.id) for worker in context.workers}
    violations, score = score_assignments(
        context.workers, assignments, context.shift_types, context.rule_configs, engine=engine
    )
    result = _build_result(context, assignments, score, [violation.message for violation in violations], rng, clock)
    logger.info(
        "Generated schedule %s for %s/%s %s: score %d, %d violations",
        result.schedule.id,
        context.org_id,
        context.group_id,
        context.month,
        score,
        len(violations),
    )
    return result


def score_assignments(
    workers: Sequence[SchedulingWorker],
    assignments: Mapping[str, Mapping[str, str]],
    shift_types: list[SchedulingShift],
    rule_configs: Iterable[RuleConfig],
    *,
    engine: Optional[RuleEngine] = None,
) -> tuple[list[RuleViolation], int]:
    """Validate every worker against the enabled rules and total the penalties."""
    engine = engine or RuleEngine()
    enabled = [config for config in rule_configs if config.is_enabled]
    all_violations: list[RuleViolation] = []
    total_score = 0

    for worker in workers:
        violations = engine.validate(worker, assignments.get(worker.id, {}), shift_types, enabled)
        all_violations.extend(violations)
        total_score += sum(violation.penalty_score for violation in violations)
    return all_violations, total_score


def _place_approved_leave(draft: RosterDraft, context: SchedulingContext, off_shift: SchedulingShift) -> None:
    for request in context.requests:
        if not request.is_approved or request.type != "leave":
            continue
        if not request.date.startswith(context.month):
            continue
        day = day_key_from_iso(request.date)
        if day is not None:
            draft.force(request.worker_id, day, off_shift.id)


def _preference_index(context: SchedulingContext) -> dict[tuple[str, str], str]:
    preferences: dict[tuple[str, str], str] = {}
    for request in context.requests:
        if not request.is_approved or request.type != "shift_preference" or not request.shift_type_id:
            continue
        if not request.date.startswith(context.month):
            continue
        day = day_key_from_iso(request.date)
        if day is not None:
            preferences[(request.worker_id, day)] = request.shift_type_id
    return preferences


def _fill_manpower_targets(
    draft: RosterDraft,
    context: SchedulingContext,
    days: list[str],
    rng: random.Random,
) -> None:
    plan = context.manpower_plan
    if plan is None:
        return
    known_shift_ids = {shift.id for shift in context.shift_types}

    for day in days:
        requirement = plan.requirement_for(day)
        if requirement is None:
            continue
        for shift_id, required_count in requirement.requirements.items():
            if required_count <= 0:
                continue
            if shift_id not in known_shift_ids:
                logger.warning("Skipping manpower target for unknown shift type %s on day %s", shift_id, day)
                continue
            shuffled = list(context.workers)
            rng.shuffle(shuffled)
            available = [worker for worker in shuffled if not draft.is_assigned(worker.id, day)]
            for worker in available[:required_count]:
                draft.fill(worker.id, day, shift_id)


def _fill_remaining_days(
    draft: RosterDraft,
    context: SchedulingContext,
    days: list[str],
    off_shift: SchedulingShift,
    preferences: dict[tuple[str, str], str],
    rng: random.Random,
) -> None:
    work_shifts = [shift for shift in context.shift_types if not shift.is_off]
    plan = context.manpower_plan

    for day in days:
        required_today = plan.total_required(day) if plan else 0
        off_capacity = max(0, len(context.workers) - required_today)

        for worker in context.workers:
            if draft.is_assigned(worker.id, day):
                continue
            if draft.count_on(day, off_shift.id) < off_capacity:
                candidates = list(context.shift_types)
            else:
                candidates = work_shifts
            chosen = _pick_candidate(candidates, preferences.get((worker.id, day)), rng)
            if chosen is None:
                chosen = rng.choice(work_shifts) if work_shifts else off_shift
            draft.fill(worker.id, day, chosen.id)


def _pick_candidate(
    candidates: Sequence[SchedulingShift],
    preferred_shift_id: Optional[str],
    rng: random.Random,
) -> Optional[SchedulingShift]:
    best: Optional[SchedulingShift] = None
    best_score = -1
    for shift in candidates:
        score = PREFERENCE_BONUS if shift.id == preferred_shift_id else 0
        score += rng.randint(0, TIEBREAK_MAX)
        if score > best_score:
            best_score = score
            best = shift
    return best


def _draw_id(context: SchedulingContext, rng: random.Random) -> str:
    # Ids are scoped to org/group/month as well as the random stream.
    scope = f"{context.org_id}/{context.group_id}/{context.month}"
    return str(uuid.uuid5(SCHEDULE_ID_NAMESPACE, f"{scope}/{rng.getrandbits(128)}"))


def _build_result(
    context: SchedulingContext,
    assignments: dict[str, dict[str, str]],
    score: int,
    messages: list[str],
    rng: random.Random,
    clock: Clock,
) -> ScheduleGenerationResult:
    schedule = GeneratedSchedule(
        id=_draw_id(context, rng),
        org_id=context.org_id,
        group_id=context.group_id,
        month=context.month,
        status="draft",
        generated_at=clock(),
        total_score=score,
        violated_rules=messages,
        generation_method="smart",
    )
    generated = [
        GeneratedAssignment(
            id=_draw_id(context, rng),
            schedule_id=schedule.id,
            worker_id=worker.id,
            worker_name=worker.name,
            daily_shifts=assignments.get(worker.id, {}),
        )
        for worker in context.workers
    ]
    return ScheduleGenerationResult(schedule=schedule, assignments=generated, score=score, violations=messages)


def _failed_result(context: SchedulingContext, rng: random.Random, clock: Clock) -> ScheduleGenerationResult:
    schedule = GeneratedSchedule(
        id=_draw_id(context, rng),
        org_id=context.org_id,
        group_id=context.group_id,
        month=context.month,
        status="error",
        generated_at=clock(),
        total_score=MISSING_OFF_SCORE,
        violated_rules=[MISSING_OFF_MESSAGE],
        generation_method="smart",
    )
    return ScheduleGenerationResult(
        schedule=schedule,
        assignments=[],
        score=MISSING_OFF_SCORE,
        violations=[MISSING_OFF_MESSAGE],
    )
