"""Plain data carried through rule evaluation and schedule generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

OFF_SHORT_CODE = "OFF"

RequestType = Literal["leave", "shift_preference"]
RequestStatus = Literal["pending", "approved", "rejected", "coordination_needed"]


@dataclass(frozen=True)
class SchedulingWorker:
    id: str
    name: str
    org_id: str = ""


@dataclass(frozen=True)
class SchedulingShift:
    id: str
    name: str
    short_code: str
    start_time: str
    end_time: str
    color: str = "#4A90E2"

    @property
    def is_off(self) -> bool:
        return self.short_code == OFF_SHORT_CODE


@dataclass(frozen=True)
class SchedulingRequest:
    worker_id: str
    date: str  # YYYY-MM-DD
    type: str
    status: str
    shift_type_id: Optional[str] = None

    @property
    def is_approved(self) -> bool:
        return self.status == "approved"


@dataclass(frozen=True)
class RuleConfig:
    """A persisted activation of a catalogue rule, detached from the ORM."""

    rule_name: str
    rule_key: Optional[str] = None
    id: Optional[str] = None
    rule_type: Literal["hard", "soft"] = "soft"
    penalty_score: int = 0
    is_enabled: bool = True
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GeneratedSchedule:
    id: str
    org_id: str
    group_id: str
    month: str
    status: str
    generated_at: datetime
    total_score: int
    violated_rules: list[str]
    generation_method: str = "smart"


@dataclass(frozen=True)
class GeneratedAssignment:
    id: str
    schedule_id: str
    worker_id: str
    worker_name: str
    daily_shifts: dict[str, str]


@dataclass(frozen=True)
class ScheduleGenerationResult:
    schedule: GeneratedSchedule
    assignments: list[GeneratedAssignment]
    score: int
    violations: list[str]


@dataclass(frozen=True)
class LeaseState:
    """Scheduler lease fields of a group plus the optimistic-lock version."""

    scheduler_id: Optional[str] = None
    scheduler_name: Optional[str] = None
    expires_at: Optional[datetime] = None
    version: int = 0

    def is_active(self, now: datetime) -> bool:
        return self.expires_at is not None and now < self.expires_at

    def is_held_by(self, user_id: str, now: datetime) -> bool:
        return self.scheduler_id == user_id and self.is_active(now)
