"""Manpower plans: per-day staffing targets for a group and month."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Mapping, Optional


def month_days(month: str) -> list[date]:
    year, month_value = map(int, month.split("-"))
    last = calendar.monthrange(year, month_value)[1]
    return [date(year, month_value, day) for day in range(1, last + 1)]


def day_key(value: date) -> str:
    return f"{value.day:02d}"


def day_key_from_iso(value: str) -> Optional[str]:
    """Two-digit day of a YYYY-MM-DD string, or None when unparsable."""
    try:
        return day_key(date.fromisoformat(value))
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class DailyRequirement:
    date: str
    is_holiday: bool = False
    holiday_name: Optional[str] = None
    requirements: dict[str, int] = field(default_factory=dict)

    @property
    def total_required(self) -> int:
        return sum(max(count, 0) for count in self.requirements.values())

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "DailyRequirement":
        return cls(
            date=str(payload.get("date", "")),
            is_holiday=bool(payload.get("is_holiday", False)),
            holiday_name=payload.get("holiday_name"),
            requirements={str(key): int(value) for key, value in (payload.get("requirements") or {}).items()},
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "is_holiday": self.is_holiday,
            "holiday_name": self.holiday_name,
            "requirements": dict(self.requirements),
        }


@dataclass(frozen=True)
class RequirementDefaults:
    weekday: dict[str, int] = field(default_factory=dict)
    saturday: dict[str, int] = field(default_factory=dict)
    sunday: dict[str, int] = field(default_factory=dict)
    holiday: dict[str, int] = field(default_factory=dict)

    def for_date(self, value: date, *, is_holiday: bool) -> dict[str, int]:
        if is_holiday:
            return dict(self.holiday)
        if value.weekday() == 5:
            return dict(self.saturday)
        if value.weekday() == 6:
            return dict(self.sunday)
        return dict(self.weekday)


@dataclass(frozen=True)
class ManpowerPlan:
    org_id: str
    group_id: str
    month: str
    requirement_defaults: RequirementDefaults = field(default_factory=RequirementDefaults)
    daily_requirements: dict[str, DailyRequirement] = field(default_factory=dict)

    def requirement_for(self, day: str) -> Optional[DailyRequirement]:
        return self.daily_requirements.get(day)

    def total_required(self, day: str) -> int:
        requirement = self.requirement_for(day)
        return requirement.total_required if requirement else 0


def apply_requirement_defaults(plan: ManpowerPlan, holidays: Mapping[str, str] | None = None) -> ManpowerPlan:
    """Rebuild every day of the month from the weekday/weekend/holiday defaults.

    `holidays` maps YYYY-MM-DD to the holiday name.
    """
    holidays = holidays or {}
    daily: dict[str, DailyRequirement] = {}
    for current in month_days(plan.month):
        iso = current.isoformat()
        is_holiday = iso in holidays
        daily[day_key(current)] = DailyRequirement(
            date=iso,
            is_holiday=is_holiday,
            holiday_name=holidays.get(iso),
            requirements=plan.requirement_defaults.for_date(current, is_holiday=is_holiday),
        )
    return replace(plan, daily_requirements=daily)


def plan_from_payload(
    org_id: str,
    group_id: str,
    month: str,
    requirement_defaults: Mapping[str, Any] | None,
    daily_requirements: Mapping[str, Mapping[str, Any]] | None,
) -> ManpowerPlan:
    """Build a plan from its stored JSON shape."""
    defaults = requirement_defaults or {}
    return ManpowerPlan(
        org_id=org_id,
        group_id=group_id,
        month=month,
        requirement_defaults=RequirementDefaults(
            weekday={str(k): int(v) for k, v in (defaults.get("weekday") or {}).items()},
            saturday={str(k): int(v) for k, v in (defaults.get("saturday") or {}).items()},
            sunday={str(k): int(v) for k, v in (defaults.get("sunday") or {}).items()},
            holiday={str(k): int(v) for k, v in (defaults.get("holiday") or {}).items()},
        ),
        daily_requirements={
            str(day): DailyRequirement.from_mapping(entry) for day, entry in (daily_requirements or {}).items()
        },
    )
