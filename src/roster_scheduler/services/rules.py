"""Built-in scheduling rules, their catalogue and the bundled rule templates."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from importlib import resources
from typing import ClassVar, Iterable, Literal, Mapping, Optional

from pydantic import BaseModel, Field

from roster_scheduler.services.types import RuleConfig, SchedulingShift, SchedulingWorker

DEFAULT_NIGHT_SHIFT_NAMES: tuple[str, ...] = ("night duty", "值班(夜)")


@dataclass(frozen=True)
class RuleContext:
    worker: SchedulingWorker
    assignments: Mapping[str, str]  # two-digit day -> shift type id
    shift_types: list[SchedulingShift]

    def off_shift(self) -> Optional[SchedulingShift]:
        return next((shift for shift in self.shift_types if shift.is_off), None)

    def shift_lookup(self) -> dict[str, SchedulingShift]:
        return {shift.id: shift for shift in self.shift_types}

    def ordered_days(self) -> list[tuple[str, str]]:
        """Assigned (day, shift id) pairs in ascending day-of-month order."""
        days: list[tuple[int, str, str]] = []
        for key, shift_id in self.assignments.items():
            try:
                days.append((int(key), key, shift_id))
            except (TypeError, ValueError):
                continue
        days.sort(key=lambda item: item[0])
        return [(key, shift_id) for _, key, shift_id in days]


@dataclass(frozen=True)
class RuleViolation:
    rule_key: str
    message: str
    config_id: Optional[str] = None
    penalty_score: int = 0


class SchedulingRule(ABC):
    """A single constraint evaluated against one worker's month."""

    key: ClassVar[str]
    label: ClassVar[str]
    legacy_labels: ClassVar[tuple[str, ...]] = ()
    parameter_defaults: ClassVar[dict[str, str]] = {}

    @abstractmethod
    def evaluate(self, context: RuleContext, parameters: Mapping[str, str]) -> Optional[RuleViolation]:
        """Return a violation, or None when the constraint holds. Never raises."""

    def labels(self) -> set[str]:
        return {self.label, *self.legacy_labels}

    def violation(self, message: str) -> RuleViolation:
        return RuleViolation(rule_key=self.key, message=message)


def _int_parameter(parameters: Mapping[str, str], name: str, default: int) -> int:
    value = parameters.get(name)
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _clock_minutes(value: str) -> int:
    parsed = datetime.strptime(value.strip(), "%H:%M")
    return parsed.hour * 60 + parsed.minute


class MaxConsecutiveWorkDaysRule(SchedulingRule):
    key = "max_consecutive_work_days"
    label = "Max consecutive work days"
    legacy_labels = ("連續上班不超過N天",)
    parameter_defaults = {"maxDays": "6"}

    def evaluate(self, context: RuleContext, parameters: Mapping[str, str]) -> Optional[RuleViolation]:
        max_days = _int_parameter(parameters, "maxDays", 6)
        off_shift = context.off_shift()
        if off_shift is None:
            return None

        longest = 0
        current = 0
        # Unassigned days do not break a run; only an explicit OFF does.
        for _day, shift_id in context.ordered_days():
            if shift_id == off_shift.id:
                current = 0
                continue
            current += 1
            longest = max(longest, current)

        if longest > max_days:
            return self.violation(
                f"{context.worker.name}: worked {longest} consecutive days, exceeding the limit of {max_days}"
            )
        return None


class MinRestBetweenShiftsRule(SchedulingRule):
    key = "min_rest_between_shifts"
    label = "Min rest between shifts"
    legacy_labels = ("輪班間隔需大於N小時",)
    parameter_defaults = {"minHours": "11"}

    def evaluate(self, context: RuleContext, parameters: Mapping[str, str]) -> Optional[RuleViolation]:
        min_hours = _int_parameter(parameters, "minHours", 11)
        lookup = context.shift_lookup()
        ordered = context.ordered_days()

        for (day, shift_id), (_next_day, next_shift_id) in zip(ordered, ordered[1:]):
            current_shift = lookup.get(shift_id)
            next_shift = lookup.get(next_shift_id)
            if current_shift is None or next_shift is None:
                continue
            if current_shift.is_off or next_shift.is_off:
                continue
            try:
                rest_minutes = _clock_minutes(next_shift.start_time) - _clock_minutes(current_shift.end_time)
            except (AttributeError, ValueError):
                continue
            if rest_minutes < 0:
                rest_minutes += 24 * 60
            if rest_minutes < min_hours * 60:
                return self.violation(
                    f"{context.worker.name}: only {rest_minutes // 60} hours of rest "
                    f"between day {day} and the following shift (minimum {min_hours})"
                )
        return None


class NightShiftFollowupRule(SchedulingRule):
    key = "night_shift_followup"
    label = "Night shift follow-up"
    legacy_labels = ("夜班後續班別限制",)

    def evaluate(self, context: RuleContext, parameters: Mapping[str, str]) -> Optional[RuleViolation]:
        night_names = _night_shift_names(parameters)
        night_shift = next(
            (shift for shift in context.shift_types if shift.name.strip().lower() in night_names),
            None,
        )
        off_shift = context.off_shift()
        if night_shift is None or off_shift is None:
            return None

        lookup = context.shift_lookup()
        ordered = context.ordered_days()
        for (day, shift_id), (_next_day, next_shift_id) in zip(ordered, ordered[1:]):
            if shift_id != night_shift.id:
                continue
            if next_shift_id in (night_shift.id, off_shift.id):
                continue
            next_shift = lookup.get(next_shift_id)
            next_name = next_shift.name if next_shift else "unknown"
            return self.violation(
                f"{context.worker.name}: day {day} night shift cannot be followed by {next_name}"
            )
        return None


def _night_shift_names(parameters: Mapping[str, str]) -> set[str]:
    override = parameters.get("nightShiftName")
    if override and str(override).strip():
        return {str(override).strip().lower()}
    return set(DEFAULT_NIGHT_SHIFT_NAMES)


BUILTIN_RULES: tuple[SchedulingRule, ...] = (
    MaxConsecutiveWorkDaysRule(),
    MinRestBetweenShiftsRule(),
    NightShiftFollowupRule(),
)


class RuleCatalogue:
    """Resolves rule configs to implementations by stable key.

    Configs written before rule keys existed only carry a display label, so
    labels are accepted as a fallback.
    """

    def __init__(self, rules: Iterable[SchedulingRule] = BUILTIN_RULES) -> None:
        self._by_key: dict[str, SchedulingRule] = {}
        self._by_label: dict[str, SchedulingRule] = {}
        for rule in rules:
            self._by_key[rule.key] = rule
            for label in rule.labels():
                self._by_label[label] = rule

    def __iter__(self):
        return iter(self._by_key.values())

    def get(self, rule_key: str) -> Optional[SchedulingRule]:
        return self._by_key.get(rule_key)

    def resolve(self, config: RuleConfig) -> Optional[SchedulingRule]:
        if config.rule_key:
            rule = self._by_key.get(config.rule_key)
            if rule is not None:
                return rule
        return self._by_label.get(config.rule_name)


default_catalogue = RuleCatalogue()


class RuleTemplate(BaseModel):
    id: str
    rule_key: str
    rule_name: str
    description: str = ""
    rule_type: Literal["hard", "soft"] = "hard"
    penalty_score: int = Field(default=0, le=0)
    is_enabled: bool = True
    parameters: dict[str, str] = Field(default_factory=dict)


def _load_templates_from_json() -> list[RuleTemplate]:
    with resources.files("roster_scheduler.services.data").joinpath("default_rules.json").open(
        "r", encoding="utf-8"
    ) as handle:
        payload = json.load(handle)
    return [RuleTemplate.model_validate(item) for item in payload["templates"]]


@lru_cache(maxsize=1)
def load_default_templates() -> tuple[RuleTemplate, ...]:
    """Return the rule templates bundled with the application."""

    return tuple(_load_templates_from_json())


def get_template(template_id: str) -> Optional[RuleTemplate]:
    return next((template for template in load_default_templates() if template.id == template_id), None)
