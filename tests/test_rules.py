from roster_scheduler.services.rules import (
    MaxConsecutiveWorkDaysRule,
    MinRestBetweenShiftsRule,
    NightShiftFollowupRule,
    RuleContext,
    default_catalogue,
    get_template,
    load_default_templates,
)
from roster_scheduler.services.types import RuleConfig, SchedulingShift, SchedulingWorker

from .factories import DAY, EARLY, LATE, NIGHT, OFF, SHIFT_CATALOGUE, consecutive_days

WORKER = SchedulingWorker(id="w1", name="Alice")


def _context(assignments: dict[str, str], shift_types: list[SchedulingShift] | None = None) -> RuleContext:
    return RuleContext(worker=WORKER, assignments=assignments, shift_types=shift_types or SHIFT_CATALOGUE)


def test_seven_day_run_exceeds_limit_of_six() -> None:
    violation = MaxConsecutiveWorkDaysRule().evaluate(
        _context(consecutive_days(1, 7, DAY.id)), {"maxDays": "6"}
    )

    assert violation is not None
    assert violation.rule_key == "max_consecutive_work_days"
    assert "7" in violation.message
    assert "6" in violation.message
    assert "Alice" in violation.message


def test_run_within_limit_and_runs_reset_by_off() -> None:
    rule = MaxConsecutiveWorkDaysRule()
    assert rule.evaluate(_context(consecutive_days(1, 6, DAY.id)), {"maxDays": "6"}) is None

    assignments = {**consecutive_days(1, 4, DAY.id), "05": OFF.id, **consecutive_days(6, 10, LATE.id)}
    assert rule.evaluate(_context(assignments), {"maxDays": "6"}) is None


def test_unassigned_days_do_not_break_a_run() -> None:
    assignments = {**consecutive_days(1, 4, DAY.id), **consecutive_days(8, 10, DAY.id)}

    violation = MaxConsecutiveWorkDaysRule().evaluate(_context(assignments), {"maxDays": "6"})

    assert violation is not None
    assert "7" in violation.message


def test_unparsable_max_days_falls_back_to_default() -> None:
    rule = MaxConsecutiveWorkDaysRule()
    assert rule.evaluate(_context(consecutive_days(1, 7, DAY.id)), {"maxDays": "six"}) is not None
    assert rule.evaluate(_context(consecutive_days(1, 6, DAY.id)), {}) is None


def test_days_are_ordered_numerically() -> None:
    # "10" must come after "09" even when inserted first.
    assignments = {"10": OFF.id, **consecutive_days(3, 9, DAY.id)}

    violation = MaxConsecutiveWorkDaysRule().evaluate(_context(assignments), {"maxDays": "6"})

    assert violation is not None
    assert "7 consecutive" in violation.message


def test_short_rest_between_late_and_early_violates() -> None:
    violation = MinRestBetweenShiftsRule().evaluate(
        _context({"01": LATE.id, "02": EARLY.id}), {"minHours": "11"}
    )

    assert violation is not None
    assert "8 hours" in violation.message
    assert "day 01" in violation.message


def test_sixteen_hours_of_rest_is_enough() -> None:
    assert MinRestBetweenShiftsRule().evaluate(_context({"01": DAY.id, "02": DAY.id}), {"minHours": "11"}) is None


def test_off_days_are_not_checked_for_rest() -> None:
    assignments = {"01": LATE.id, "02": OFF.id, "03": EARLY.id}
    assert MinRestBetweenShiftsRule().evaluate(_context(assignments), {"minHours": "11"}) is None


def test_unparsable_shift_times_are_skipped() -> None:
    broken = SchedulingShift(id="broken", name="Broken", short_code="B", start_time="soon", end_time="later")
    shift_types = [*SHIFT_CATALOGUE, broken]

    assignments = {"01": broken.id, "02": EARLY.id}
    assert MinRestBetweenShiftsRule().evaluate(_context(assignments, shift_types), {"minHours": "11"}) is None


def test_min_rest_default_is_eleven_hours() -> None:
    # 10 hours between a 21:00 end and a 07:00 start.
    evening = SchedulingShift(id="evening", name="Evening", short_code="EV", start_time="13:00", end_time="21:00")
    shift_types = [*SHIFT_CATALOGUE, evening]

    assert MinRestBetweenShiftsRule().evaluate(_context({"01": evening.id, "02": EARLY.id}, shift_types), {})


def test_night_shift_followed_by_day_shift_violates() -> None:
    violation = NightShiftFollowupRule().evaluate(_context({"03": NIGHT.id, "04": DAY.id}), {})

    assert violation is not None
    assert "03" in violation.message
    assert DAY.name in violation.message


def test_night_shift_followed_by_night_or_off_is_allowed() -> None:
    assignments = {"03": NIGHT.id, "04": NIGHT.id, "05": OFF.id, "06": DAY.id}
    assert NightShiftFollowupRule().evaluate(_context(assignments), {}) is None


def test_night_shift_name_can_be_configured() -> None:
    graveyard = SchedulingShift(id="grave", name="Graveyard", short_code="G", start_time="22:00", end_time="06:00")
    shift_types = [OFF, DAY, graveyard]
    context = _context({"01": graveyard.id, "02": DAY.id}, shift_types)

    assert NightShiftFollowupRule().evaluate(context, {}) is None
    assert NightShiftFollowupRule().evaluate(context, {"nightShiftName": "Graveyard"}) is not None


def test_english_night_duty_name_matches_case_insensitively() -> None:
    night_duty = SchedulingShift(id="nd", name="  Night Duty ", short_code="ND", start_time="23:00", end_time="07:00")
    shift_types = [OFF, DAY, night_duty]

    violation = NightShiftFollowupRule().evaluate(_context({"14": night_duty.id, "15": DAY.id}, shift_types), {})

    assert violation is not None
    assert "day 14" in violation.message
    assert DAY.name in violation.message
    assert NightShiftFollowupRule().evaluate(_context({"14": night_duty.id, "15": OFF.id}, shift_types), {}) is None


def test_catalogue_resolves_by_key_before_label() -> None:
    by_key = RuleConfig(rule_name="Renamed in the UI", rule_key="min_rest_between_shifts")
    by_legacy_label = RuleConfig(rule_name="連續上班不超過N天")
    unknown = RuleConfig(rule_name="Something else", rule_key="no_such_rule")

    assert isinstance(default_catalogue.resolve(by_key), MinRestBetweenShiftsRule)
    assert isinstance(default_catalogue.resolve(by_legacy_label), MaxConsecutiveWorkDaysRule)
    assert default_catalogue.resolve(unknown) is None
    assert {rule.key for rule in default_catalogue} == {
        "max_consecutive_work_days",
        "min_rest_between_shifts",
        "night_shift_followup",
    }


def test_bundled_templates_reference_catalogue_rules() -> None:
    templates = load_default_templates()

    assert len(templates) == 3
    assert all(default_catalogue.get(template.rule_key) for template in templates)
    assert all(template.penalty_score == -1000 for template in templates)

    min_rest = get_template("template-hnp-min-rest-12h")
    assert min_rest is not None
    assert min_rest.parameters == {"minHours": "12"}
    assert get_template("missing") is None
