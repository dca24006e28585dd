from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, Mapping

from roster_scheduler.services.rules import (
    RuleCatalogue,
    RuleContext,
    RuleViolation,
    default_catalogue,
)
from roster_scheduler.services.types import RuleConfig, SchedulingShift, SchedulingWorker

logger = logging.getLogger(__name__)


class RuleEngine:
    """Runs enabled rule configs against one worker's assignment."""

    def __init__(self, catalogue: RuleCatalogue = default_catalogue) -> None:
        self.catalogue = catalogue

    def validate(
        self,
        worker: SchedulingWorker,
        assignment: Mapping[str, str],
        shift_types: list[SchedulingShift],
        enabled_configs: Iterable[RuleConfig],
    ) -> list[RuleViolation]:
        context = RuleContext(worker=worker, assignments=assignment, shift_types=shift_types)
        violations: list[RuleViolation] = []

        for config in enabled_configs:
            if not config.is_enabled:
                continue
            rule = self.catalogue.resolve(config)
            if rule is None:
                logger.debug("No rule implementation for config %r (%s)", config.rule_name, config.rule_key)
                continue
            violation = rule.evaluate(context, config.parameters)
            if violation is None:
                continue
            violations.append(
                dataclasses.replace(violation, config_id=config.id, penalty_score=config.penalty_score)
            )
        return violations
