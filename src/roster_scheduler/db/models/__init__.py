from .group import Group
from .planning import Assignment, ManpowerPlan, Schedule
from .resource import ShiftRequest, ShiftType, Worker
from .system import SchedulingRuleConfig

__all__ = [
    "Group",
    "Worker",
    "ShiftType",
    "ShiftRequest",
    "ManpowerPlan",
    "Schedule",
    "Assignment",
    "SchedulingRuleConfig",
]
