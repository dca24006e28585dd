from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class DailyRequirementSchema(BaseModel):
    date: str
    is_holiday: bool = False
    holiday_name: str | None = None
    requirements: dict[str, int] = Field(default_factory=dict)


class RequirementDefaultsSchema(BaseModel):
    weekday: dict[str, int] = Field(default_factory=dict)
    saturday: dict[str, int] = Field(default_factory=dict)
    sunday: dict[str, int] = Field(default_factory=dict)
    holiday: dict[str, int] = Field(default_factory=dict)


class ManpowerPlanWrite(BaseModel):
    requirement_defaults: RequirementDefaultsSchema = Field(default_factory=RequirementDefaultsSchema)
    daily_requirements: dict[str, DailyRequirementSchema] = Field(default_factory=dict)


class ManpowerPlanRead(ManpowerPlanWrite):
    id: str
    org_id: str
    group_id: str
    month: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplyDefaultsRequest(BaseModel):
    holidays: dict[str, str] = Field(default_factory=dict)  # YYYY-MM-DD -> holiday name


class ScheduleGenerationRequest(BaseModel):
    org_id: str
    group_id: str
    month: str = Field(pattern=MONTH_PATTERN)
    requested_by: str
    seed: int | None = None


class AssignmentRead(BaseModel):
    id: str
    schedule_id: str
    worker_id: str
    worker_name: str
    daily_shifts: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class AssignmentUpdate(BaseModel):
    editor_id: str
    daily_shifts: dict[str, str]


class ScheduleRead(BaseModel):
    id: str
    org_id: str
    group_id: str
    month: str
    status: str
    generated_at: datetime
    total_score: int
    violated_rules: list[str] = Field(default_factory=list)
    generation_method: str

    model_config = ConfigDict(from_attributes=True)


class ScheduleUpdate(BaseModel):
    editor_id: str
    status: Literal["draft", "error", "published"] | None = None


class ScheduleGenerationResponse(BaseModel):
    schedule: ScheduleRead
    assignments: list[AssignmentRead] = Field(default_factory=list)
    score: int
    violations: list[str] = Field(default_factory=list)
