from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TIME_PATTERN = r"^\d{2}:\d{2}$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

RequestType = Literal["leave", "shift_preference"]
RequestStatus = Literal["pending", "approved", "rejected", "coordination_needed"]


class WorkerBase(BaseModel):
    org_id: str
    name: str
    group_id: str | None = None
    email: str | None = None
    employee_id: str | None = None


class WorkerCreate(WorkerBase):
    pass


class WorkerRead(WorkerBase):
    id: str

    model_config = ConfigDict(from_attributes=True)


class WorkerUpdate(BaseModel):
    name: str | None = None
    group_id: str | None = None
    email: str | None = None
    employee_id: str | None = None


class ShiftTypeBase(BaseModel):
    org_id: str
    name: str
    short_code: str = Field(min_length=1, max_length=16)
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    color: str = "#4A90E2"
    group_id: str | None = None


class ShiftTypeCreate(ShiftTypeBase):
    pass


class ShiftTypeRead(ShiftTypeBase):
    id: str

    model_config = ConfigDict(from_attributes=True)


class ShiftTypeUpdate(BaseModel):
    name: str | None = None
    short_code: str | None = Field(default=None, min_length=1, max_length=16)
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    color: str | None = None


class ShiftRequestBase(BaseModel):
    org_id: str
    worker_id: str
    worker_name: str = ""
    date: str = Field(pattern=DATE_PATTERN)
    type: RequestType
    status: RequestStatus = "pending"
    details: dict[str, Any] = Field(default_factory=dict)


class ShiftRequestCreate(ShiftRequestBase):
    pass


class ShiftRequestRead(ShiftRequestBase):
    id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShiftRequestUpdate(BaseModel):
    status: RequestStatus | None = None
    details: dict[str, Any] | None = None
