from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GroupBase(BaseModel):
    org_id: str
    group_name: str


class GroupCreate(GroupBase):
    pass


class LeaseRead(BaseModel):
    scheduler_id: str | None = None
    scheduler_name: str | None = None
    expires_at: datetime | None = None
    version: int = 0
    is_active: bool = False


class GroupRead(GroupBase):
    id: str
    scheduler_id: str | None = None
    scheduler_name: str | None = None
    lease_expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class LeaseClaimRequest(BaseModel):
    org_id: str
    user_id: str
    user_name: str = ""
    duration_minutes: int | None = Field(default=None, gt=0)


class LeaseRenewRequest(BaseModel):
    org_id: str
    user_id: str
    duration_minutes: int | None = Field(default=None, gt=0)


class LeaseReleaseRequest(BaseModel):
    org_id: str


class LeaseResponse(BaseModel):
    status: str
    granted: bool
    lease: LeaseRead
