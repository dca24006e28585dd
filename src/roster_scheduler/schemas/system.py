from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SchedulingRuleConfigBase(BaseModel):
    org_id: str
    group_id: str | None = None
    rule_key: str | None = None
    rule_name: str
    description: str = ""
    rule_type: Literal["hard", "soft"] = "soft"
    penalty_score: int = Field(default=0, le=0)
    is_enabled: bool = True
    parameters: dict[str, str] = Field(default_factory=dict)


class SchedulingRuleConfigCreate(SchedulingRuleConfigBase):
    pass


class SchedulingRuleConfigRead(SchedulingRuleConfigBase):
    id: str
    template_id: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SchedulingRuleConfigUpdate(BaseModel):
    rule_name: str | None = None
    description: str | None = None
    rule_type: Literal["hard", "soft"] | None = None
    penalty_score: int | None = Field(default=None, le=0)
    is_enabled: bool | None = None
    parameters: dict[str, str] | None = None


class RuleTemplateEnableRequest(BaseModel):
    org_id: str
    group_id: str | None = None


class RuleCatalogueEntry(BaseModel):
    rule_key: str
    label: str
    legacy_labels: list[str] = Field(default_factory=list)
    parameter_defaults: dict[str, str] = Field(default_factory=dict)
