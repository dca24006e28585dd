from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roster_scheduler.core.config import Settings, get_settings
from roster_scheduler.db.session import get_db_session
from roster_scheduler.repositories import system as system_repo
from roster_scheduler.schemas.system import (
    RuleCatalogueEntry,
    RuleTemplateEnableRequest,
    SchedulingRuleConfigCreate,
    SchedulingRuleConfigRead,
    SchedulingRuleConfigUpdate,
)
from roster_scheduler.services.rules import RuleTemplate, default_catalogue, get_template, load_default_templates

router = APIRouter()


@router.get("/settings")
async def read_settings(
    settings: Annotated[Settings, Depends(get_settings)]
) -> dict[str, str]:
    """Expose basic runtime metadata for diagnostics."""
    return {
        "environment": settings.environment,
        "project": settings.project_name,
        "version": settings.version,
    }


@router.get("/rules/catalogue", response_model=list[RuleCatalogueEntry])
async def list_rule_catalogue() -> list[RuleCatalogueEntry]:
    return [
        RuleCatalogueEntry(
            rule_key=rule.key,
            label=rule.label,
            legacy_labels=list(rule.legacy_labels),
            parameter_defaults=dict(rule.parameter_defaults),
        )
        for rule in default_catalogue
    ]


@router.get("/rules/templates", response_model=list[RuleTemplate])
async def list_rule_templates() -> list[RuleTemplate]:
    return list(load_default_templates())


@router.post(
    "/rules/templates/{template_id}/enable",
    response_model=SchedulingRuleConfigRead,
    status_code=status.HTTP_201_CREATED,
)
async def enable_rule_template(
    template_id: str,
    payload: RuleTemplateEnableRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SchedulingRuleConfigRead:
    template = get_template(template_id)
    if not template:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule template not found")
    config = await system_repo.create_rule_config_from_template(
        session, template, org_id=payload.org_id, group_id=payload.group_id
    )
    await session.commit()
    return SchedulingRuleConfigRead.model_validate(config)


@router.get("/rules", response_model=list[SchedulingRuleConfigRead])
async def list_rule_configs(
    org_id: Annotated[str, Query()],
    session: Annotated[AsyncSession, Depends(get_db_session)],
    group_id: Annotated[str | None, Query()] = None,
) -> list[SchedulingRuleConfigRead]:
    configs = await system_repo.list_rule_configs(session, org_id, group_id=group_id)
    return [SchedulingRuleConfigRead.model_validate(config) for config in configs]


@router.post("/rules", response_model=SchedulingRuleConfigRead, status_code=status.HTTP_201_CREATED)
async def create_rule_config(
    payload: SchedulingRuleConfigCreate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SchedulingRuleConfigRead:
    config = await system_repo.create_rule_config(session, payload)
    await session.commit()
    return SchedulingRuleConfigRead.model_validate(config)


@router.put("/rules/{config_id}", response_model=SchedulingRuleConfigRead)
async def update_rule_config(
    config_id: str,
    payload: SchedulingRuleConfigUpdate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SchedulingRuleConfigRead:
    config = await system_repo.get_rule_config(session, config_id)
    if not config:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule configuration not found")
    config = await system_repo.update_rule_config(session, config, payload)
    await session.commit()
    return SchedulingRuleConfigRead.model_validate(config)


@router.delete("/rules/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule_config(
    config_id: str, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> None:
    config = await system_repo.get_rule_config(session, config_id)
    if not config:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule configuration not found")
    await system_repo.delete_rule_config(session, config)
    await session.commit()
