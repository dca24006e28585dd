from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_scheduler.db.models.system import SchedulingRuleConfig
from roster_scheduler.schemas.system import SchedulingRuleConfigCreate, SchedulingRuleConfigUpdate
from roster_scheduler.services.rules import RuleTemplate


async def list_rule_configs(
    session: AsyncSession,
    org_id: str,
    *,
    group_id: str | None = None,
    enabled_only: bool = False,
) -> list[SchedulingRuleConfig]:
    """Organisation-wide rule configs plus those scoped to `group_id`."""
    query = select(SchedulingRuleConfig).where(SchedulingRuleConfig.org_id == org_id)
    if group_id:
        query = query.where(
            or_(SchedulingRuleConfig.group_id.is_(None), SchedulingRuleConfig.group_id == group_id)
        )
    if enabled_only:
        query = query.where(SchedulingRuleConfig.is_enabled.is_(True))
    result = await session.execute(
        query.order_by(SchedulingRuleConfig.created_at.asc(), SchedulingRuleConfig.id.asc())
    )
    return list(result.scalars().all())


async def get_rule_config(session: AsyncSession, config_id: str) -> SchedulingRuleConfig | None:
    return await session.get(SchedulingRuleConfig, config_id)


async def create_rule_config(
    session: AsyncSession, payload: SchedulingRuleConfigCreate
) -> SchedulingRuleConfig:
    config = SchedulingRuleConfig(**payload.model_dump())
    session.add(config)
    await session.flush()
    await session.refresh(config)
    return config


async def create_rule_config_from_template(
    session: AsyncSession,
    template: RuleTemplate,
    *,
    org_id: str,
    group_id: str | None = None,
) -> SchedulingRuleConfig:
    config = SchedulingRuleConfig(
        org_id=org_id,
        group_id=group_id,
        rule_key=template.rule_key,
        rule_name=template.rule_name,
        description=template.description,
        rule_type=template.rule_type,
        penalty_score=template.penalty_score,
        is_enabled=template.is_enabled,
        parameters=dict(template.parameters),
        template_id=template.id,
    )
    session.add(config)
    await session.flush()
    await session.refresh(config)
    return config


async def update_rule_config(
    session: AsyncSession,
    config: SchedulingRuleConfig,
    payload: SchedulingRuleConfigUpdate,
) -> SchedulingRuleConfig:
    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        setattr(config, field, value)
    await session.flush()
    await session.refresh(config)
    return config


async def delete_rule_config(session: AsyncSession, config: SchedulingRuleConfig) -> None:
    await session.delete(config)
