from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from roster_scheduler.core.clock import as_utc
from roster_scheduler.db.models.group import Group
from roster_scheduler.schemas.group import GroupCreate
from roster_scheduler.services.types import LeaseState


async def list_groups(session: AsyncSession, org_id: str | None = None) -> list[Group]:
    query = select(Group)
    if org_id:
        query = query.where(Group.org_id == org_id)
    result = await session.execute(query.order_by(Group.group_name.asc()))
    return list(result.scalars().all())


async def create_group(session: AsyncSession, payload: GroupCreate) -> Group:
    group = Group(**payload.model_dump())
    session.add(group)
    await session.flush()
    await session.refresh(group)
    return group


async def get_group(session: AsyncSession, group_id: str) -> Group | None:
    return await session.get(Group, group_id)


async def delete_group(session: AsyncSession, group: Group) -> None:
    await session.delete(group)


async def read_lease(session: AsyncSession, org_id: str, group_id: str) -> Optional[LeaseState]:
    result = await session.execute(
        select(Group.scheduler_id, Group.scheduler_name, Group.lease_expires_at, Group.lease_version)
        .where(Group.id == group_id)
        .where(Group.org_id == org_id)
    )
    row = result.first()
    if row is None:
        return None
    return LeaseState(
        scheduler_id=row.scheduler_id,
        scheduler_name=row.scheduler_name,
        expires_at=as_utc(row.lease_expires_at),
        version=row.lease_version,
    )


async def compare_and_set_lease(
    session: AsyncSession, org_id: str, group_id: str, lease: LeaseState
) -> Optional[LeaseState]:
    """Write `lease` only if the stored version still equals `lease.version`.

    Returns the stored lease with its bumped version, or None when another
    writer got there first.
    """
    next_version = lease.version + 1
    result = await session.execute(
        update(Group)
        .where(Group.id == group_id)
        .where(Group.org_id == org_id)
        .where(Group.lease_version == lease.version)
        .values(
            scheduler_id=lease.scheduler_id,
            scheduler_name=lease.scheduler_name,
            lease_expires_at=lease.expires_at,
            lease_version=next_version,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return None
    return LeaseState(
        scheduler_id=lease.scheduler_id,
        scheduler_name=lease.scheduler_name,
        expires_at=lease.expires_at,
        version=next_version,
    )


async def clear_lease(session: AsyncSession, org_id: str, group_id: str) -> Optional[LeaseState]:
    result = await session.execute(
        update(Group)
        .where(Group.id == group_id)
        .where(Group.org_id == org_id)
        .values(
            scheduler_id=None,
            scheduler_name=None,
            lease_expires_at=None,
            lease_version=Group.lease_version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return None
    return await read_lease(session, org_id, group_id)
