from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_scheduler.db.models.resource import ShiftRequest, ShiftType, Worker
from roster_scheduler.services.types import OFF_SHORT_CODE
from roster_scheduler.schemas.resource import (
    ShiftRequestCreate,
    ShiftRequestUpdate,
    ShiftTypeCreate,
    ShiftTypeUpdate,
    WorkerCreate,
    WorkerUpdate,
)


async def list_workers(
    session: AsyncSession, org_id: str, *, group_id: str | None = None
) -> list[Worker]:
    query = select(Worker).where(Worker.org_id == org_id)
    if group_id:
        query = query.where(Worker.group_id == group_id)
    result = await session.execute(query.order_by(Worker.name.asc(), Worker.id.asc()))
    return list(result.scalars().all())


async def create_worker(session: AsyncSession, payload: WorkerCreate) -> Worker:
    worker = Worker(**payload.model_dump())
    session.add(worker)
    await session.flush()
    await session.refresh(worker)
    return worker


async def get_worker(session: AsyncSession, worker_id: str) -> Worker | None:
    return await session.get(Worker, worker_id)


async def update_worker(session: AsyncSession, worker: Worker, payload: WorkerUpdate) -> Worker:
    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        setattr(worker, field, value)
    await session.flush()
    await session.refresh(worker)
    return worker


async def delete_worker(session: AsyncSession, worker: Worker) -> None:
    await session.delete(worker)


async def list_shift_types(
    session: AsyncSession, org_id: str, *, group_id: str | None = None
) -> list[ShiftType]:
    """Organisation-wide shift types plus those defined for `group_id`."""
    query = select(ShiftType).where(ShiftType.org_id == org_id)
    if group_id:
        query = query.where(or_(ShiftType.group_id.is_(None), ShiftType.group_id == group_id))
    else:
        query = query.where(ShiftType.group_id.is_(None))
    result = await session.execute(query.order_by(ShiftType.name.asc(), ShiftType.id.asc()))
    return list(result.scalars().all())


async def find_off_shift_type(
    session: AsyncSession, org_id: str, *, exclude_id: str | None = None
) -> ShiftType | None:
    """The organisation's OFF shift type, org-wide or group-scoped."""
    query = select(ShiftType).where(ShiftType.org_id == org_id).where(ShiftType.short_code == OFF_SHORT_CODE)
    if exclude_id:
        query = query.where(ShiftType.id != exclude_id)
    result = await session.execute(query)
    return result.scalars().first()


async def create_shift_type(session: AsyncSession, payload: ShiftTypeCreate) -> ShiftType:
    shift_type = ShiftType(**payload.model_dump())
    session.add(shift_type)
    await session.flush()
    await session.refresh(shift_type)
    return shift_type


async def get_shift_type(session: AsyncSession, shift_type_id: str) -> ShiftType | None:
    return await session.get(ShiftType, shift_type_id)


async def update_shift_type(
    session: AsyncSession, shift_type: ShiftType, payload: ShiftTypeUpdate
) -> ShiftType:
    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        setattr(shift_type, field, value)
    await session.flush()
    await session.refresh(shift_type)
    return shift_type


async def delete_shift_type(session: AsyncSession, shift_type: ShiftType) -> None:
    await session.delete(shift_type)


async def list_requests(
    session: AsyncSession,
    org_id: str,
    *,
    month: str | None = None,
    worker_id: str | None = None,
) -> list[ShiftRequest]:
    query = select(ShiftRequest).where(ShiftRequest.org_id == org_id)
    if month:
        query = query.where(ShiftRequest.date.startswith(month))
    if worker_id:
        query = query.where(ShiftRequest.worker_id == worker_id)
    result = await session.execute(query.order_by(ShiftRequest.date.asc(), ShiftRequest.created_at.asc()))
    return list(result.scalars().all())


async def create_request(session: AsyncSession, payload: ShiftRequestCreate) -> ShiftRequest:
    request = ShiftRequest(**payload.model_dump())
    session.add(request)
    await session.flush()
    await session.refresh(request)
    return request


async def get_request(session: AsyncSession, request_id: str) -> ShiftRequest | None:
    return await session.get(ShiftRequest, request_id)


async def update_request(
    session: AsyncSession, request: ShiftRequest, payload: ShiftRequestUpdate
) -> ShiftRequest:
    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        setattr(request, field, value)
    await session.flush()
    await session.refresh(request)
    return request
