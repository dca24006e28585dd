from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roster_scheduler.db.session import get_db_session
from roster_scheduler.repositories import resource as resource_repo
from roster_scheduler.schemas.resource import (
    ShiftRequestCreate,
    ShiftRequestRead,
    ShiftRequestUpdate,
    ShiftTypeCreate,
    ShiftTypeRead,
    ShiftTypeUpdate,
    WorkerCreate,
    WorkerRead,
    WorkerUpdate,
)
from roster_scheduler.services.types import OFF_SHORT_CODE

router = APIRouter()


@router.get("/workers", response_model=list[WorkerRead])
async def list_workers(
    org_id: Annotated[str, Query()],
    session: Annotated[AsyncSession, Depends(get_db_session)],
    group_id: Annotated[str | None, Query()] = None,
) -> list[WorkerRead]:
    workers = await resource_repo.list_workers(session, org_id, group_id=group_id)
    return [WorkerRead.model_validate(worker) for worker in workers]


@router.post("/workers", response_model=WorkerRead, status_code=status.HTTP_201_CREATED)
async def create_worker(
    payload: WorkerCreate, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> WorkerRead:
    worker = await resource_repo.create_worker(session, payload)
    await session.commit()
    return WorkerRead.model_validate(worker)


@router.put("/workers/{worker_id}", response_model=WorkerRead)
async def update_worker(
    worker_id: str,
    payload: WorkerUpdate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> WorkerRead:
    worker = await resource_repo.get_worker(session, worker_id)
    if not worker:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Worker not found")
    worker = await resource_repo.update_worker(session, worker, payload)
    await session.commit()
    return WorkerRead.model_validate(worker)


@router.delete("/workers/{worker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_worker(
    worker_id: str, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> None:
    worker = await resource_repo.get_worker(session, worker_id)
    if not worker:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Worker not found")
    await resource_repo.delete_worker(session, worker)
    await session.commit()


async def _ensure_single_off(
    session: AsyncSession, org_id: str, short_code: str | None, *, exclude_id: str | None = None
) -> None:
    if short_code != OFF_SHORT_CODE:
        return
    existing = await resource_repo.find_off_shift_type(session, org_id, exclude_id=exclude_id)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Organization {org_id} already has an OFF shift type ({existing.name})",
        )


@router.get("/shift-types", response_model=list[ShiftTypeRead])
async def list_shift_types(
    org_id: Annotated[str, Query()],
    session: Annotated[AsyncSession, Depends(get_db_session)],
    group_id: Annotated[str | None, Query()] = None,
) -> list[ShiftTypeRead]:
    shift_types = await resource_repo.list_shift_types(session, org_id, group_id=group_id)
    return [ShiftTypeRead.model_validate(shift_type) for shift_type in shift_types]


@router.post("/shift-types", response_model=ShiftTypeRead, status_code=status.HTTP_201_CREATED)
async def create_shift_type(
    payload: ShiftTypeCreate, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> ShiftTypeRead:
    await _ensure_single_off(session, payload.org_id, payload.short_code)
    shift_type = await resource_repo.create_shift_type(session, payload)
    await session.commit()
    return ShiftTypeRead.model_validate(shift_type)


@router.put("/shift-types/{shift_type_id}", response_model=ShiftTypeRead)
async def update_shift_type(
    shift_type_id: str,
    payload: ShiftTypeUpdate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ShiftTypeRead:
    shift_type = await resource_repo.get_shift_type(session, shift_type_id)
    if not shift_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift type not found")
    await _ensure_single_off(session, shift_type.org_id, payload.short_code, exclude_id=shift_type.id)
    shift_type = await resource_repo.update_shift_type(session, shift_type, payload)
    await session.commit()
    return ShiftTypeRead.model_validate(shift_type)


@router.delete("/shift-types/{shift_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift_type(
    shift_type_id: str, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> None:
    shift_type = await resource_repo.get_shift_type(session, shift_type_id)
    if not shift_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift type not found")
    await resource_repo.delete_shift_type(session, shift_type)
    await session.commit()


@router.get("/requests", response_model=list[ShiftRequestRead])
async def list_requests(
    org_id: Annotated[str, Query()],
    session: Annotated[AsyncSession, Depends(get_db_session)],
    month: Annotated[str | None, Query()] = None,
    worker_id: Annotated[str | None, Query()] = None,
) -> list[ShiftRequestRead]:
    requests = await resource_repo.list_requests(session, org_id, month=month, worker_id=worker_id)
    return [ShiftRequestRead.model_validate(request) for request in requests]


@router.post("/requests", response_model=ShiftRequestRead, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: ShiftRequestCreate, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> ShiftRequestRead:
    request = await resource_repo.create_request(session, payload)
    await session.commit()
    return ShiftRequestRead.model_validate(request)


@router.patch("/requests/{request_id}", response_model=ShiftRequestRead)
async def update_request(
    request_id: str,
    payload: ShiftRequestUpdate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ShiftRequestRead:
    request = await resource_repo.get_request(session, request_id)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    request = await resource_repo.update_request(session, request, payload)
    await session.commit()
    return ShiftRequestRead.model_validate(request)
