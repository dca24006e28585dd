from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roster_scheduler.core.clock import Clock, get_clock
from roster_scheduler.db.session import get_db_session
from roster_scheduler.repositories import group as group_repo
from roster_scheduler.schemas.group import (
    GroupCreate,
    GroupRead,
    LeaseClaimRequest,
    LeaseRead,
    LeaseReleaseRequest,
    LeaseRenewRequest,
    LeaseResponse,
)
from roster_scheduler.services import lease as lease_service
from roster_scheduler.services.types import LeaseState

router = APIRouter()


def _lease_read(state: LeaseState, clock: Clock) -> LeaseRead:
    return LeaseRead(
        scheduler_id=state.scheduler_id,
        scheduler_name=state.scheduler_name,
        expires_at=state.expires_at,
        version=state.version,
        is_active=state.is_active(clock()),
    )


def _lease_response(result: lease_service.LeaseResult, clock: Clock) -> LeaseResponse:
    if result.status is lease_service.LeaseStatus.CONFLICT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Lease changed concurrently; retry the request",
        )
    return LeaseResponse(
        status=result.status.value,
        granted=result.granted,
        lease=_lease_read(result.lease, clock),
    )


def _duration(minutes: int | None) -> timedelta | None:
    return timedelta(minutes=minutes) if minutes else None


@router.get("/", response_model=list[GroupRead])
async def list_groups(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    org_id: Annotated[str | None, Query()] = None,
) -> list[GroupRead]:
    groups = await group_repo.list_groups(session, org_id)
    return [GroupRead.model_validate(group) for group in groups]


@router.post("/", response_model=GroupRead, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> GroupRead:
    group = await group_repo.create_group(session, payload)
    await session.commit()
    return GroupRead.model_validate(group)


@router.get("/{group_id}", response_model=GroupRead)
async def get_group(
    group_id: str, session: Annotated[AsyncSession, Depends(get_db_session)]
) -> GroupRead:
    group = await group_repo.get_group(session, group_id)
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return GroupRead.model_validate(group)


@router.get("/{group_id}/lease", response_model=LeaseRead)
async def read_lease(
    group_id: str,
    org_id: Annotated[str, Query()],
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> LeaseRead:
    try:
        state = await lease_service.current_lease(session, org_id, group_id)
    except lease_service.GroupNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _lease_read(state, clock)


@router.post("/{group_id}/lease/claim", response_model=LeaseResponse)
async def claim_lease(
    group_id: str,
    payload: LeaseClaimRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> LeaseResponse:
    try:
        result = await lease_service.claim_lease(
            session,
            payload.org_id,
            group_id,
            payload.user_id,
            payload.user_name,
            clock=clock,
            duration=_duration(payload.duration_minutes),
        )
    except lease_service.GroupNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    await session.commit()
    return _lease_response(result, clock)


@router.post("/{group_id}/lease/renew", response_model=LeaseResponse)
async def renew_lease(
    group_id: str,
    payload: LeaseRenewRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> LeaseResponse:
    try:
        result = await lease_service.renew_lease(
            session,
            payload.org_id,
            group_id,
            payload.user_id,
            clock=clock,
            duration=_duration(payload.duration_minutes),
        )
    except lease_service.GroupNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    await session.commit()
    return _lease_response(result, clock)


@router.post("/{group_id}/lease/release", response_model=LeaseResponse)
async def release_lease(
    group_id: str,
    payload: LeaseReleaseRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> LeaseResponse:
    try:
        result = await lease_service.release_lease(session, payload.org_id, group_id)
    except lease_service.GroupNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    await session.commit()
    return _lease_response(result, clock)
