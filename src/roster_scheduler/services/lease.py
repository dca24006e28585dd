"""Scheduler lease: an expiring, advisory claim on editing a group's schedule.

Every write is a compare-and-set on the group's lease version, so two actors
can never both be granted the lease. Expired leases are simply claimable; no
sweeper is involved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from roster_scheduler.core.clock import Clock, utc_now
from roster_scheduler.core.config import get_settings
from roster_scheduler.repositories import group as group_repo
from roster_scheduler.services.types import LeaseState

logger = logging.getLogger(__name__)


class LeaseStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    CONFLICT = "conflict"
    RELEASED = "released"


@dataclass(frozen=True)
class LeaseResult:
    status: LeaseStatus
    lease: LeaseState

    @property
    def granted(self) -> bool:
        return self.status in (LeaseStatus.GRANTED, LeaseStatus.RELEASED)


class GroupNotFoundError(LookupError):
    def __init__(self, org_id: str, group_id: str) -> None:
        super().__init__(f"Group {group_id} not found in organization {org_id}")
        self.org_id = org_id
        self.group_id = group_id


def decide_claim(
    state: LeaseState, user_id: str, user_name: str, now: datetime, duration: timedelta
) -> Optional[LeaseState]:
    """Return the lease to write for a claim, or None when it must be refused."""
    if state.scheduler_id is not None and state.is_active(now):
        return None
    return LeaseState(scheduler_id=user_id, scheduler_name=user_name, expires_at=now + duration, version=state.version)


def decide_renew(state: LeaseState, user_id: str, now: datetime, duration: timedelta) -> Optional[LeaseState]:
    if state.scheduler_id != user_id:
        return None
    return LeaseState(
        scheduler_id=state.scheduler_id,
        scheduler_name=state.scheduler_name,
        expires_at=now + duration,
        version=state.version,
    )


def _lease_duration(duration: Optional[timedelta]) -> timedelta:
    if duration is not None:
        return duration
    return timedelta(minutes=get_settings().lease_duration_minutes)


def _attempts(max_attempts: Optional[int]) -> int:
    return max(1, max_attempts if max_attempts is not None else get_settings().lease_max_attempts)


async def current_lease(session: AsyncSession, org_id: str, group_id: str) -> LeaseState:
    state = await group_repo.read_lease(session, org_id, group_id)
    if state is None:
        raise GroupNotFoundError(org_id, group_id)
    return state


async def claim_lease(
    session: AsyncSession,
    org_id: str,
    group_id: str,
    user_id: str,
    user_name: str,
    *,
    clock: Clock = utc_now,
    duration: Optional[timedelta] = None,
    max_attempts: Optional[int] = None,
) -> LeaseResult:
    duration = _lease_duration(duration)
    state = LeaseState()
    for _ in range(_attempts(max_attempts)):
        state = await current_lease(session, org_id, group_id)
        proposed = decide_claim(state, user_id, user_name, clock(), duration)
        if proposed is None:
            logger.info("Lease on group %s denied to %s: held by %s", group_id, user_id, state.scheduler_id)
            return LeaseResult(LeaseStatus.DENIED, state)
        written = await group_repo.compare_and_set_lease(session, org_id, group_id, proposed)
        if written is not None:
            logger.info("Lease on group %s granted to %s until %s", group_id, user_id, written.expires_at)
            return LeaseResult(LeaseStatus.GRANTED, written)
    logger.warning("Lease claim on group %s by %s lost every compare-and-set attempt", group_id, user_id)
    return LeaseResult(LeaseStatus.CONFLICT, state)


async def renew_lease(
    session: AsyncSession,
    org_id: str,
    group_id: str,
    user_id: str,
    *,
    clock: Clock = utc_now,
    duration: Optional[timedelta] = None,
    max_attempts: Optional[int] = None,
) -> LeaseResult:
    duration = _lease_duration(duration)
    state = LeaseState()
    for _ in range(_attempts(max_attempts)):
        state = await current_lease(session, org_id, group_id)
        proposed = decide_renew(state, user_id, clock(), duration)
        if proposed is None:
            logger.info("Lease renewal on group %s denied to non-holder %s", group_id, user_id)
            return LeaseResult(LeaseStatus.DENIED, state)
        written = await group_repo.compare_and_set_lease(session, org_id, group_id, proposed)
        if written is not None:
            return LeaseResult(LeaseStatus.GRANTED, written)
    logger.warning("Lease renewal on group %s by %s lost every compare-and-set attempt", group_id, user_id)
    return LeaseResult(LeaseStatus.CONFLICT, state)


async def release_lease(session: AsyncSession, org_id: str, group_id: str) -> LeaseResult:
    cleared = await group_repo.clear_lease(session, org_id, group_id)
    if cleared is None:
        raise GroupNotFoundError(org_id, group_id)
    logger.info("Lease on group %s released", group_id)
    return LeaseResult(LeaseStatus.RELEASED, cleared)


async def is_held_by(
    session: AsyncSession, org_id: str, group_id: str, user_id: str, *, clock: Clock = utc_now
) -> bool:
    state = await current_lease(session, org_id, group_id)
    return state.is_held_by(user_id, clock())
