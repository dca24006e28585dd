from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roster_scheduler.core.clock import fixed_clock
from roster_scheduler.repositories import group as group_repo
from roster_scheduler.services import lease as lease_service
from roster_scheduler.services.lease import LeaseStatus, decide_claim, decide_renew
from roster_scheduler.services.types import LeaseState

from .factories import ORG_ID, build_group_create

NOW = datetime(2024, 11, 1, 8, 0, tzinfo=timezone.utc)
TWO_HOURS = timedelta(hours=2)


def test_decide_claim_on_unclaimed_and_expired_leases() -> None:
    granted = decide_claim(LeaseState(version=3), "alice", "Alice", NOW, TWO_HOURS)
    assert granted == LeaseState("alice", "Alice", NOW + TWO_HOURS, 3)

    expired = LeaseState("bob", "Bob", NOW - timedelta(seconds=1), 4)
    assert decide_claim(expired, "alice", "Alice", NOW, TWO_HOURS).scheduler_id == "alice"


def test_decide_claim_refuses_while_someone_holds_it() -> None:
    held = LeaseState("bob", "Bob", NOW + timedelta(minutes=5), 1)

    assert decide_claim(held, "alice", "Alice", NOW, TWO_HOURS) is None
    # The holder re-claiming is refused too; renewal is the way to extend.
    assert decide_claim(held, "bob", "Bob", NOW, TWO_HOURS) is None


def test_decide_renew_is_holder_only() -> None:
    held = LeaseState("bob", "Bob", NOW + timedelta(minutes=5), 1)

    assert decide_renew(held, "alice", NOW, TWO_HOURS) is None
    assert decide_renew(held, "bob", NOW, TWO_HOURS).expires_at == NOW + TWO_HOURS


def test_lease_activity_is_strictly_before_expiry() -> None:
    lease = LeaseState("bob", "Bob", NOW, 1)

    assert lease.is_active(NOW - timedelta(seconds=1))
    assert not lease.is_active(NOW)
    assert not lease.is_held_by("bob", NOW)


@pytest.mark.anyio("asyncio")
async def test_lease_lifecycle(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        group = await group_repo.create_group(session, build_group_create())
        await session.commit()

        claim = await lease_service.claim_lease(
            session, ORG_ID, group.id, "alice", "Alice", clock=fixed_clock(NOW), duration=TWO_HOURS
        )
        assert claim.status is LeaseStatus.GRANTED
        assert claim.lease.scheduler_id == "alice"
        assert claim.lease.expires_at == NOW + TWO_HOURS
        assert claim.lease.version == 1

        later = fixed_clock(NOW + timedelta(minutes=30))
        rival = await lease_service.claim_lease(session, ORG_ID, group.id, "bob", "Bob", clock=later)
        assert rival.status is LeaseStatus.DENIED
        assert not rival.granted
        assert await lease_service.current_lease(session, ORG_ID, group.id) == claim.lease

        renew_by_rival = await lease_service.renew_lease(session, ORG_ID, group.id, "bob", clock=later)
        assert renew_by_rival.status is LeaseStatus.DENIED
        assert (await lease_service.current_lease(session, ORG_ID, group.id)).expires_at == NOW + TWO_HOURS

        renewed = await lease_service.renew_lease(
            session, ORG_ID, group.id, "alice", clock=later, duration=TWO_HOURS
        )
        assert renewed.status is LeaseStatus.GRANTED
        assert renewed.lease.expires_at == NOW + timedelta(minutes=150)
        assert await lease_service.is_held_by(session, ORG_ID, group.id, "alice", clock=later)
        assert not await lease_service.is_held_by(session, ORG_ID, group.id, "bob", clock=later)

        after_expiry = fixed_clock(NOW + timedelta(hours=3))
        takeover = await lease_service.claim_lease(
            session, ORG_ID, group.id, "bob", "Bob", clock=after_expiry, duration=TWO_HOURS
        )
        assert takeover.status is LeaseStatus.GRANTED
        assert takeover.lease.scheduler_id == "bob"

        released = await lease_service.release_lease(session, ORG_ID, group.id)
        assert released.status is LeaseStatus.RELEASED
        assert released.lease.scheduler_id is None
        assert released.lease.expires_at is None
        assert released.lease.version == takeover.lease.version + 1


@pytest.mark.anyio("asyncio")
async def test_release_of_unclaimed_group_still_succeeds(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with session_factory() as session:
        group = await group_repo.create_group(session, build_group_create())

        released = await lease_service.release_lease(session, ORG_ID, group.id)

        assert released.granted
        assert released.lease.scheduler_id is None


@pytest.mark.anyio("asyncio")
async def test_stale_version_write_is_rejected(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        group = await group_repo.create_group(session, build_group_create())
        stale = await group_repo.read_lease(session, ORG_ID, group.id)

        first = await group_repo.compare_and_set_lease(
            session, ORG_ID, group.id, LeaseState("alice", "Alice", NOW + TWO_HOURS, stale.version)
        )
        second = await group_repo.compare_and_set_lease(
            session, ORG_ID, group.id, LeaseState("bob", "Bob", NOW + TWO_HOURS, stale.version)
        )

        assert first is not None
        assert second is None
        assert (await group_repo.read_lease(session, ORG_ID, group.id)).scheduler_id == "alice"


@pytest.mark.anyio("asyncio")
async def test_claim_reports_conflict_when_every_write_loses(
    session_factory: async_sessionmaker[AsyncSession], monkeypatch: pytest.MonkeyPatch
) -> None:
    attempts: list[LeaseState] = []

    async def _always_lose(session, org_id, group_id, lease):
        attempts.append(lease)
        return None

    monkeypatch.setattr(group_repo, "compare_and_set_lease", _always_lose)

    async with session_factory() as session:
        group = await group_repo.create_group(session, build_group_create())

        result = await lease_service.claim_lease(
            session, ORG_ID, group.id, "alice", "Alice", clock=fixed_clock(NOW), max_attempts=3
        )

    assert result.status is LeaseStatus.CONFLICT
    assert not result.granted
    assert len(attempts) == 3


@pytest.mark.anyio("asyncio")
async def test_unknown_group_raises(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        with pytest.raises(lease_service.GroupNotFoundError):
            await lease_service.claim_lease(session, ORG_ID, "missing", "alice", "Alice", clock=fixed_clock(NOW))
        with pytest.raises(lease_service.GroupNotFoundError):
            await lease_service.release_lease(session, "other-org", "missing")
