import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roster_scheduler.repositories import resource as resource_repo
from roster_scheduler.schemas.resource import ShiftRequestUpdate, WorkerUpdate

from .factories import ORG_ID, build_request_create, build_shift_type_create, build_worker_create


@pytest.mark.anyio("asyncio")
async def test_worker_crud(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        created = await resource_repo.create_worker(session, build_worker_create(name="Dana"))
        await session.commit()

        assert created.id is not None
        workers = await resource_repo.list_workers(session, ORG_ID)
        assert [worker.name for worker in workers] == ["Dana"]

        updated = await resource_repo.update_worker(session, created, WorkerUpdate(employee_id="E-777"))
        await session.commit()
        assert updated.employee_id == "E-777"
        assert updated.name == "Dana"

        await resource_repo.delete_worker(session, updated)
        await session.commit()
        assert await resource_repo.list_workers(session, ORG_ID) == []


@pytest.mark.anyio("asyncio")
async def test_shift_types_for_group_include_org_wide(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        await resource_repo.create_shift_type(session, build_shift_type_create(name="Off", short_code="OFF"))
        await resource_repo.create_shift_type(session, build_shift_type_create(name="A-only", group_id="ga"))
        await resource_repo.create_shift_type(session, build_shift_type_create(name="B-only", group_id="gb"))
        await session.commit()

        names = [shift.name for shift in await resource_repo.list_shift_types(session, ORG_ID, group_id="ga")]
        assert names == ["A-only", "Off"]


@pytest.mark.anyio("asyncio")
async def test_requests_filtered_by_month_and_worker(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        first = await resource_repo.create_request(session, build_request_create(worker_id="w1", date="2024-11-03"))
        await resource_repo.create_request(session, build_request_create(worker_id="w2", date="2024-11-04"))
        await resource_repo.create_request(session, build_request_create(worker_id="w1", date="2024-12-01"))
        await session.commit()

        november = await resource_repo.list_requests(session, ORG_ID, month="2024-11")
        assert [request.date for request in november] == ["2024-11-03", "2024-11-04"]
        mine = await resource_repo.list_requests(session, ORG_ID, worker_id="w1")
        assert len(mine) == 2

        updated = await resource_repo.update_request(
            session, first, ShiftRequestUpdate(status="rejected", details={"reason": "short staffed"})
        )
        assert updated.status == "rejected"
        assert updated.details == {"reason": "short staffed"}


@pytest.mark.anyio("asyncio")
async def test_find_off_shift_type_spans_group_scopes(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        off = await resource_repo.create_shift_type(
            session, build_shift_type_create(name="Off", short_code="OFF", group_id="ga")
        )
        await session.commit()

        found = await resource_repo.find_off_shift_type(session, ORG_ID)
        assert found is not None and found.id == off.id
        assert await resource_repo.find_off_shift_type(session, ORG_ID, exclude_id=off.id) is None
        assert await resource_repo.find_off_shift_type(session, "org-2") is None
