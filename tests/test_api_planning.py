import pytest
from httpx import AsyncClient

from .factories import ORG_ID, build_group_create, build_shift_type_create, build_worker_create

MONTH = "2024-11"


async def _seed_group(api_client: AsyncClient, *, with_off: bool = True) -> dict[str, str]:
    group = await api_client.post("/api/groups/", json=build_group_create().model_dump())
    group_id = group.json()["id"]

    ids = {"group": group_id}
    if with_off:
        off = await api_client.post(
            "/api/resources/shift-types",
            json=build_shift_type_create(name="Off", short_code="OFF", start_time="00:00", end_time="00:00").model_dump(),
        )
        ids["off"] = off.json()["id"]
    day = await api_client.post(
        "/api/resources/shift-types", json=build_shift_type_create(group_id=group_id).model_dump()
    )
    ids["day"] = day.json()["id"]

    for name in ("Alice", "Bob", "Carol"):
        worker = await api_client.post(
            "/api/resources/workers", json=build_worker_create(name=name, group_id=group_id).model_dump()
        )
        ids[name] = worker.json()["id"]
    return ids


async def _claim(api_client: AsyncClient, group_id: str, user_id: str = "planner") -> None:
    response = await api_client.post(
        f"/api/groups/{group_id}/lease/claim",
        json={"org_id": ORG_ID, "user_id": user_id, "user_name": "Planner"},
    )
    assert response.json()["granted"] is True


def _generate_payload(group_id: str, **overrides) -> dict:
    payload = {"org_id": ORG_ID, "group_id": group_id, "month": MONTH, "requested_by": "planner", "seed": 11}
    payload.update(overrides)
    return payload


@pytest.mark.anyio("asyncio")
async def test_manpower_plan_put_get_and_apply_defaults(api_client: AsyncClient) -> None:
    url = f"/api/planning/manpower/{ORG_ID}/g1/{MONTH}"

    assert (await api_client.get(url)).status_code == 404
    assert (await api_client.post(f"{url}/apply-defaults", json={})).status_code == 404

    saved = await api_client.put(
        url,
        json={"requirement_defaults": {"weekday": {"day": 2}, "saturday": {"day": 1}, "holiday": {}}},
    )
    assert saved.status_code == 200
    assert saved.json()["daily_requirements"] == {}

    expanded = await api_client.post(f"{url}/apply-defaults", json={"holidays": {"2024-11-11": "Memorial"}})
    assert expanded.status_code == 200
    daily = expanded.json()["daily_requirements"]
    assert len(daily) == 30
    assert daily["01"]["requirements"] == {"day": 2}
    assert daily["02"]["requirements"] == {"day": 1}
    assert daily["03"]["requirements"] == {}
    assert daily["11"]["is_holiday"] is True
    assert daily["11"]["holiday_name"] == "Memorial"

    fetched = await api_client.get(url)
    assert fetched.json()["daily_requirements"]["01"]["date"] == "2024-11-01"


@pytest.mark.anyio("asyncio")
async def test_generation_requires_the_lease(api_client: AsyncClient) -> None:
    ids = await _seed_group(api_client)

    response = await api_client.post("/api/planning/generate", json=_generate_payload(ids["group"]))
    assert response.status_code == 409

    await _claim(api_client, ids["group"], user_id="someone-else")
    response = await api_client.post("/api/planning/generate", json=_generate_payload(ids["group"]))
    assert response.status_code == 409

    unknown = await api_client.post("/api/planning/generate", json=_generate_payload("missing"))
    assert unknown.status_code == 404


@pytest.mark.anyio("asyncio")
async def test_generate_persists_schedule_and_assignments(api_client: AsyncClient) -> None:
    ids = await _seed_group(api_client)
    group_id = ids["group"]
    await api_client.put(
        f"/api/planning/manpower/{ORG_ID}/{group_id}/{MONTH}",
        json={"daily_requirements": {"05": {"date": "2024-11-05", "requirements": {ids["day"]: 3}}}},
    )
    await api_client.post(
        "/api/resources/requests",
        json={
            "org_id": ORG_ID,
            "worker_id": ids["Alice"],
            "date": "2024-11-05",
            "type": "leave",
            "status": "approved",
        },
    )
    await _claim(api_client, group_id)

    response = await api_client.post("/api/planning/generate", json=_generate_payload(group_id))
    assert response.status_code == 201
    body = response.json()
    schedule = body["schedule"]
    assert schedule["status"] == "draft"
    assert schedule["generation_method"] == "smart"
    assert len(body["assignments"]) == 3

    by_worker = {item["worker_id"]: item["daily_shifts"] for item in body["assignments"]}
    assert by_worker[ids["Alice"]]["05"] == ids["off"]
    assert by_worker[ids["Bob"]]["05"] == ids["day"]
    assert all(len(days) == 30 for days in by_worker.values())

    listed = await api_client.get(
        "/api/planning/schedules", params={"org_id": ORG_ID, "group_id": group_id, "month": MONTH}
    )
    assert [item["id"] for item in listed.json()] == [schedule["id"]]

    assignments = await api_client.get(f"/api/planning/schedules/{schedule['id']}/assignments")
    assert len(assignments.json()) == 3

    replay = await api_client.post("/api/planning/generate", json=_generate_payload(group_id))
    assert replay.status_code == 201
    replayed = replay.json()
    assert replayed["schedule"]["id"] != schedule["id"]
    assert {item["worker_id"]: item["daily_shifts"] for item in replayed["assignments"]} == by_worker

    not_holder = await api_client.delete(
        f"/api/planning/schedules/{schedule['id']}", params={"editor_id": "intruder"}
    )
    assert not_holder.status_code == 409
    assert (await api_client.get(f"/api/planning/schedules/{schedule['id']}")).status_code == 200

    deleted = await api_client.delete(
        f"/api/planning/schedules/{schedule['id']}", params={"editor_id": "planner"}
    )
    assert deleted.status_code == 204
    assert (await api_client.get(f"/api/planning/schedules/{schedule['id']}")).status_code == 404


@pytest.mark.anyio("asyncio")
async def test_generate_without_off_shift_stores_error_schedule(api_client: AsyncClient) -> None:
    ids = await _seed_group(api_client, with_off=False)
    await _claim(api_client, ids["group"])

    response = await api_client.post("/api/planning/generate", json=_generate_payload(ids["group"]))

    assert response.status_code == 201
    body = response.json()
    assert body["score"] == -9999
    assert body["schedule"]["status"] == "error"
    assert body["assignments"] == []
    assert len(body["violations"]) == 1

    stored = await api_client.get(f"/api/planning/schedules/{body['schedule']['id']}")
    assert stored.json()["total_score"] == -9999


@pytest.mark.anyio("asyncio")
async def test_assignment_edit_rescores_schedule(api_client: AsyncClient) -> None:
    ids = await _seed_group(api_client)
    group_id = ids["group"]
    await api_client.post(
        "/api/system/rules/templates/template-hnp-consecutive-work-6/enable",
        json={"org_id": ORG_ID, "group_id": group_id},
    )
    await _claim(api_client, group_id)

    generated = await api_client.post("/api/planning/generate", json=_generate_payload(group_id, seed=3))
    schedule_id = generated.json()["schedule"]["id"]
    alice = next(item for item in generated.json()["assignments"] if item["worker_id"] == ids["Alice"])

    every_day = {f"{day:02d}": ids["day"] for day in range(1, 31)}
    denied = await api_client.put(
        f"/api/planning/schedules/{schedule_id}/assignments/{alice['id']}",
        json={"editor_id": "intruder", "daily_shifts": every_day},
    )
    assert denied.status_code == 409

    edited = await api_client.put(
        f"/api/planning/schedules/{schedule_id}/assignments/{alice['id']}",
        json={"editor_id": "planner", "daily_shifts": every_day},
    )
    assert edited.status_code == 200
    assert edited.json()["daily_shifts"] == every_day

    schedule = (await api_client.get(f"/api/planning/schedules/{schedule_id}")).json()
    assert schedule["total_score"] <= -1000
    assert any("Alice" in message and "30" in message for message in schedule["violated_rules"])

    published = await api_client.patch(
        f"/api/planning/schedules/{schedule_id}", json={"editor_id": "planner", "status": "published"}
    )
    assert published.status_code == 200
    assert published.json()["status"] == "published"

    missing = await api_client.put(
        f"/api/planning/schedules/{schedule_id}/assignments/missing",
        json={"editor_id": "planner", "daily_shifts": {}},
    )
    assert missing.status_code == 404


@pytest.mark.anyio("asyncio")
async def test_same_seed_in_two_groups_gives_separate_schedules(api_client: AsyncClient) -> None:
    first = await _seed_group(api_client)
    second = await _seed_group(api_client, with_off=False)
    await _claim(api_client, first["group"])
    await _claim(api_client, second["group"])

    responses = [
        await api_client.post("/api/planning/generate", json=_generate_payload(ids["group"], seed=11))
        for ids in (first, second)
    ]

    assert [response.status_code for response in responses] == [201, 201]
    schedule_ids = {response.json()["schedule"]["id"] for response in responses}
    assert len(schedule_ids) == 2
    assignment_ids = [item["id"] for response in responses for item in response.json()["assignments"]]
    assert len(set(assignment_ids)) == 6
    assert responses[1].json()["schedule"]["group_id"] == second["group"]


@pytest.mark.anyio("asyncio")
async def test_assignment_edit_rejects_unknown_days_and_shifts(api_client: AsyncClient) -> None:
    ids = await _seed_group(api_client)
    await _claim(api_client, ids["group"])
    generated = await api_client.post("/api/planning/generate", json=_generate_payload(ids["group"]))
    schedule_id = generated.json()["schedule"]["id"]
    assignment = generated.json()["assignments"][0]
    url = f"/api/planning/schedules/{schedule_id}/assignments/{assignment['id']}"

    for daily_shifts in ({"1": ids["day"]}, {"31": ids["day"]}, {"01": "no-such-shift"}):
        response = await api_client.put(url, json={"editor_id": "planner", "daily_shifts": daily_shifts})
        assert response.status_code == 422

    stored = await api_client.get(f"/api/planning/schedules/{schedule_id}/assignments")
    assert next(item for item in stored.json() if item["id"] == assignment["id"]) == assignment
