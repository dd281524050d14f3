"""End-to-end tests over the HTTP adapter: status codes, error bodies and
header-based auth.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING

import pytest

from fieldops.models.enums import Role
from tests.factories import create_task, create_user, create_vehicle, headers_for, utc

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession


def _monday_after(days: int) -> date:
    """First Monday at least ``days`` ahead, so notice rules never fire."""
    day = date.today() + timedelta(days=days)
    return day + timedelta(days=(7 - day.weekday()) % 7)


START = _monday_after(30)


@pytest.fixture
async def people(db_session: AsyncSession) -> dict[str, uuid.UUID]:
    leader = await create_user(db_session, "Leader", Role.LEADER)
    tech = await create_user(db_session, "Tech", Role.TECH, supervisor_id=leader)
    peer = await create_user(db_session, "Peer", Role.TECH, supervisor_id=leader)
    dispatcher = await create_user(db_session, "Dispatch", Role.CUSTOMER_SERVICE)
    return {"leader": leader, "tech": tech, "peer": peer, "dispatcher": dispatcher}


async def _submit(client: AsyncClient, user_id: uuid.UUID, **overrides: object) -> dict:
    body = {
        "category": "SICK",
        "start_date": START.isoformat(),
        "end_date": (START + timedelta(days=1)).isoformat(),
    }
    body.update(overrides)
    response = await client.post("/leaves", json=body, headers=headers_for(user_id, Role.TECH))
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------


async def test_submit_and_approve_flow(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    submitted = await _submit(async_client, people["tech"])
    leave_id = submitted["leave"]["id"]
    assert submitted["leave"]["status"] == "PENDING"
    assert submitted["leave"]["total_minutes"] == 960

    response = await async_client.post(
        f"/leaves/{leave_id}/approve",
        json={"comment": "fine"},
        headers=headers_for(people["leader"], Role.LEADER),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["leave"]["status"] == "APPROVED"
    assert data["used_minutes"] == 960
    assert data["leave"]["approval_chain"][0]["level"] == 1

    detail = await async_client.get(f"/leaves/{leave_id}", headers=headers_for(people["tech"], Role.TECH))
    assert detail.json()["approval_chain"][0]["comment"] == "fine"


async def test_reapprove_returns_conflict(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    leave_id = (await _submit(async_client, people["tech"]))["leave"]["id"]
    leader_headers = headers_for(people["leader"], Role.LEADER)
    await async_client.post(f"/leaves/{leave_id}/approve", headers=leader_headers)

    response = await async_client.post(f"/leaves/{leave_id}/approve", headers=leader_headers)

    assert response.status_code == 409
    data = response.json()
    assert data["error"] == "LeaveStateError"
    assert data["data"] == {"status": "APPROVED"}


async def test_peer_approval_is_forbidden(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    leave_id = (await _submit(async_client, people["tech"]))["leave"]["id"]

    response = await async_client.post(f"/leaves/{leave_id}/approve", headers=headers_for(people["peer"], Role.TECH))

    assert response.status_code == 403
    assert response.json()["error"] == "AuthorizationError"


async def test_reject_and_cancel(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    first = (await _submit(async_client, people["tech"]))["leave"]["id"]
    second = (
        await _submit(
            async_client,
            people["tech"],
            start_date=(START + timedelta(days=7)).isoformat(),
            end_date=(START + timedelta(days=7)).isoformat(),
        )
    )["leave"]["id"]

    rejected = await async_client.post(
        f"/leaves/{first}/reject", json={"comment": "no cover"}, headers=headers_for(people["leader"], Role.LEADER)
    )
    cancelled = await async_client.post(f"/leaves/{second}/cancel", headers=headers_for(people["tech"], Role.TECH))

    assert rejected.json()["leave"]["rejection_reason"] == "no cover"
    assert cancelled.json()["status"] == "CANCELLED"


async def test_list_leaves_scoped_to_tech(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    await _submit(async_client, people["tech"])
    await _submit(async_client, people["peer"])

    own = await async_client.get("/leaves", headers=headers_for(people["tech"], Role.TECH))
    filtered = await async_client.get(
        "/leaves", params={"status": "APPROVED"}, headers=headers_for(people["leader"], Role.LEADER)
    )

    assert own.json()["total"] == 1
    assert filtered.json()["total"] == 0


async def test_submit_end_before_start_is_unprocessable(
    async_client: AsyncClient, people: dict[str, uuid.UUID]
) -> None:
    response = await async_client.post(
        "/leaves",
        json={"category": "SICK", "start_date": "2026-01-09", "end_date": "2026-01-05"},
        headers=headers_for(people["tech"], Role.TECH),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


async def test_submit_short_partial_day_is_bad_request(
    async_client: AsyncClient, people: dict[str, uuid.UUID]
) -> None:
    response = await async_client.post(
        "/leaves",
        json={
            "category": "PERSONAL",
            "start_date": START.isoformat(),
            "end_date": START.isoformat(),
            "is_full_day": False,
            "start_time": "09:00",
            "end_time": "09:20",
        },
        headers=headers_for(people["tech"], Role.TECH),
    )
    assert response.status_code == 400
    assert "Minimum leave duration" in response.json()["detail"]


async def test_validate_endpoint(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    response = await async_client.get(
        "/leaves/validate",
        params={
            "category": "VACATION",
            "start_date": START.isoformat(),
            "is_full_day": "false",
            "start_time": "09:00",
            "end_time": "11:00",
        },
        headers=headers_for(people["tech"], Role.TECH),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["total_minutes"] == 120
    assert data["display"] == "2 hours"
    assert any("FULL_DAY" in error for error in data["errors"])


async def test_validate_rejects_reversed_dates(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    response = await async_client.get(
        "/leaves/validate",
        params={"category": "SICK", "start_date": "2026-01-09", "end_date": "2026-01-05"},
        headers=headers_for(people["tech"], Role.TECH),
    )
    assert response.status_code == 400


async def test_missing_user_header_is_rejected(async_client: AsyncClient) -> None:
    response = await async_client.get("/leaves")
    assert response.status_code == 422


async def test_unknown_role_is_bad_request(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    response = await async_client.get("/leaves", headers={"X-User-Id": str(people["tech"]), "X-Role": "janitor"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown role: janitor"


async def test_role_header_is_case_insensitive(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    response = await async_client.get("/leaves", headers={"X-User-Id": str(people["tech"]), "X-Role": "tech"})
    assert response.status_code == 200


async def test_unknown_leave_is_not_found(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    response = await async_client.get(f"/leaves/{uuid.uuid4()}", headers=headers_for(people["tech"], Role.TECH))
    assert response.status_code == 404
    assert response.json()["detail"] == "Leave request not found"


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------


async def test_leave_balance_for_self_and_supervisor(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    await _submit(async_client, people["tech"])
    url = f"/users/{people['tech']}/leave-balance"

    own = await async_client.get(url, params={"year": START.year}, headers=headers_for(people["tech"], Role.TECH))
    leader_headers = headers_for(people["leader"], Role.LEADER)
    supervisor = await async_client.get(url, params={"year": START.year}, headers=leader_headers)
    peer = await async_client.get(url, headers=headers_for(people["peer"], Role.TECH))

    assert own.status_code == 200
    assert supervisor.status_code == 200
    assert peer.status_code == 403
    summary = {item["category"]: item for item in own.json()["summary"]}
    assert summary["SICK"]["pending_minutes"] == 960
    assert summary["SICK"]["total_days"] == 30


# ---------------------------------------------------------------------------
# Conflicts and tasks
# ---------------------------------------------------------------------------


async def test_conflict_check_endpoint(
    async_client: AsyncClient, db_session: AsyncSession, people: dict[str, uuid.UUID]
) -> None:
    await create_task(db_session, "J-1", utc(2026, 1, 10), utc(2026, 1, 15), [people["tech"]])

    response = await async_client.post(
        "/conflicts/check",
        json={
            "start_at": utc(2026, 1, 15).isoformat(),
            "end_at": utc(2026, 1, 20).isoformat(),
            "assignee_ids": [str(people["tech"])],
        },
        headers=headers_for(people["dispatcher"], Role.CUSTOMER_SERVICE),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["has_conflict"] is True
    assert data["user_conflicts"][0]["conflicting_tasks"][0]["kind"] == "TASK"


async def test_conflict_check_rejects_reversed_window(
    async_client: AsyncClient, people: dict[str, uuid.UUID]
) -> None:
    response = await async_client.post(
        "/conflicts/check",
        json={"start_at": utc(2026, 1, 20).isoformat(), "end_at": utc(2026, 1, 15).isoformat()},
        headers=headers_for(people["dispatcher"], Role.CUSTOMER_SERVICE),
    )
    assert response.status_code == 422


async def test_assign_conflict_returns_report(
    async_client: AsyncClient, db_session: AsyncSession, people: dict[str, uuid.UUID]
) -> None:
    await create_task(db_session, "J-1", utc(2026, 1, 10), utc(2026, 1, 15), [people["tech"]])
    task_id = await create_task(db_session, "J-2", utc(2026, 1, 15), utc(2026, 1, 16))

    response = await async_client.post(
        f"/tasks/{task_id}/assign",
        json={"assignee_ids": [str(people["tech"])]},
        headers=headers_for(people["dispatcher"], Role.CUSTOMER_SERVICE),
    )

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "SchedulingConflictError"
    assert body["data"]["has_conflict"] is True
    assert body["data"]["user_conflicts"][0]["user_id"] == str(people["tech"])


async def test_assign_success_with_vehicle_warning(
    async_client: AsyncClient, db_session: AsyncSession, people: dict[str, uuid.UUID]
) -> None:
    vehicle_id = await create_vehicle(db_session, "VAN-9")
    await create_task(db_session, "J-1", utc(2026, 1, 10), utc(2026, 1, 15), [people["peer"]], vehicle_id=vehicle_id)
    task_id = await create_task(db_session, "J-2", utc(2026, 1, 12), utc(2026, 1, 13))
    dispatcher = headers_for(people["dispatcher"], Role.CUSTOMER_SERVICE)

    response = await async_client.post(
        f"/tasks/{task_id}/assign",
        json={"assignee_ids": [str(people["tech"])], "vehicle_id": str(vehicle_id)},
        headers=dispatcher,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["task"]["assignees"][0]["is_lead"] is True
    assert data["warnings"]["vehicle_conflicts"][0]["license_plate"] == "VAN-9"

    task = await async_client.get(f"/tasks/{task_id}", headers=dispatcher)
    assert task.json()["vehicle_id"] == str(vehicle_id)


async def test_tech_cannot_assign_over_http(
    async_client: AsyncClient, db_session: AsyncSession, people: dict[str, uuid.UUID]
) -> None:
    task_id = await create_task(db_session, "J-2", utc(2026, 1, 15), utc(2026, 1, 16))

    response = await async_client.post(
        f"/tasks/{task_id}/assign", json={"assignee_ids": []}, headers=headers_for(people["tech"], Role.TECH)
    )

    assert response.status_code == 403


async def test_request_id_header(async_client: AsyncClient, people: dict[str, uuid.UUID]) -> None:
    response = await async_client.get(
        "/leaves", headers={**headers_for(people["tech"], Role.TECH), "X-Request-Id": "abc-123"}
    )
    assert response.headers["X-Request-Id"] == "abc-123"
