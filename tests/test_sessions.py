import uuid

import pytest


@pytest.mark.asyncio
async def test_start_session(client):
    response = await client.post("/sessions", json={"session_type": "work"})
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "running"
    assert data["planned_duration_seconds"] == 1500
    assert data["xp_earned"] == 0


@pytest.mark.asyncio
async def test_start_conflict(client):
    await client.post("/sessions", json={})
    response = await client.post("/sessions", json={"session_type": "short_break"})
    assert response.status_code == 409
    assert response.json()["type"] == "ConflictError"


@pytest.mark.asyncio
async def test_start_rejects_bad_input(client):
    response = await client.post("/sessions", json={"planned_duration_seconds": 0})
    assert response.status_code == 422
    assert response.json()["type"] == "ValidationError"

    response = await client.post("/sessions", json={"session_type": "nap"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_active_session_with_timing(client, clock):
    empty = await client.get("/sessions/active")
    assert empty.json() == {"session": None, "timing": None}

    create_resp = await client.post("/sessions", json={"planned_duration_seconds": 600})
    session_id = create_resp.json()["id"]
    clock.advance(200)
    await client.post(f"/sessions/{session_id}/pause")
    clock.advance(100)

    response = await client.get("/sessions/active")
    assert response.status_code == 200
    data = response.json()
    assert data["session"]["status"] == "paused"
    assert data["timing"]["active_seconds"] == 200
    assert data["timing"]["paused_seconds"] == 100
    assert data["timing"]["remaining_seconds"] == 400


@pytest.mark.asyncio
async def test_complete_session(client, clock):
    create_resp = await client.post("/sessions", json={})
    session_id = create_resp.json()["id"]
    clock.advance(1500)

    response = await client.post(f"/sessions/{session_id}/complete", json={"rating": 5})
    assert response.status_code == 200
    data = response.json()
    assert data["session"]["status"] == "completed"
    assert data["session"]["xp_earned"] == 25
    assert data["session"]["rating"] == 5
    assert data["actual_duration_seconds"] == 1500
    assert data["early_completion"] is False
    assert data["summary"]["xp_granted"] == 25
    assert data["summary"]["streak_days"] == 1


@pytest.mark.asyncio
async def test_complete_twice_is_invalid_state(client, clock):
    create_resp = await client.post("/sessions", json={})
    session_id = create_resp.json()["id"]
    await client.post(f"/sessions/{session_id}/complete")

    response = await client.post(f"/sessions/{session_id}/complete")
    assert response.status_code == 409
    assert response.json()["type"] == "InvalidStateError"


@pytest.mark.asyncio
async def test_pause_resume_cancel(client, clock):
    create_resp = await client.post("/sessions", json={})
    session_id = create_resp.json()["id"]

    paused = await client.post(f"/sessions/{session_id}/pause")
    assert paused.json()["status"] == "paused"
    assert len(paused.json()["pause_intervals"]) == 1

    resumed = await client.post(f"/sessions/{session_id}/resume")
    assert resumed.json()["status"] == "running"
    assert resumed.json()["pause_intervals"][0]["end"] is not None

    cancelled = await client.post(f"/sessions/{session_id}/cancel")
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["xp_earned"] == 0


@pytest.mark.asyncio
async def test_nonexistent_session(client):
    response = await client.post(f"/sessions/{uuid.uuid4()}/pause")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_sessions_pagination(client, clock):
    for _ in range(5):
        resp = await client.post("/sessions", json={})
        clock.advance(30)
        await client.post(f"/sessions/{resp.json()['id']}/cancel")

    response = await client.get("/sessions?limit=2&offset=0")
    assert response.status_code == 200
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_suggestion(client, clock):
    response = await client.get("/sessions/suggestion")
    assert response.json()["session_type"] == "work"

    resp = await client.post("/sessions", json={})
    clock.advance(1500)
    await client.post(f"/sessions/{resp.json()['id']}/complete")

    response = await client.get("/sessions/suggestion")
    assert response.json() == {
        "session_type": "short_break",
        "planned_duration_seconds": 300,
        "completed_work_count_in_cycle": 1,
    }


@pytest.mark.asyncio
async def test_distractions(client, clock):
    create_resp = await client.post("/sessions", json={})
    session_id = create_resp.json()["id"]

    response = await client.post(f"/sessions/{session_id}/distractions", json={
        "type": "social_media",
        "note": "Checked feed",
    })
    assert response.status_code == 201
    assert response.json()["type"] == "social_media"

    listed = await client.get(f"/sessions/{session_id}/distractions")
    assert [d["type"] for d in listed.json()] == ["social_media"]

    stats = await client.get("/distractions/stats?days=7")
    assert stats.json()["by_type"] == {"social_media": 1}

    await client.post(f"/sessions/{session_id}/pause")
    rejected = await client.post(f"/sessions/{session_id}/distractions", json={"type": "phone"})
    assert rejected.status_code == 409


@pytest.mark.asyncio
async def test_invalid_distraction_type(client):
    create_resp = await client.post("/sessions", json={})
    session_id = create_resp.json()["id"]
    response = await client.post(f"/sessions/{session_id}/distractions", json={"type": "cat"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_session_stats(client, clock):
    resp = await client.post("/sessions", json={})
    session_id = resp.json()["id"]
    await client.post(f"/sessions/{session_id}/distractions", json={"type": "phone"})
    clock.advance(1500)
    await client.post(f"/sessions/{session_id}/complete", json={"rating": 5})

    response = await client.get("/sessions/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["total_sessions"] == 1
    assert data["completed_sessions"] == 1
    assert data["completion_rate"] == 100
    assert data["focused_seconds"] == 1500
    assert data["average_rating"] == 5
    assert data["total_distractions"] == 1
    assert data["daily_history"] == [{
        "date": "2026-01-05",
        "total_sessions": 1,
        "completed_sessions": 1,
        "completion_rate": 100.0,
        "total_xp": 25,
        "focused_seconds": 1500,
        "distractions": 1,
    }]


@pytest.mark.asyncio
async def test_session_stats_rejects_reversed_range(client):
    response = await client.get("/sessions/stats", params={
        "start_date": "2026-01-07T00:00:00Z",
        "end_date": "2026-01-06T00:00:00Z",
    })
    assert response.status_code == 422
    assert response.json()["type"] == "ValidationError"


@pytest.mark.asyncio
async def test_distractions_by_date_range(client, clock):
    resp = await client.post("/sessions", json={})
    session_id = resp.json()["id"]
    await client.post(f"/sessions/{session_id}/distractions", json={"type": "email"})
    clock.advance(hours=2)
    await client.post(f"/sessions/{session_id}/distractions", json={"type": "noise"})

    response = await client.get("/distractions", params={
        "start_date": "2026-01-05T10:00:00Z",
        "end_date": "2026-01-05T12:00:00Z",
    })
    assert response.status_code == 200
    assert [d["type"] for d in response.json()] == ["noise"]
