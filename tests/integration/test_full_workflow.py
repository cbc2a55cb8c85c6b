"""End-to-end integration test covering a focused week of work."""
import pytest


async def _focus_block(client, clock, pause_after: int = 0, pause_for: int = 0) -> dict:
    create_resp = await client.post("/sessions", json={"session_type": "work"})
    assert create_resp.status_code == 201
    session_id = create_resp.json()["id"]

    if pause_for:
        clock.advance(pause_after)
        assert (await client.post(f"/sessions/{session_id}/pause")).status_code == 200
        clock.advance(pause_for)
        assert (await client.post(f"/sessions/{session_id}/resume")).status_code == 200
        clock.advance(1500 - pause_after)
    else:
        clock.advance(1500)

    response = await client.post(f"/sessions/{session_id}/complete", json={"rating": 4})
    assert response.status_code == 200
    return response.json()


async def _complete_new_task(client, title: str) -> dict:
    create_resp = await client.post("/tasks", json={"title": title})
    assert create_resp.status_code == 201
    response = await client.post(f"/tasks/{create_resp.json()['id']}/complete")
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_full_workflow(client, clock, published_events):
    """Sessions and tasks over three days -> milestone -> weekly goal -> levels."""

    # Day 1: a paused and resumed work session still counts its active time only
    day_one = await _focus_block(client, clock, pause_after=600, pause_for=300)
    assert day_one["actual_duration_seconds"] == 1500
    assert day_one["early_completion"] is False
    assert day_one["summary"]["xp_granted"] == 25
    assert day_one["summary"]["streak_days"] == 1
    assert day_one["session"]["completed_work_count_in_cycle"] == 1

    for title in ("Outline chapter", "Review notes", "Email editor"):
        result = await _complete_new_task(client, title)
        assert result["summary"]["xp_granted"] == 10

    progress = (await client.get("/rewards/progress")).json()
    assert progress["xp_total"] == 55
    assert progress["level"] == 1
    assert progress["current_streak_days"] == 1
    assert progress["completed_tasks"] == 3
    assert progress["completed_sessions"] == 1
    assert progress["week_start_date"] == "2026-01-04"

    # Day 2
    clock.advance(days=1)
    day_two = await _focus_block(client, clock)
    assert day_two["summary"]["streak_days"] == 2

    # Day 3: base XP crosses level 2, the 3-day milestone pays out,
    # and the level-up bonus carries the total into level 3
    clock.advance(days=1)
    day_three = await _focus_block(client, clock)
    summary = day_three["summary"]
    assert summary["streak_days"] == 3
    assert summary["streak_reward_granted"] == 50
    assert summary["level_up_bonus_granted"] == 100
    assert summary["xp_granted"] == 175
    assert summary["new_level"] == 3

    # Two more tasks finish the weekly goal
    await _complete_new_task(client, "Fix references")
    final = await _complete_new_task(client, "Submit draft")
    assert final["summary"]["weekly_reward_granted"] == 100
    assert final["summary"]["level_up_bonus_granted"] == 100
    assert final["summary"]["new_level"] == 5
    assert final["summary"]["weekly_progress_percent"] == 100

    progress = (await client.get("/rewards/progress")).json()
    assert progress["xp_total"] == 475
    assert progress["level"] == 5
    assert progress["current_streak_days"] == 3
    assert progress["longest_streak_days"] == 3
    assert progress["next_milestone_days"] == 7
    assert progress["weekly_goal_met"] is True
    assert progress["completed_tasks"] == 5
    assert progress["completed_sessions"] == 3

    types = [event.type for event in published_events]
    assert types.count("session.completed") == 3
    assert types.count("task.completed") == 5
    assert types.count("streak.milestone") == 1
    assert types.count("weekly_goal.met") == 1
    assert types.count("progression.level_up") == 2

    # A fourth work session in the cycle suggests the long break
    await _focus_block(client, clock)
    suggestion = (await client.get("/sessions/suggestion")).json()
    assert suggestion["session_type"] == "long_break"
    assert suggestion["planned_duration_seconds"] == 900
