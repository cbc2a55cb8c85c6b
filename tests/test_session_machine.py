from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from focusflow.engine import session_machine as machine
from focusflow.errors import InvalidStateError, ValidationError

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def _session(**overrides):
    fields = dict(
        status="running",
        session_type="work",
        start_time=T0,
        end_time=None,
        planned_duration_seconds=1500,
        pause_intervals=[],
        completed_work_count_in_cycle=0,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.parametrize("seconds", [0, -1, 7201, 2.5, True])
def test_invalid_planned_durations(seconds):
    with pytest.raises(ValidationError):
        machine.validate_planned_duration(seconds, 7200)


def test_unknown_session_type():
    with pytest.raises(ValidationError):
        machine.validate_session_type("nap")


@pytest.mark.parametrize(
    "status,action",
    [
        ("paused", "pause"),
        ("running", "resume"),
        ("completed", "cancel"),
        ("cancelled", "complete"),
        ("paused", "distract"),
        ("idle", "pause"),
    ],
)
def test_require_status_rejects_invalid_transitions(status, action):
    with pytest.raises(InvalidStateError):
        machine.require_status(_session(status=status), action)


def test_timing_excludes_paused_intervals():
    intervals = machine.open_pause([], T0 + timedelta(seconds=300))
    intervals = machine.close_pause(intervals, T0 + timedelta(seconds=420))
    intervals = machine.open_pause(intervals, T0 + timedelta(seconds=600))
    session = _session(pause_intervals=intervals)

    timing = machine.session_timing(session, T0 + timedelta(seconds=900))

    assert timing.elapsed_seconds == 900
    assert timing.paused_seconds == 120 + 300
    assert timing.active_seconds == 480
    assert timing.remaining_seconds == 1020
    assert not timing.overdue


def test_timing_tolerates_long_overdue_sessions():
    timing = machine.session_timing(_session(), T0 + timedelta(days=3))
    assert timing.remaining_seconds == 0
    assert timing.overdue


def test_close_pause_without_open_interval_is_noop():
    intervals = [{"start": T0.isoformat(), "end": (T0 + timedelta(seconds=5)).isoformat()}]
    assert machine.close_pause(intervals, T0 + timedelta(seconds=60)) == intervals


def test_suggestion_cycle():
    assert machine.suggest_next_type(None, 4) == "work"
    assert machine.suggest_next_type(_session(completed_work_count_in_cycle=1), 4) == "short_break"
    assert machine.suggest_next_type(_session(completed_work_count_in_cycle=4), 4) == "long_break"
    assert machine.suggest_next_type(_session(session_type="short_break"), 4) == "work"


def test_cycle_count_resets_after_long_break():
    after_four = _session(completed_work_count_in_cycle=4)
    assert machine.next_cycle_count(after_four, "work") == 5
    assert machine.next_cycle_count(after_four, "short_break") == 4
    long_break = _session(session_type="long_break", completed_work_count_in_cycle=0)
    assert machine.next_cycle_count(long_break, "work") == 1
