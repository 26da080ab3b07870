"""Tests for the workout session API endpoints."""

from uuid import uuid4

import pytest
from deepdiff import DeepDiff

SESSIONS_URL = "/api/v1/workout-sessions"


@pytest.fixture
def started(client, saved_plan):
    response = client.post(
        SESSIONS_URL, json={"workout_plan_id": str(saved_plan.id), "notes": "Morning"}
    )
    assert response.status_code == 201
    return response.json()


def test_start_session(started, saved_plan):
    assert started["status"] == "IN_PROGRESS"
    assert started["workout_plan"]["id"] == str(saved_plan.id)
    assert [e["name"] for e in started["exercises"]] == [
        "Squat",
        "Bench Press",
        "Deadlift",
    ]
    diff = DeepDiff(
        {
            "can_pause": True,
            "can_resume": False,
            "can_complete": True,
            "can_cancel": True,
            "current_duration": "00:00",
        },
        started["session_info"],
    )
    assert not diff, diff.pretty()


def test_start_second_session(client, started, saved_plan):
    response = client.post(SESSIONS_URL, json={"workout_plan_id": str(saved_plan.id)})
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


def test_start_with_unknown_plan(client):
    response = client.post(SESSIONS_URL, json={"workout_plan_id": str(uuid4())})
    assert response.status_code == 404


def test_full_lifecycle(client, clock, started):
    url = f"{SESSIONS_URL}/{started['id']}"

    clock.advance(seconds=5)
    response = client.post(f"{url}/pause")
    assert response.status_code == 200
    assert response.json()["status"] == "PAUSED"

    response = client.post(f"{url}/pause")
    assert response.status_code == 409
    assert response.json()["kind"] == "invalid_state_transition"

    clock.advance(seconds=10)
    response = client.post(f"{url}/resume")
    assert response.json()["status"] == "IN_PROGRESS"

    clock.advance(seconds=5)
    response = client.post(f"{url}/complete", json={"notes": "Felt strong"})
    assert response.status_code == 200
    body = response.json()
    assert body["total_duration_ms"] == 10_000
    assert body["formatted_duration"] == "00:10"
    assert body["notes"] == "Felt strong"
    assert body["summary"] == {
        "exercises_completed": 0,
        "total_exercises": 3,
        "completion_rate": 0,
    }


def test_complete_without_body_keeps_notes(client, started):
    response = client.post(f"{SESSIONS_URL}/{started['id']}/complete")
    assert response.status_code == 200
    assert response.json()["notes"] == "Morning"


def test_cancel(client, clock, started):
    clock.advance(minutes=1)
    response = client.post(
        f"{SESSIONS_URL}/{started['id']}/cancel", json={"reason": "Phone call"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "CANCELLED"
    assert body["notes"] == "Cancelled: Phone call"
    assert body["formatted_duration"] == "01:00"

    response = client.post(f"{SESSIONS_URL}/{started['id']}/resume")
    assert response.status_code == 409


def test_active_session(client, clock, started):
    clock.advance(minutes=3)
    body = client.get(f"{SESSIONS_URL}/active").json()
    assert body["session"]["id"] == started["id"]
    assert body["session"]["formatted_duration"] == "03:00"

    client.post(f"{SESSIONS_URL}/{started['id']}/cancel")
    assert client.get(f"{SESSIONS_URL}/active").json() == {
        "session": None,
        "session_info": None,
    }


def test_list_sessions(client, clock, started, saved_plan):
    client.post(f"{SESSIONS_URL}/{started['id']}/complete")
    clock.advance(hours=2)
    client.post(SESSIONS_URL, json={"workout_plan_id": str(saved_plan.id)})

    body = client.get(SESSIONS_URL).json()
    assert [s["status"] for s in body["sessions"]] == ["IN_PROGRESS", "COMPLETED"]
    assert body["history_retention_days"] == 30
    assert body["pagination"]["total"] == 2

    completed = client.get(SESSIONS_URL, params={"status": "COMPLETED"}).json()
    assert [s["id"] for s in completed["sessions"]] == [started["id"]]


def test_list_sessions_unknown_status(client):
    assert client.get(SESSIONS_URL, params={"status": "RUNNING"}).status_code == 422


def test_unknown_session(client):
    response = client.post(f"{SESSIONS_URL}/{uuid4()}/pause")
    assert response.status_code == 404
