"""Integration tests for the task and analytics HTTP endpoints."""
import uuid
from datetime import datetime, timedelta

import pytest


def _json_payload(test_club, test_objective, **overrides):
    payload = {
        "title": "Book the hall",
        "club_id": str(test_club.id),
        "objective_id": str(test_objective.id),
        "due_date": (datetime.utcnow() + timedelta(days=3)).isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_and_get_task(client, test_club, test_objective, test_user):
    """Test creating a task via API and reading it back."""
    response = await client.post(
        "/api/v1/tasks",
        headers={"X-User-Id": str(test_user.id)},
        json=_json_payload(
            test_club,
            test_objective,
            checklist=[{"text": "Call venue"}],
            assignees=[{"user_id": str(test_user.id), "role": "owner"}],
        ),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["events"] == ["task.created", "task.assigned"]
    task = body["task"]
    assert task["goal_id"] == str(test_objective.goal_id)
    assert task["created_by"] == str(test_user.id)
    assert task["primary_assignee"] == str(test_user.id)
    assert task["version"] == 1

    response = await client.get(f"/api/v1/tasks/{task['id']}")
    assert response.status_code == 200
    assert response.json()["checklist"][0]["text"] == "Call venue"


@pytest.mark.asyncio
async def test_toggle_checklist_completes_task(client, test_club, test_objective, test_user):
    response = await client.post(
        "/api/v1/tasks", json=_json_payload(test_club, test_objective, checklist=[{"text": "Call venue"}])
    )
    task_id = response.json()["task"]["id"]

    response = await client.patch(
        f"/api/v1/tasks/{task_id}/checklist/1",
        headers={"X-User-Id": str(test_user.id)},
        json={},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["task"]["status"] == "completed"
    assert body["task"]["progress"] == 100
    assert body["task"]["checklist"][0]["completed_by"] == str(test_user.id)
    assert "task.completed" in body["events"]


@pytest.mark.asyncio
async def test_manual_completion_with_open_blocker_conflicts(client, test_club, test_objective):
    blocker = (await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective))).json()["task"]
    response = await client.post(
        "/api/v1/tasks",
        json=_json_payload(
            test_club,
            test_objective,
            dependencies=[{"task_id": blocker["id"], "relation": "blocked_by"}],
        ),
    )
    task_id = response.json()["task"]["id"]

    response = await client.patch(f"/api/v1/tasks/{task_id}", json={"status": "completed"})

    assert response.status_code == 409
    assert response.json()["detail"]["blocked_by"] == [blocker["id"]]


@pytest.mark.asyncio
async def test_stale_version_conflicts(client, test_club, test_objective):
    task_id = (await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective))).json()["task"]["id"]
    await client.patch(f"/api/v1/tasks/{task_id}", json={"title": "Renamed"})

    response = await client.patch(f"/api/v1/tasks/{task_id}", json={"title": "Again", "expected_version": 1})

    assert response.status_code == 409
    assert response.json()["detail"]["retry"] is True


@pytest.mark.asyncio
async def test_invalid_payloads_are_rejected(client, test_club, test_objective):
    response = await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective, progress=150))
    assert response.status_code == 422

    response = await client.post(
        "/api/v1/tasks",
        json=_json_payload(test_club, test_objective, goal_id=str(uuid.uuid4())),
    )
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "goal_id"


@pytest.mark.asyncio
async def test_unknown_task_returns_404(client):
    response = await client.get(f"/api/v1/tasks/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_comment_requires_actor(client, test_club, test_objective, test_user):
    task_id = (await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective))).json()["task"]["id"]

    response = await client.post(f"/api/v1/tasks/{task_id}/comments", json={"content": "Hi"})
    assert response.status_code == 401

    response = await client.post(
        f"/api/v1/tasks/{task_id}/comments",
        headers={"X-User-Id": str(test_user.id)},
        json={"content": "Venue confirmed", "mentions": [str(test_user.id)]},
    )
    assert response.status_code == 201
    assert response.json()["task"]["comments"][0]["mentions"] == [str(test_user.id)]


@pytest.mark.asyncio
async def test_list_tasks_by_club(client, test_club, test_objective):
    await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective, title="First"))
    await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective, title="Second"))

    response = await client.get("/api/v1/tasks", params={"club_id": str(test_club.id), "status": "not_started"})

    assert response.status_code == 200
    assert {task["title"] for task in response.json()} == {"First", "Second"}


@pytest.mark.asyncio
async def test_downstream_endpoint(client, test_club, test_objective):
    first = (await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective))).json()["task"]
    second = (await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective))).json()["task"]

    response = await client.post(
        f"/api/v1/tasks/{first['id']}/dependencies", json={"task_id": second["id"], "relation": "blocks"}
    )
    assert response.status_code == 201

    response = await client.get(f"/api/v1/tasks/{first['id']}/downstream")
    assert response.json() == {"task_id": first["id"], "downstream": [second["id"]]}


@pytest.mark.asyncio
async def test_analytics_report_endpoint(client, test_club, test_objective):
    task_id = (await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective))).json()["task"]["id"]
    await client.patch(f"/api/v1/tasks/{task_id}", json={"status": "completed"})

    response = await client.get(
        "/api/v1/analytics/report", params={"club_id": str(test_club.id), "window_days": 7}
    )

    assert response.status_code == 200
    report = response.json()
    assert report["total_tasks"] == 1
    assert report["task_completion_rate"] == 100.0
    assert report["top_performing_clubs"][0]["name"] == "Chess Club"
    assert len(report["user_growth"]) == 7
    assert report["partial"] is False

    response = await client.get(f"/api/v1/analytics/tasks/{task_id}")
    assert response.status_code == 200
    assert response.json()["overview"]["status"] == "completed"


@pytest.mark.asyncio
async def test_webhook_subscription_crud(client):
    response = await client.post(
        "/api/v1/webhooks",
        json={"event": "task.completed", "url": "https://hooks.example.com/clubhub", "secret": "s3cret"},
    )
    assert response.status_code == 201
    webhook_id = response.json()["id"]

    response = await client.get("/api/v1/webhooks")
    assert [item["id"] for item in response.json()] == [webhook_id]

    response = await client.delete(f"/api/v1/webhooks/{webhook_id}")
    assert response.status_code == 204
    response = await client.get(f"/api/v1/webhooks/{webhook_id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_goal_and_objective_rollup_endpoints(client, test_club, test_objective):
    first = (await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective))).json()["task"]
    await client.post("/api/v1/tasks", json=_json_payload(test_club, test_objective))
    await client.patch(f"/api/v1/tasks/{first['id']}", json={"progress": 100})

    response = await client.get(f"/api/v1/analytics/goals/{test_objective.goal_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["goal"]["task_count"] == 2
    assert body["goal"]["completed_tasks"] == 1
    assert body["goal"]["calculated_progress"] == 50
    assert body["objectives"][0]["entity_id"] == str(test_objective.id)

    response = await client.get(f"/api/v1/analytics/objectives/{test_objective.id}")
    assert response.json()["calculated_progress"] == 50

    response = await client.get(f"/api/v1/analytics/goals/{uuid.uuid4()}")
    assert response.status_code == 404
