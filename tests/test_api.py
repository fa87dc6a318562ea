# tests/test_api.py

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from consistify.core.deps import get_activity_publisher
from consistify.core.identity import get_identity_verifier
from consistify.database import Base, get_db
from consistify.main import app
from consistify.services.activity import SessionActivityPublisher
from consistify.services.planner import GoalPlanner, get_planner

from fakes import FakeVerifier

PYTHON_GOAL = {"type": "learning", "title": "Python", "total_days": 3, "daily_minutes": 30}


@pytest.fixture()
def client(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    sessions = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())

    async def override_get_db():
        async with sessions() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_planner] = lambda: GoalPlanner(None)
    app.dependency_overrides[get_identity_verifier] = lambda: FakeVerifier()
    app.dependency_overrides[get_activity_publisher] = lambda: SessionActivityPublisher(sessions)

    # No context manager: startup would create tables on the default engine
    yield TestClient(app)

    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


def login(client, name):
    response = client.post("/auth/google", json={"credential": name})
    assert response.status_code == 200
    body = response.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, body["user"]


def check_and_complete(client, headers, task):
    for index in range(len(task["action_items"])):
        response = client.patch(f"/tasks/{task['id']}/action-item/{index}", json={"completed": True}, headers=headers)
        assert response.status_code == 200
    return client.patch(f"/tasks/{task['id']}/complete", headers=headers)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_requires_authentication(client):
    assert client.get("/tasks/today").status_code in (401, 403)
    response = client.get("/tasks/today", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_rejected_google_credential(client):
    response = client.post("/auth/google", json={"credential": "bad-signature"})
    assert response.status_code == 401


def test_login_returns_profile(client):
    headers, user = login(client, "ada")
    assert user["email"] == "ada@consistify.app"
    assert user["show_in_activity_feed"] is True

    _, same = login(client, "ada")
    assert same["id"] == user["id"]
    assert client.get("/auth/me", headers=headers).json()["name"] == "Ada"


def test_no_active_goal(client):
    headers, _ = login(client, "ada")

    response = client.get("/tasks/today", headers=headers)

    assert response.status_code == 404
    assert response.json()["code"] == "NoActiveGoal"
    assert client.get("/goals/999", headers=headers).json()["code"] == "NotFound"


def test_timeline_check(client):
    headers, _ = login(client, "ada")

    response = client.post("/goals/timeline-check", json={"type": "learning", "total_days": 2}, headers=headers)

    assert response.json()["is_rushed"] is True
    assert response.json()["suggested_days"] == 3


def test_daily_flow(client):
    headers, _ = login(client, "ada")

    goal = client.post("/goals", json=PYTHON_GOAL, headers=headers).json()
    assert goal["total_tasks"] == 3
    assert goal["progress"] == 0
    assert goal["current_day"] == 1

    today = client.get("/tasks/today", headers=headers).json()
    task = today["task"]
    assert today["completed"] is False
    assert task["day_number"] == 1
    assert task["title"] == "Variables and Data Types"
    assert task["resources"]

    response = client.patch(f"/tasks/{task['id']}/complete", headers=headers)
    assert response.status_code == 409
    assert response.json()["code"] == "ActionItemsIncomplete"

    response = client.patch(f"/tasks/{task['id']}/action-item/5", json={"completed": True}, headers=headers)
    assert response.status_code == 404
    assert response.json()["code"] == "IndexOutOfBounds"

    response = check_and_complete(client, headers, task)
    assert response.status_code == 200
    assert response.json()["task"]["status"] == "completed"

    response = client.patch(f"/tasks/{task['id']}/complete", headers=headers)
    assert response.status_code == 409
    assert response.json()["code"] == "TaskNotPending"

    active = client.get("/goals/active", headers=headers).json()
    assert (active["completed_days"], active["current_day"], active["progress"]) == (1, 2, 33)

    [activity] = client.get("/activity/feed", headers=headers).json()
    assert activity["message"] == "Ada completed Day 1: Variables and Data Types"
    assert activity["progress_percent"] == 33

    day2 = client.get(f"/goals/{goal['id']}/today", headers=headers).json()["task"]
    response = client.patch(f"/tasks/{day2['id']}/skip", headers=headers)
    assert response.status_code == 200

    replacement = client.get("/tasks/today", headers=headers).json()["task"]
    assert replacement["id"] != day2["id"]
    assert replacement["day_number"] == 2
    assert replacement["title"] == day2["title"]

    tasks = client.get(f"/tasks/all/{goal['id']}", headers=headers).json()
    assert [t["status"] for t in tasks] == ["completed", "skipped", "pending", "pending"]
    history = client.get(f"/tasks/history/{goal['id']}", headers=headers).json()
    assert [t["id"] for t in history] == [day2["id"], task["id"]]

    active = client.get("/goals/active", headers=headers).json()
    assert (active["skipped_days"], active["current_day"], active["progress"]) == (1, 2, 25)


def test_finishing_goal_reports_completed(client):
    headers, _ = login(client, "ada")
    goal = client.post("/goals", json={**PYTHON_GOAL, "total_days": 1}, headers=headers).json()
    task = client.get("/tasks/today", headers=headers).json()["task"]

    assert check_and_complete(client, headers, task).status_code == 200

    today = client.get(f"/goals/{goal['id']}/today", headers=headers).json()
    assert today["completed"] is True
    assert today["task"] is None
    assert today["goal"]["progress"] == 100
    assert client.get("/tasks/today", headers=headers).status_code == 404


def test_hidden_user_stays_out_of_feed(client):
    headers, _ = login(client, "ada")
    response = client.patch("/users/settings", json={"show_in_activity_feed": False}, headers=headers)
    assert response.json()["show_in_activity_feed"] is False

    client.post("/goals", json=PYTHON_GOAL, headers=headers)
    task = client.get("/tasks/today", headers=headers).json()["task"]
    assert check_and_complete(client, headers, task).status_code == 200

    assert client.get("/activity/feed", headers=headers).json() == []


def test_new_goal_replaces_active_goal(client):
    headers, _ = login(client, "ada")
    first = client.post("/goals", json=PYTHON_GOAL, headers=headers).json()
    second = client.post("/goals", json={**PYTHON_GOAL, "title": "Guitar"}, headers=headers).json()

    assert client.get("/goals/active", headers=headers).json()["id"] == second["id"]
    goals = client.get("/goals", headers=headers).json()
    assert [g["id"] for g in goals] == [second["id"], first["id"]]

    client.patch(f"/goals/{first['id']}/activate", headers=headers)
    assert client.get("/goals/active", headers=headers).json()["id"] == first["id"]

    assert client.delete(f"/goals/{first['id']}", headers=headers).status_code == 200
    assert client.get(f"/goals/{first['id']}", headers=headers).status_code == 404
    assert client.get(f"/tasks/all/{first['id']}", headers=headers).status_code == 404


def test_shared_goal_flow(client):
    ada_headers, _ = login(client, "ada")
    grace_headers, grace = login(client, "grace")
    source = client.post("/goals", json=PYTHON_GOAL, headers=ada_headers).json()

    response = client.post(f"/goals/{source['id']}/invite", json={"to_user_id": grace["id"]}, headers=ada_headers)
    assert response.status_code == 200
    invite = response.json()
    assert invite["status"] == "pending"

    [pending] = client.get("/goals/invites", headers=grace_headers).json()
    assert pending["from_user_name"] == "Ada"

    assert client.post(f"/goals/accept-invite/{invite['id']}", headers=ada_headers).status_code == 404

    mirror = client.post(f"/goals/accept-invite/{invite['id']}", headers=grace_headers).json()
    assert mirror["partner_goal_id"] == source["id"]
    assert mirror["total_tasks"] == 3

    response = client.post(f"/goals/accept-invite/{invite['id']}", headers=grace_headers)
    assert response.status_code == 409
    assert response.json()["code"] == "AlreadyResolved"

    task = client.get("/tasks/today", headers=ada_headers).json()["task"]
    check_and_complete(client, ada_headers, task)

    progress = client.get(f"/goals/{mirror['id']}/partner-progress", headers=grace_headers).json()
    assert progress["partner"]["name"] == "Ada"
    assert progress["partner_goal"]["completed_days"] == 1
    assert [t["status"] for t in progress["partner_tasks"]] == ["completed", "pending", "pending"]

    mine = client.get(f"/goals/{mirror['id']}", headers=grace_headers).json()
    assert mine["completed_days"] == 0

    back = client.get(f"/goals/{source['id']}/partner-progress", headers=ada_headers).json()
    assert back["partner"]["name"] == "Grace"


def test_decline_invite(client):
    ada_headers, _ = login(client, "ada")
    grace_headers, grace = login(client, "grace")
    source = client.post("/goals", json=PYTHON_GOAL, headers=ada_headers).json()
    invite = client.post(f"/goals/{source['id']}/invite", json={"to_user_id": grace["id"]}, headers=ada_headers).json()

    assert client.delete(f"/goals/decline-invite/{invite['id']}", headers=grace_headers).status_code == 200
    assert client.get("/goals/invites", headers=grace_headers).json() == []
    assert client.delete(f"/goals/decline-invite/{invite['id']}", headers=grace_headers).status_code == 404
    assert client.get("/goals", headers=grace_headers).json() == []

    response = client.get(f"/goals/{source['id']}/partner-progress", headers=ada_headers)
    assert response.json()["code"] == "NoPartner"


def test_goal_can_only_be_shared_once(client):
    ada_headers, _ = login(client, "ada")
    grace_headers, grace = login(client, "grace")
    linus_headers, linus = login(client, "linus")
    source = client.post("/goals", json=PYTHON_GOAL, headers=ada_headers).json()
    first = client.post(f"/goals/{source['id']}/invite", json={"to_user_id": grace["id"]}, headers=ada_headers).json()
    second = client.post(f"/goals/{source['id']}/invite", json={"to_user_id": linus["id"]}, headers=ada_headers).json()

    mirror = client.post(f"/goals/accept-invite/{first['id']}", headers=grace_headers).json()
    response = client.post(f"/goals/accept-invite/{second['id']}", headers=linus_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "GoalAlreadyShared"
    assert client.get("/goals", headers=linus_headers).json() == []
    assert client.get(f"/goals/{source['id']}", headers=ada_headers).json()["partner_goal_id"] == mirror["id"]
