from ermakplan.models.models import Notification, PlanUser
from tests.conftest import create_task, login

CONTENT = {
    "backgroundImages": [{"url": "https://files.example/hall.png", "width": 1200, "height": 800}],
    "points": [{"id": "p1", "x": 10.5, "y": 20, "notes": ["check valve"], "parts": [4]}],
}


def _plan(client, **fields):
    body = {"name": "Hall B", "content": CONTENT}
    body.update(fields)
    resp = client.post("/api/plans", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_plan_keeps_content(client, seed_users):
    login(client, "alice")
    plan = _plan(client)
    assert plan["content"]["points"][0]["notes"] == ["check valve"]
    assert plan["content"]["backgroundImages"][0]["x"] == 0
    assert plan["createdAt"] == plan["updatedAt"]


def test_plan_without_content_has_empty_document(client, seed_users):
    login(client, "alice")
    plan = client.post("/api/plans", json={"name": "Blank"}).json()
    assert plan["content"] == {"backgroundImages": [], "points": []}


def test_malformed_content_rejected(client, seed_users):
    login(client, "alice")
    resp = client.post("/api/plans", json={"name": "Bad", "content": {"points": [{"x": 1}]}})
    assert resp.status_code == 400


def test_share_plan_with_user(client, db, seed_users):
    login(client, "alice")
    plan = _plan(client)
    resp = client.post(f"/api/plans/{plan['id']}/users", json={"userIds": [seed_users["bob"].id, seed_users["alice"].id]})
    assert resp.status_code == 200
    grants = resp.json()
    assert [g["userId"] for g in grants] == [seed_users["bob"].id]
    assert grants[0]["user"]["username"] == "bob"
    # Idempotent
    client.post(f"/api/plans/{plan['id']}/users", json={"userIds": [seed_users["bob"].id]})
    assert db.query(PlanUser).count() == 1
    assert db.query(Notification).filter(Notification.related_plan_id == plan["id"]).count() == 1

    login(client, "bob")
    assert client.get(f"/api/plans/{plan['id']}").status_code == 200
    assert [p["id"] for p in client.get("/api/plans/assigned").json()] == [plan["id"]]
    assert client.put(f"/api/plans/{plan['id']}", json={"name": "Mine now"}).status_code == 403
    assert client.get("/api/plans").json() == []


def test_revoke_plan_user(client, seed_users):
    login(client, "alice")
    plan = _plan(client)
    client.post(f"/api/plans/{plan['id']}/users", json={"userIds": [seed_users["bob"].id]})
    assert client.delete(f"/api/plans/{plan['id']}/users/{seed_users['bob'].id}").status_code == 200
    login(client, "bob")
    assert client.get(f"/api/plans/{plan['id']}").status_code == 403


def test_update_plan_content(client, seed_users):
    login(client, "alice")
    plan = _plan(client)
    resp = client.put(f"/api/plans/{plan['id']}", json={"content": {"points": []}})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Hall B"
    assert resp.json()["content"]["points"] == []


def test_delete_plan_cascades(client, db, seed_users):
    login(client, "alice")
    plan = _plan(client)
    task = create_task(client, planId=plan["id"])
    client.post(f"/api/plans/{plan['id']}/users", json={"userIds": [seed_users["bob"].id]})

    resp = client.delete(f"/api/plans/{plan['id']}")
    assert resp.status_code == 200
    assert client.get(f"/api/tasks/{task['id']}").json()["planId"] is None
    assert db.query(PlanUser).count() == 0
    note = db.query(Notification).filter(Notification.user_id == seed_users["bob"].id).one()
    assert note.related_plan_id is None


def test_delete_project_unlinks_tasks_and_reports(client, seed_users):
    login(client, "alice")
    project = client.post("/api/projects", json={"name": "Yard"}).json()
    task = create_task(client, projectId=project["id"])
    report = client.post("/api/reports", json={"title": "r", "projectId": project["id"]}).json()

    assert client.delete(f"/api/projects/{project['id']}").status_code == 200
    assert client.get(f"/api/tasks/{task['id']}").json()["projectId"] is None
    assert client.get(f"/api/reports/{report['id']}").json()["projectId"] is None
