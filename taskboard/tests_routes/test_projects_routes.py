# tests_routes/test_projects_routes.py
from unittest.mock import patch

from sqlalchemy import text

from taskboard.models.user import RoleEnum


def _member_ids(engine, pid):
    with engine.connect() as conn:
        return sorted(conn.execute(
            text("SELECT user_id FROM project_members WHERE project_id = :pid"), {"pid": pid}
        ).scalars())


# ---------- create / list / get ----------

def test_create_project_caller_becomes_owner(client, factory, auth):
    a, b = factory.user("A"), factory.user("B")
    r = client.post("/api/projects", json={"name": "Apollo", "memberIds": [b.id]}, headers=auth(a))
    assert r.status_code == 201, r.get_data(as_text=True)
    project = r.get_json()
    assert project["name"] == "Apollo"
    assert project["status"] == "ACTIVE"
    assert project["ownerId"] == a.id
    assert project["owner"]["name"] == "A"
    assert [m["user"]["id"] for m in project["members"]] == [b.id]
    assert project["tasks"] == []


def test_create_requires_name(client, factory, auth):
    r = client.post("/api/projects", json={}, headers=auth(factory.user()))
    assert r.status_code == 400
    assert r.get_json()["details"] == {"name": "required"}


def test_create_with_unknown_member(client, factory, auth):
    r = client.post("/api/projects", json={"name": "X", "memberIds": [999]}, headers=auth(factory.user()))
    assert r.status_code == 400
    assert "memberIds" in r.get_json()["details"]


def test_list_is_visibility_scoped(client, factory, auth):
    a, b, c = factory.user(), factory.user(), factory.user()
    owned = factory.project(a)
    shared = factory.project(c, members=[a])
    factory.project(b)
    r = client.get("/api/projects", headers=auth(a))
    assert r.status_code == 200
    assert [p["id"] for p in r.get_json()] == [shared, owned]


def test_admin_listing_not_widened(client, factory, auth):
    factory.project(factory.user())
    admin = factory.user(role=RoleEnum.ADMIN)
    assert client.get("/api/projects", headers=auth(admin)).get_json() == []


def test_get_project(client, factory, auth):
    a, b = factory.user(), factory.user()
    pid = factory.project(a)
    factory.task(pid, a, status="DONE")
    r = client.get(f"/api/projects/{pid}", headers=auth(a))
    assert r.status_code == 200
    assert r.get_json()["tasks"][0]["status"] == "DONE"
    assert client.get(f"/api/projects/{pid}", headers=auth(b)).status_code == 403
    admin = factory.user(role=RoleEnum.ADMIN)
    assert client.get(f"/api/projects/{pid}", headers=auth(admin)).status_code == 200


def test_get_project_not_found(client, factory, auth):
    r = client.get("/api/projects/987654321", headers=auth(factory.user()))
    assert r.status_code == 404
    assert r.get_json()["error"] == "not_found"


# ---------- update ----------

def test_owner_updates_fields(client, factory, auth):
    a = factory.user()
    pid = factory.project(a)
    r = client.put(f"/api/projects/{pid}", json={"name": "Renamed", "status": "ON_HOLD",
                                                 "description": "later"}, headers=auth(a))
    assert r.status_code == 200
    body = r.get_json()
    assert (body["name"], body["status"], body["description"]) == ("Renamed", "ON_HOLD", "later")


def test_blank_description_stored_as_null_on_create_and_update(client, factory, auth):
    a = factory.user()
    r = client.post("/api/projects", json={"name": "Blank", "description": "  "}, headers=auth(a))
    assert r.get_json()["description"] is None
    pid = r.get_json()["id"]

    client.patch(f"/api/projects/{pid}", json={"description": "notes"}, headers=auth(a))
    r = client.patch(f"/api/projects/{pid}", json={"description": ""}, headers=auth(a))
    assert r.status_code == 200
    assert r.get_json()["description"] is None


def test_member_cannot_update(client, factory, auth):
    a, b = factory.user(), factory.user()
    pid = factory.project(a, members=[b])
    r = client.patch(f"/api/projects/{pid}", json={"name": "Mine now"}, headers=auth(b))
    assert r.status_code == 403
    assert r.get_json() == {"error": "forbidden"}


def test_admin_can_update(client, factory, auth):
    pid = factory.project(factory.user())
    admin = factory.user(role=RoleEnum.ADMIN)
    r = client.patch(f"/api/projects/{pid}", json={"status": "COMPLETED"}, headers=auth(admin))
    assert r.status_code == 200
    assert r.get_json()["status"] == "COMPLETED"


def test_update_missing_project_is_404_even_for_stranger(client, factory, auth):
    r = client.patch("/api/projects/4242", json={"name": "x"}, headers=auth(factory.user()))
    assert r.status_code == 404


def test_update_invalid_status(client, factory, auth):
    a = factory.user()
    pid = factory.project(a)
    r = client.patch(f"/api/projects/{pid}", json={"status": "ARCHIVED"}, headers=auth(a))
    assert r.status_code == 400
    assert "status" in r.get_json()["details"]


def test_member_ids_replace_wholesale(client, factory, auth, engine):
    a, b, c = factory.user(), factory.user(), factory.user()
    pid = factory.project(a, members=[b])

    r = client.patch(f"/api/projects/{pid}", json={"memberIds": [c.id]}, headers=auth(a))
    assert r.status_code == 200
    assert _member_ids(engine, pid) == [c.id]

    r = client.patch(f"/api/projects/{pid}", json={"name": "No members change"}, headers=auth(a))
    assert _member_ids(engine, pid) == [c.id]

    r = client.patch(f"/api/projects/{pid}", json={"memberIds": []}, headers=auth(a))
    assert r.status_code == 200
    assert r.get_json()["members"] == []
    assert _member_ids(engine, pid) == []


def test_member_replace_is_atomic(client, factory, auth, engine):
    a, b, c = factory.user(), factory.user(), factory.user()
    pid = factory.project(a, members=[b])

    # failure after delete+insert ran inside the request: nothing may stick
    with patch("taskboard.services.projects._load_enriched", side_effect=RuntimeError("boom")):
        r = client.patch(f"/api/projects/{pid}", json={"memberIds": [c.id]}, headers=auth(a))
    assert r.status_code == 500
    assert r.get_json() == {"error": "server_error"}
    assert _member_ids(engine, pid) == [b.id]


# ---------- delete ----------

def test_delete_cascades(client, factory, auth, engine):
    a, b = factory.user(), factory.user()
    pid = factory.project(a, members=[b])
    factory.task(pid, b)
    r = client.delete(f"/api/projects/{pid}", headers=auth(a))
    assert r.status_code == 200
    assert r.get_json() == {"deleted": True, "id": pid}
    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM tasks WHERE project_id = :p"), {"p": pid}).scalar() == 0
    assert _member_ids(engine, pid) == []
    assert client.get(f"/api/projects/{pid}", headers=auth(a)).status_code == 404


def test_delete_rights(client, factory, auth):
    a, b = factory.user(), factory.user()
    pid = factory.project(a, members=[b])
    assert client.delete(f"/api/projects/{pid}", headers=auth(b)).status_code == 403
    admin = factory.user(role=RoleEnum.ADMIN)
    assert client.delete(f"/api/projects/{pid}", headers=auth(admin)).status_code == 200
    assert client.delete(f"/api/projects/{pid}", headers=auth(admin)).status_code == 404
