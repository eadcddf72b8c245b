"""Tests for project endpoints, including the end-to-end flow and pagination."""

import pytest


@pytest.fixture
def acme(register_tenant):
    return register_tenant("acme")


@pytest.fixture
def globex(register_tenant):
    return register_tenant("globex")


def _create_project(client, headers, name="Website Redesign", **extra):
    resp = client.post("/api/projects", headers=headers, json={"name": name, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()["project"]


def test_register_login_create_project(client, register_tenant, login):
    registered = register_tenant("acme")
    token = login("acme", "admin@acme.com").json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    resp = client.post("/api/projects", headers=headers, json={
        "name": "Launch",
        "description": "First project",
    })

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Project created successfully"
    assert body["project"]["userId"] == registered["user"]["id"]
    assert body["project"]["tenantId"] == registered["tenant"]["id"]
    assert body["project"]["isActive"] is True


def test_create_ignores_client_tenant_and_user(client, acme, globex):
    project = _create_project(
        client, acme["headers"],
        tenantId=globex["tenant"]["id"],
        userId=globex["user"]["id"],
    )

    assert project["tenantId"] == acme["tenant"]["id"]
    assert project["userId"] == acme["user"]["id"]


def test_list_embeds_creator(client, acme):
    _create_project(client, acme["headers"])

    resp = client.get("/api/projects", headers=acme["headers"])

    assert resp.status_code == 200
    project = resp.json()["projects"][0]
    assert project["user"] == {
        "id": acme["user"]["id"],
        "firstName": "Ada",
        "lastName": "Admin",
        "email": "admin@acme.com",
    }


def test_pagination(client, acme):
    for i in range(25):
        _create_project(client, acme["headers"], name=f"Project {i:02d}")

    first = client.get("/api/projects", params={"limit": 10}, headers=acme["headers"]).json()
    last = client.get("/api/projects", params={"limit": 10, "page": 3}, headers=acme["headers"]).json()

    assert first["pagination"] == {"page": 1, "limit": 10, "total": 25, "pages": 3}
    assert len(first["projects"]) == 10
    assert len(last["projects"]) == 5


def test_pagination_rejects_out_of_range_limit(client, acme):
    resp = client.get("/api/projects", params={"limit": 500}, headers=acme["headers"])

    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"
    assert resp.json()["details"][0]["field"] == "limit"


def test_search_and_active_filter(client, acme):
    website = _create_project(client, acme["headers"], name="Website Redesign")
    mobile = _create_project(client, acme["headers"], name="Mobile App", description="iOS and Android")
    client.put(f"/api/projects/{website['id']}", headers=acme["headers"], json={"isActive": False})

    by_description = client.get("/api/projects", params={"search": "android"}, headers=acme["headers"]).json()
    active = client.get("/api/projects", params={"isActive": "true"}, headers=acme["headers"]).json()

    assert [p["id"] for p in by_description["projects"]] == [mobile["id"]]
    assert [p["id"] for p in active["projects"]] == [mobile["id"]]


def test_viewer_reads_but_cannot_write(client, acme, create_user):
    _create_project(client, acme["headers"])
    _, viewer_headers = create_user(acme["headers"], "acme", "viewer@acme.com", role="VIEWER")

    listed = client.get("/api/projects", headers=viewer_headers)
    created = client.post("/api/projects", headers=viewer_headers, json={"name": "Nope"})

    assert listed.status_code == 200
    assert created.status_code == 403
    assert created.json()["code"] == "INSUFFICIENT_PERMISSIONS"


def test_update_requires_owner_or_admin(client, acme, create_user):
    admin_project = _create_project(client, acme["headers"], name="Admin Project")
    _, worker_headers = create_user(acme["headers"], "acme", "worker@acme.com")
    worker_project = _create_project(client, worker_headers, name="Worker Project")

    own = client.put(f"/api/projects/{worker_project['id']}", headers=worker_headers, json={"name": "Renamed"})
    others = client.put(f"/api/projects/{admin_project['id']}", headers=worker_headers, json={"name": "Mine now"})
    by_admin = client.put(f"/api/projects/{worker_project['id']}", headers=acme["headers"], json={
        "description": "Reviewed",
    })

    assert own.status_code == 200
    assert own.json()["project"]["name"] == "Renamed"
    assert others.status_code == 403
    assert by_admin.status_code == 200
    assert by_admin.json()["project"]["description"] == "Reviewed"
    assert by_admin.json()["project"]["userId"] == worker_project["userId"]


def test_delete_is_admin_only_and_hard(client, acme, create_user):
    project = _create_project(client, acme["headers"])
    _, worker_headers = create_user(acme["headers"], "acme", "worker@acme.com")

    denied = client.delete(f"/api/projects/{project['id']}", headers=worker_headers)
    deleted = client.delete(f"/api/projects/{project['id']}", headers=acme["headers"])
    gone = client.get(f"/api/projects/{project['id']}", headers=acme["headers"])

    assert denied.status_code == 403
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Project deleted successfully"}
    assert gone.status_code == 404
    assert gone.json()["code"] == "PROJECT_NOT_FOUND"


def test_cross_tenant_project_access_is_not_found(client, acme, globex):
    foreign = _create_project(client, globex["headers"], name="Globex Secret")

    get_resp = client.get(f"/api/projects/{foreign['id']}", headers=acme["headers"])
    put_resp = client.put(f"/api/projects/{foreign['id']}", headers=acme["headers"], json={"name": "Stolen"})
    delete_resp = client.delete(f"/api/projects/{foreign['id']}", headers=acme["headers"])
    listed = client.get("/api/projects", headers=acme["headers"]).json()

    for resp in (get_resp, put_resp, delete_resp):
        assert resp.status_code == 404
        assert resp.json()["code"] == "PROJECT_NOT_FOUND"
    assert listed["projects"] == []

    still_there = client.get(f"/api/projects/{foreign['id']}", headers=globex["headers"])
    assert still_there.json()["project"]["name"] == "Globex Secret"


def test_create_validation(client, acme):
    resp = client.post("/api/projects", headers=acme["headers"], json={"name": "x"})

    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "name"
