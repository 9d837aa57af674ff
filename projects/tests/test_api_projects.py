from __future__ import annotations


def _create(client, **over):
    payload = {
        "project_name": "Deck build",
        "estimated_hours": "40.5",
        "actual_hours": "0",
        "difficulty": 3,
        "notes": "outdoor",
    }
    payload.update(over)
    return client.post("/api/project/create", json=payload)


def test_health_and_version(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("status") == "ok"

    v = client.get("/version")
    assert v.status_code == 200
    assert v.json().get("app") == "projects-api"


def test_create_list_get(client):
    res = _create(client)
    assert res.status_code == 201
    pid = res.json()["project_id"]

    lst = client.get("/api/project/list").json()["items"]
    assert [p["project_name"] for p in lst] == ["Deck build"]
    assert lst[0]["materials"] == [] and lst[0]["categories"] == []

    one = client.get(f"/api/project/{pid}").json()
    assert one["estimated_hours"] == "40.5"
    assert one["actual_hours"] == "0"
    assert "materials" not in one


def test_get_missing_is_404(client):
    assert client.get("/api/project/424242").status_code == 404


def test_create_rejects_bad_input(client):
    assert _create(client, project_name="").status_code == 422
    assert _create(client, difficulty=9).status_code == 422
    assert _create(client, estimated_hours="-2").status_code == 422
    assert _create(client, project_name="   ").status_code == 400


def test_partial_update_merges(client):
    pid = _create(client).json()["project_id"]
    res = client.post(
        "/api/project/update",
        json={"project_id": pid, "project_name": "Deck build v2", "actual_hours": "38.25"},
    )
    assert res.status_code == 200

    one = client.get(f"/api/project/{pid}").json()
    assert one["project_name"] == "Deck build v2"
    assert one["actual_hours"] == "38.25"
    assert one["estimated_hours"] == "40.5"
    assert one["difficulty"] == 3
    assert one["notes"] == "outdoor"


def test_update_missing_is_404(client):
    res = client.post("/api/project/update", json={"project_id": 31337, "notes": "x"})
    assert res.status_code == 404


def test_delete_then_delete_again(client):
    pid = _create(client).json()["project_id"]
    assert client.post("/api/project/delete", json={"project_id": pid}).status_code == 200
    assert client.get(f"/api/project/{pid}").status_code == 404

    again = client.post("/api/project/delete", json={"project_id": pid})
    assert again.status_code == 404
    assert f"ID={pid}" in again.json()["detail"]


def test_mutations_are_audited(client):
    pid = _create(client).json()["project_id"]
    client.post("/api/project/delete", json={"project_id": pid})
    client.post("/api/project/delete", json={"project_id": pid})

    body = client.get("/api/logs/search", params={"action": "DELETE_PROJECT"}).json()
    assert body["total"] == 2
    assert sorted(item["result"] for item in body["items"]) == ["ERROR", "OK"]

    created = client.get("/api/logs/search", params={"action": "CREATE_PROJECT"}).json()
    assert created["items"][0]["entity_id"] == str(pid)


def test_project_audit_trail_by_entity(client):
    pid = _create(client).json()["project_id"]
    other = _create(client, project_name="Shed").json()["project_id"]
    client.post("/api/project/update", json={"project_id": pid, "notes": "stained"})
    client.post("/api/project/delete", json={"project_id": pid})
    client.post("/api/project/update", json={"project_id": other, "difficulty": 2})

    body = client.get(
        "/api/logs/search", params={"entity_type": "PROJECT", "entity_id": str(pid)}
    ).json()
    assert body["total"] == 3
    assert sorted(item["action"] for item in body["items"]) == ["CREATE_PROJECT", "DELETE_PROJECT", "UPDATE_PROJECT"]
    assert all(item["entity_id"] == str(pid) for item in body["items"])

    history = client.get(f"/api/project/{pid}/history").json()["items"]
    assert [h["action"] for h in history] == ["CREATE_PROJECT", "UPDATE_PROJECT", "DELETE_PROJECT"]
    assert all(h["result"] == "OK" for h in history)


def test_failed_update_is_filed_under_the_project(client):
    client.post("/api/project/update", json={"project_id": 5150, "notes": "x"})
    body = client.get(
        "/api/logs/search", params={"entity_id": "5150", "result": "ERROR"}
    ).json()
    assert body["total"] == 1
    assert body["items"][0]["action"] == "UPDATE_PROJECT"
    assert "5150" in body["items"][0]["err_msg"]
