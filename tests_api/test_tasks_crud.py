import datetime as dt
import uuid

import pytest


def _parse(value: str) -> dt.datetime:
    return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.asyncio
async def test_create_task_201(client, tasks_url, task_payload):
    r = await client.post(tasks_url, json=task_payload, headers={"X-Request-ID": "req-1"})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert data["title"] == task_payload["title"]
    assert data["description"] == task_payload["description"]
    assert data["status"] == "pending"
    assert _parse(data["dueDate"]) == _parse(task_payload["dueDate"])
    assert uuid.UUID(data["id"])
    assert data["createdAt"] and data["updatedAt"]
    assert _parse(data["updatedAt"]) >= _parse(data["createdAt"])
    assert r.headers["Location"] == f"{tasks_url}/{data['id']}"
    assert r.headers.get("X-Request-ID") == "req-1"


@pytest.mark.asyncio
async def test_create_defaults_status_and_trims(client, tasks_url, task_payload):
    task_payload.pop("status")
    task_payload["title"] = "   Trimmed title   "
    task_payload["description"] = "  spaced  "
    r = await client.post(tasks_url, json=task_payload)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["status"] == "pending"
    assert data["title"] == "Trimmed title"
    assert data["description"] == "spaced"


@pytest.mark.asyncio
async def test_create_ignores_server_fields(client, tasks_url, task_payload):
    forced_id = str(uuid.uuid4())
    task_payload.update({"id": forced_id, "createdAt": "2000-01-01T00:00:00Z"})
    r = await client.post(tasks_url, json=task_payload)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["id"] != forced_id
    assert not data["createdAt"].startswith("2000-")


@pytest.mark.asyncio
async def test_create_empty_body_400(client, tasks_url):
    r = await client.post(tasks_url, json={})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"]["code"] == 400
    assert body["error"]["message"] == "Validation failed. Title is required. Due date is required"


@pytest.mark.asyncio
async def test_create_missing_title_400(client, tasks_url, task_payload):
    task_payload.pop("title")
    r = await client.post(tasks_url, json=task_payload)
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert "Title is required" in r.json()["error"]["message"]


@pytest.mark.asyncio
async def test_create_past_due_date_400(client, tasks_url, task_payload):
    task_payload["dueDate"] = (dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=1)).isoformat()
    r = await client.post(tasks_url, json=task_payload)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Validation failed. Due date cannot be in the past"


@pytest.mark.asyncio
async def test_create_field_errors_are_ordered(client, tasks_url, task_payload):
    task_payload.update({"title": "ab", "description": "x" * 501, "status": "done", "dueDate": "nope"})
    r = await client.post(tasks_url, json=task_payload)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == (
        "Validation failed. Title must be between 3 and 100 characters. "
        "Description cannot exceed 500 characters. "
        "Status must be pending, in-progress, or completed. "
        "Due date must be a valid date"
    )


@pytest.mark.asyncio
async def test_create_malformed_json_400(client, tasks_url):
    r = await client.post(
        tasks_url, content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"]["message"].startswith("Validation failed.")


@pytest.mark.asyncio
async def test_get_task_by_id(client, tasks_url, create_task):
    created = await create_task(title="Fetch me")
    r = await client.get(f"{tasks_url}/{created['id']}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": created}


@pytest.mark.asyncio
async def test_get_unknown_task_404(client, tasks_url):
    r = await client.get(f"{tasks_url}/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": {"message": "Task not found", "code": 404}}


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get", "put", "delete"])
async def test_malformed_id_400(client, tasks_url, method):
    kwargs = {"json": {"title": "Valid title"}} if method == "put" else {}
    r = await client.request(method.upper(), f"{tasks_url}/not-a-uuid", **kwargs)
    assert r.status_code == 400
    assert r.json()["error"] == {"message": "Validation failed. Invalid task ID", "code": 400}


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["put", "delete"])
async def test_unknown_id_404(client, tasks_url, method):
    kwargs = {"json": {"title": "Valid title"}} if method == "put" else {}
    r = await client.request(method.upper(), f"{tasks_url}/{uuid.uuid4()}", **kwargs)
    assert r.status_code == 404
    assert r.json()["error"]["message"] == "Task not found"


@pytest.mark.asyncio
async def test_update_is_partial(client, tasks_url, create_task):
    created = await create_task(title="Original", description="keep me")
    r = await client.put(f"{tasks_url}/{created['id']}", json={"status": "in-progress"})
    assert r.status_code == 200, r.text
    updated = r.json()["data"]
    assert updated["status"] == "in-progress"
    assert updated["title"] == "Original"
    assert updated["description"] == "keep me"
    assert updated["dueDate"] == created["dueDate"]
    assert updated["createdAt"] == created["createdAt"]
    assert _parse(updated["updatedAt"]) > _parse(created["updatedAt"])

    r = await client.get(f"{tasks_url}/{created['id']}")
    assert r.json()["data"] == updated


@pytest.mark.asyncio
async def test_update_rejects_bad_fields(client, tasks_url, create_task):
    created = await create_task()
    r = await client.put(f"{tasks_url}/{created['id']}", json={"status": "archived", "title": "  x "})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == (
        "Validation failed. Title must be between 3 and 100 characters. "
        "Status must be pending, in-progress, or completed"
    )


@pytest.mark.asyncio
async def test_update_past_due_date_400(client, tasks_url, create_task):
    created = await create_task()
    r = await client.put(f"{tasks_url}/{created['id']}", json={"dueDate": "2001-01-01"})
    assert r.status_code == 400
    assert "Due date cannot be in the past" in r.json()["error"]["message"]


@pytest.mark.asyncio
async def test_delete_then_get_404(client, tasks_url, create_task):
    created = await create_task()
    r = await client.delete(f"{tasks_url}/{created['id']}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {}}

    r = await client.get(f"{tasks_url}/{created['id']}")
    assert r.status_code == 404

    r = await client.delete(f"{tasks_url}/{created['id']}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_create_due_date_beyond_utc_range_400(client, tasks_url, task_payload):
    task_payload["dueDate"] = "9999-12-31T23:59:59-01:00"
    r = await client.post(tasks_url, json=task_payload)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Validation failed. Due date must be a valid date"


@pytest.mark.asyncio
async def test_update_due_date_beyond_utc_range_400(client, tasks_url, create_task):
    created = await create_task()
    r = await client.put(f"{tasks_url}/{created['id']}", json={"dueDate": "9999-12-31T23:59:59-05:00"})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Validation failed. Due date must be a valid date"

    r = await client.get(f"{tasks_url}/{created['id']}")
    assert r.json()["data"]["dueDate"] == created["dueDate"]
