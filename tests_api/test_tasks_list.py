import pytest


@pytest.mark.asyncio
async def test_list_empty(client, tasks_url):
    r = await client.get(tasks_url)
    assert r.status_code == 200
    assert r.json() == {"success": True, "count": 0, "data": []}


@pytest.mark.asyncio
async def test_list_filter_by_status(client, tasks_url, create_task):
    await create_task(title="Pending one", status="pending")
    await create_task(title="Done one", status="completed")

    r = await client.get(tasks_url, params={"status": "pending"})
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    assert len(body["data"]) == 1
    assert body["data"][0]["status"] == "pending"
    assert body["data"][0]["title"] == "Pending one"


@pytest.mark.asyncio
async def test_list_keeps_insertion_order(client, tasks_url, create_task):
    titles = ["Charlie", "Alpha", "Bravo"]
    for title in titles:
        await create_task(title=title)

    r = await client.get(tasks_url)
    assert [t["title"] for t in r.json()["data"]] == titles


@pytest.mark.asyncio
async def test_list_sort_by_title(client, tasks_url, create_task):
    for title in ["Charlie", "Alpha", "Bravo"]:
        await create_task(title=title)

    r = await client.get(tasks_url, params={"sortBy": "title"})
    assert [t["title"] for t in r.json()["data"]] == ["Alpha", "Bravo", "Charlie"]

    r = await client.get(tasks_url, params={"sortBy": "-title"})
    assert [t["title"] for t in r.json()["data"]] == ["Charlie", "Bravo", "Alpha"]


@pytest.mark.asyncio
async def test_list_sort_by_due_date_desc(client, tasks_url, create_task):
    await create_task(title="Soon", dueDate="2090-01-01T00:00:00Z")
    await create_task(title="Later", dueDate="2095-01-01T00:00:00Z")
    await create_task(title="Middle", dueDate="2092-06-15T12:00:00+02:00")

    r = await client.get(tasks_url, params={"sortBy": "-dueDate"})
    assert [t["title"] for t in r.json()["data"]] == ["Later", "Middle", "Soon"]


@pytest.mark.asyncio
async def test_list_invalid_query_400(client, tasks_url):
    r = await client.get(tasks_url, params={"status": "archived", "sortBy": "priority"})
    assert r.status_code == 400
    assert r.json()["error"] == {
        "message": "Validation failed. Invalid status filter. Invalid sort field",
        "code": 400,
    }
