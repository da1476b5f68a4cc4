"""
In-app notifications
"""
from httpx import AsyncClient


async def _notify(client: AsyncClient, user_id: str, **overrides) -> dict:
    response = await client.post("/api/v1/notifications", json={
        "user_id": user_id,
        "title": "Interview tomorrow",
        "message": "Your interview is at 10:00",
        "type": "interview_reminder",
        **overrides
    })
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def test_notify_and_list(client: AsyncClient):
    first = await _notify(client, "user-1")
    await _notify(client, "user-1", priority="high")
    await _notify(client, "user-2")
    assert first["is_read"] is False
    assert first["priority"] == "normal"

    response = await client.get("/api/v1/notifications", params={"user_id": "user-1"})
    assert response.json()["data"]["total"] == 2

    response = await client.get("/api/v1/notifications/unread-count", params={"user_id": "user-1"})
    assert response.json()["data"] == {"unread": 2, "online": False}


async def test_mark_read(client: AsyncClient):
    notification = await _notify(client, "user-1")
    await _notify(client, "user-1")

    response = await client.post(
        f"/api/v1/notifications/{notification['id']}/read", params={"user_id": "user-1"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["is_read"] is True
    assert response.json()["data"]["read_at"] is not None

    response = await client.get(
        "/api/v1/notifications", params={"user_id": "user-1", "unread_only": True}
    )
    assert response.json()["data"]["total"] == 1

    response = await client.post("/api/v1/notifications/read-all", params={"user_id": "user-1"})
    assert response.json()["data"] == {"updated": 1}

    response = await client.get("/api/v1/notifications/unread-count", params={"user_id": "user-1"})
    assert response.json()["data"]["unread"] == 0


async def test_other_users_notification(client: AsyncClient):
    notification = await _notify(client, "user-1")

    response = await client.post(
        f"/api/v1/notifications/{notification['id']}/read", params={"user_id": "user-2"}
    )
    assert response.status_code == 403

    response = await client.delete(
        f"/api/v1/notifications/{notification['id']}", params={"user_id": "user-2"}
    )
    assert response.status_code == 403

    response = await client.delete(
        f"/api/v1/notifications/{notification['id']}", params={"user_id": "user-1"}
    )
    assert response.status_code == 200

    response = await client.post(
        f"/api/v1/notifications/{notification['id']}/read", params={"user_id": "user-1"}
    )
    assert response.status_code == 404


async def test_invalid_type(client: AsyncClient):
    response = await client.post("/api/v1/notifications", json={
        "user_id": "user-1",
        "title": "x",
        "message": "y",
        "type": "carrier_pigeon",
    })
    assert response.status_code == 422
