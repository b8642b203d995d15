import pytest

from app.models.notification import Notification
from app.services.notifications import create_notification


pytestmark = pytest.mark.asyncio


async def test_list_and_mark_notifications(client, create_user, auth_header_factory):
    user, password = await create_user()
    other, _ = await create_user()
    for i in range(3):
        await create_notification(user.id, f"Title {i}", f"Message {i}")
    await create_notification(other.id, "Not yours", "x")
    headers = await auth_header_factory(user.username, password)

    resp = await client.get("/api/v1/notifications", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 3
    assert body["unreadCount"] == 3
    assert all(item["isRead"] is False for item in body["items"])

    first_id = body["items"][0]["id"]
    read = await client.post(f"/api/v1/notifications/{first_id}/read", headers=headers)
    assert read.status_code == 200

    unread = await client.get("/api/v1/notifications", headers=headers, params={"unreadOnly": True})
    assert unread.json()["total"] == 2
    assert unread.json()["unreadCount"] == 2

    read_all = await client.post("/api/v1/notifications/read-all", headers=headers)
    assert read_all.json()["data"]["updated"] == 2

    final = await client.get("/api/v1/notifications", headers=headers)
    assert final.json()["unreadCount"] == 0


async def test_cannot_mark_foreign_notification(client, create_user, auth_header_factory):
    owner, _ = await create_user()
    stranger, password = await create_user()
    await create_notification(owner.id, "Private", "x")
    headers = await auth_header_factory(stranger.username, password)

    n = await Notification.get(user_id=owner.id)
    resp = await client.post(f"/api/v1/notifications/{n.id}/read", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "NOTIFICATION_NOT_FOUND"
