"""
WebSocket endpoints through the sync test client
"""
import pytest
from fastapi.testclient import TestClient

from app.main import create_app


@pytest.fixture
def ws_client():
    # no context manager: the lifespan (database init, scheduler) is not run
    return TestClient(create_app())


def test_notification_socket_ping(ws_client):
    with ws_client.websocket_connect("/ws/notifications/user-1") as ws:
        assert ws.receive_json() == {"type": "connected", "user_id": "user-1"}

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

        ws.send_json({"type": "notification:read"})
        assert ws.receive_json() == {
            "type": "notification:read",
            "notification_id": None,
            "success": False,
        }

        ws.send_json({"type": "dance"})
        frame = ws.receive_json()
        assert frame["type"] == "error"
        assert "dance" in frame["message"]

        ws.send_text("{not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid JSON"}


def test_interview_room_join(ws_client):
    with ws_client.websocket_connect("/ws/interviews/room-1?peer_id=alice") as alice:
        assert alice.receive_json() == {
            "type": "room-joined",
            "room_id": "room-1",
            "peer_id": "alice",
            "peers": [],
        }
