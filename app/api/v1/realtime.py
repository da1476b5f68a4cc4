"""
WebSocket endpoints: per-user notifications and interview signaling rooms
"""
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import async_sessionmaker
from loguru import logger

from app.core.database import get_session_factory
from app.core.realtime import connection_manager
from app.crud import notification_crud

router = APIRouter()


async def _mark_read(session_factory: async_sessionmaker, user_id: str, notification_id: str) -> bool:
    async with session_factory() as db:
        notification = await notification_crud.get(db, notification_id)
        if notification is None or notification.user_id != user_id:
            return False
        await notification_crud.mark_read(db, notification)
        await db.commit()
    return True


@router.websocket("/ws/notifications/{user_id}")
async def notifications_socket(
    websocket: WebSocket,
    user_id: str,
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Live notification feed

    Client frames: `{"type": "ping"}` and
    `{"type": "notification:read", "notification_id": ...}`.
    """
    await connection_manager.connect_user(user_id, websocket)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            kind = message.get("type") if isinstance(message, dict) else None
            if kind == "ping":
                await websocket.send_json({"type": "pong"})
            elif kind == "notification:read":
                notification_id = message.get("notification_id")
                ok = bool(notification_id) and await _mark_read(session_factory, user_id, notification_id)
                await websocket.send_json({
                    "type": "notification:read",
                    "notification_id": notification_id,
                    "success": ok,
                })
            else:
                await websocket.send_json({"type": "error", "message": f"Unknown message type: {kind}"})
    except WebSocketDisconnect:
        pass
    finally:
        connection_manager.disconnect_user(user_id, websocket)


@router.websocket("/ws/interviews/{room_id}")
async def interview_socket(
    websocket: WebSocket,
    room_id: str,
    peer_id: str = Query(..., min_length=1),
):
    """Relay WebRTC offer/answer/ice-candidate frames between room peers"""
    await connection_manager.join_room(room_id, peer_id, websocket)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                logger.debug("Dropping non-JSON frame from {} in {}", peer_id, room_id)
                continue
            if isinstance(message, dict):
                await connection_manager.relay(room_id, peer_id, message)
    except WebSocketDisconnect:
        pass
    finally:
        await connection_manager.leave_room(room_id, peer_id, websocket)
