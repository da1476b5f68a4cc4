"""
Real-time channel

In-process registry of live websockets. Users get a personal room
`user:{id}` for notifications; interview rooms relay WebRTC signaling
(offer / answer / ice-candidate) between peers.
"""
from typing import Any, Dict, Iterable, List, Optional, Set

from fastapi import WebSocket
from loguru import logger

RELAYED_SIGNALS = ("offer", "answer", "ice-candidate", "chat")


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


class ConnectionManager:
    """
    Websocket registry

    All access happens on the event loop, so plain dicts are enough.
    """

    def __init__(self):
        self._users: Dict[str, Set[WebSocket]] = {}
        self._rooms: Dict[str, Dict[str, WebSocket]] = {}

    # ========== notification rooms ==========

    async def connect_user(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self._users.setdefault(user_id, set()).add(websocket)
        logger.info("WS connected: {} ({} sockets)", user_room(user_id), len(self._users[user_id]))
        await websocket.send_json({"type": "connected", "user_id": user_id})

    def disconnect_user(self, user_id: str, websocket: WebSocket) -> None:
        sockets = self._users.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._users[user_id]
        logger.info("WS disconnected: {}", user_room(user_id))

    async def _safe_send(self, websocket: WebSocket, message: Dict[str, Any]) -> bool:
        try:
            await websocket.send_json(message)
            return True
        except Exception as exc:
            logger.warning("WS send failed: {}", exc)
            return False

    async def send_to_user(self, user_id: str, message: Dict[str, Any]) -> int:
        """Deliver to every socket of a user; returns sockets reached"""
        delivered = 0
        for websocket in list(self._users.get(user_id, ())):
            if await self._safe_send(websocket, message):
                delivered += 1
            else:
                self.disconnect_user(user_id, websocket)
        return delivered

    async def send_to_users(self, user_ids: Iterable[str], message: Dict[str, Any]) -> int:
        delivered = 0
        for user_id in set(user_ids):
            delivered += await self.send_to_user(user_id, message)
        return delivered

    async def broadcast(self, message: Dict[str, Any]) -> int:
        return await self.send_to_users(list(self._users.keys()), message)

    def is_user_online(self, user_id: str) -> bool:
        return bool(self._users.get(user_id))

    def online_count(self) -> int:
        return len(self._users)

    # ========== interview rooms ==========

    def room_peers(self, room_id: str) -> List[str]:
        return list(self._rooms.get(room_id, {}).keys())

    async def join_room(self, room_id: str, peer_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        room = self._rooms.setdefault(room_id, {})
        others = [p for p in room if p != peer_id]
        room[peer_id] = websocket
        logger.info("Peer {} joined room {} ({} peers)", peer_id, room_id, len(room))
        await websocket.send_json({"type": "room-joined", "room_id": room_id, "peer_id": peer_id, "peers": others})
        await self._send_room(room_id, {"type": "peer-joined", "peer_id": peer_id}, exclude=peer_id)

    async def leave_room(self, room_id: str, peer_id: str, websocket: Optional[WebSocket] = None) -> None:
        """
        Remove a peer and tell the others

        With `websocket`, only that socket is removed; a peer that already
        reconnected under the same id keeps its newer socket.
        """
        room = self._rooms.get(room_id)
        if not room or peer_id not in room:
            return
        if websocket is not None and room[peer_id] is not websocket:
            return
        self._evict(room_id, peer_id)
        logger.info("Peer {} left room {}", peer_id, room_id)
        await self._send_room(room_id, {"type": "peer-left", "peer_id": peer_id})

    def _evict(self, room_id: str, peer_id: str) -> None:
        room = self._rooms.get(room_id, {})
        room.pop(peer_id, None)
        if not room:
            self._rooms.pop(room_id, None)

    async def _send_room(self, room_id: str, message: Dict[str, Any], exclude: Optional[str] = None) -> int:
        delivered = 0
        for peer_id, websocket in list(self._rooms.get(room_id, {}).items()):
            if peer_id == exclude:
                continue
            if await self._safe_send(websocket, message):
                delivered += 1
            elif self._rooms.get(room_id, {}).get(peer_id) is websocket:
                logger.info("Dropping dead socket of peer {} in room {}", peer_id, room_id)
                self._evict(room_id, peer_id)
        return delivered

    async def relay(self, room_id: str, from_peer: str, message: Dict[str, Any]) -> int:
        """
        Forward a signaling frame

        Frames carrying `to` go to that peer only, others to every other
        peer in the room. Unknown frame types are dropped.
        """
        if message.get("type") not in RELAYED_SIGNALS:
            return 0
        outgoing = {**message, "from": from_peer}
        target = message.get("to")
        if target:
            websocket = self._rooms.get(room_id, {}).get(target)
            if websocket is None:
                return 0
            if await self._safe_send(websocket, outgoing):
                return 1
            self._evict(room_id, target)
            return 0
        return await self._send_room(room_id, outgoing, exclude=from_peer)


connection_manager = ConnectionManager()
