"""
Notification delivery: persist, then push to the user's live sockets
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.realtime import connection_manager
from app.crud.notification import notification_crud
from app.models.notification import (
    Notification,
    NotificationResponse,
    NotificationType,
    NotificationPriority,
)


async def notify(
    db: AsyncSession,
    *,
    user_id: str,
    type: NotificationType,
    title: str,
    message: str,
    priority: NotificationPriority = NotificationPriority.NORMAL,
    action_url: Optional[str] = None,
    data: Optional[dict] = None,
) -> Notification:
    notification = await notification_crud.create(db, obj_in={
        "user_id": user_id,
        "type": type,
        "title": title,
        "message": message,
        "priority": priority,
        "action_url": action_url,
        "data": data,
    })
    payload = NotificationResponse.model_validate(notification).model_dump(mode="json")
    delivered = await connection_manager.send_to_user(user_id, {"type": "notification", "notification": payload})
    logger.debug("Notification {} for {} pushed to {} sockets", notification.id, user_id, delivered)
    return notification
