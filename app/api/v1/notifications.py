"""
Notification API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import (
    success_response,
    paged_response,
    page_offset,
    ResponseModel,
    PagedResponseModel,
    DictResponse,
    MessageResponse,
)
from app.core.exceptions import NotFoundException, ForbiddenException
from app.core.realtime import connection_manager
from app.crud import notification_crud
from app.models.notification import Notification, NotificationCreate, NotificationResponse
from app.services.notifications import notify

router = APIRouter()


async def _get_owned(db: AsyncSession, notification_id: str, user_id: str) -> Notification:
    notification = await notification_crud.get(db, notification_id)
    if not notification:
        raise NotFoundException(f"Notification not found: {notification_id}")
    if notification.user_id != user_id:
        raise ForbiddenException("Notification belongs to another user")
    return notification


@router.post("", summary="Send notification", response_model=ResponseModel[NotificationResponse])
async def send_notification(
    data: NotificationCreate,
    db: AsyncSession = Depends(get_db),
):
    """Store the notification and push it to the user's open sockets"""
    notification = await notify(
        db,
        user_id=data.user_id,
        type=data.type,
        title=data.title,
        message=data.message,
        priority=data.priority,
        action_url=data.action_url,
        data=data.data,
    )
    return success_response(
        data=NotificationResponse.model_validate(notification).model_dump(),
        message="Notification sent"
    )


@router.get("", summary="List notifications", response_model=PagedResponseModel[NotificationResponse])
async def get_notifications(
    user_id: str = Query(..., description="Recipient ID"),
    unread_only: bool = Query(False, description="Only unread"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    notifications = await notification_crud.get_for_user(
        db, user_id, unread_only=unread_only, skip=page_offset(page, page_size), limit=page_size
    )
    total = await notification_crud.count_for_user(db, user_id, unread_only=unread_only)
    items = [NotificationResponse.model_validate(n).model_dump() for n in notifications]
    return paged_response(items, total, page, page_size)


@router.get("/unread-count", summary="Unread count", response_model=DictResponse)
async def get_unread_count(
    user_id: str = Query(..., description="Recipient ID"),
    db: AsyncSession = Depends(get_db),
):
    count = await notification_crud.count_for_user(db, user_id, unread_only=True)
    return success_response(data={
        "unread": count,
        "online": connection_manager.is_user_online(user_id),
    })


@router.post("/read-all", summary="Mark all as read", response_model=DictResponse)
async def mark_all_read(
    user_id: str = Query(..., description="Recipient ID"),
    db: AsyncSession = Depends(get_db),
):
    updated = await notification_crud.mark_all_read(db, user_id)
    return success_response(data={"updated": updated})


@router.post("/{notification_id}/read", summary="Mark as read", response_model=ResponseModel[NotificationResponse])
async def mark_read(
    notification_id: str,
    user_id: str = Query(..., description="Recipient ID"),
    db: AsyncSession = Depends(get_db),
):
    notification = await _get_owned(db, notification_id, user_id)
    notification = await notification_crud.mark_read(db, notification)
    return success_response(data=NotificationResponse.model_validate(notification).model_dump())


@router.delete("/{notification_id}", summary="Delete notification", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    user_id: str = Query(..., description="Recipient ID"),
    db: AsyncSession = Depends(get_db),
):
    await _get_owned(db, notification_id, user_id)
    await notification_crud.delete(db, id=notification_id)
    return success_response(message="Notification deleted")
