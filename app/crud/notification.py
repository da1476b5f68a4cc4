"""
Notification CRUD
"""
from datetime import datetime, timezone
from typing import List
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from .base import CRUDBase


class CRUDNotification(CRUDBase[Notification]):

    async def get_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        *,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Notification]:
        filters = [self.model.user_id == user_id]
        if unread_only:
            filters.append(self.model.is_read == False)
        return await self.get_multi(db, skip=skip, limit=limit, filters=filters)

    async def count_for_user(self, db: AsyncSession, user_id: str, *, unread_only: bool = False) -> int:
        filters = [self.model.user_id == user_id]
        if unread_only:
            filters.append(self.model.is_read == False)
        return await self.count(db, filters=filters)

    async def mark_read(self, db: AsyncSession, notification: Notification) -> Notification:
        if not notification.is_read:
            now = datetime.now(timezone.utc)
            notification.is_read = True
            notification.read_at = now
            notification.updated_at = now
            await db.flush()
            await db.refresh(notification)
        return notification

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int:
        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(self.model)
            .where(self.model.user_id == user_id, self.model.is_read == False)
            .values(is_read=True, read_at=now, updated_at=now)
        )
        await db.flush()
        return result.rowcount or 0


notification_crud = CRUDNotification(Notification)
