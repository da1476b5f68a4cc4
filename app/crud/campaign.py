"""
Email campaign CRUD
"""
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.campaign import EmailCampaign, CampaignExecution
from .base import CRUDBase


class CRUDCampaign(CRUDBase[EmailCampaign]):

    async def get_by_employer(
        self,
        db: AsyncSession,
        employer_id: str,
        *,
        skip: int = 0,
        limit: int = 20,
    ) -> List[EmailCampaign]:
        return await self.get_multi(
            db, skip=skip, limit=limit, filters=[self.model.employer_id == employer_id]
        )

    async def count_by_employer(self, db: AsyncSession, employer_id: str) -> int:
        return await self.count(db, filters=[self.model.employer_id == employer_id])


class CRUDCampaignExecution(CRUDBase[CampaignExecution]):

    async def get_by_campaign(
        self,
        db: AsyncSession,
        campaign_id: str,
        *,
        skip: int = 0,
        limit: int = 50,
    ) -> List[CampaignExecution]:
        return await self.get_multi(
            db, skip=skip, limit=limit, filters=[self.model.campaign_id == campaign_id]
        )


campaign_crud = CRUDCampaign(EmailCampaign)
execution_crud = CRUDCampaignExecution(CampaignExecution)
