"""
Employer and candidate CRUD
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employer import Employer, Candidate
from .base import CRUDBase


class CRUDEmployer(CRUDBase[Employer]):

    async def get_by_name(self, db: AsyncSession, company_name: str) -> Optional[Employer]:
        return await self.get_by(db, self.model.company_name == company_name)


class CRUDCandidate(CRUDBase[Candidate]):

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[Candidate]:
        return await self.get_by(db, self.model.email == email)

    async def increment_views(self, db: AsyncSession, candidate: Candidate) -> Candidate:
        candidate.profile_views += 1
        await db.flush()
        return candidate


employer_crud = CRUDEmployer(Employer)
candidate_crud = CRUDCandidate(Candidate)
