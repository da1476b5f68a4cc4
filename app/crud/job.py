"""
Job and application CRUD
"""
from typing import Optional, List, Dict
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job import Job, Application, JobStatus, ApplicationStatus
from app.models.employer import Candidate
from .base import CRUDBase


def skill_match_score(candidate_skills: List[str], required_skills: List[str]) -> Optional[int]:
    """Share of required skills the candidate lists, case-insensitive"""
    if not required_skills:
        return None
    have = {s.strip().lower() for s in candidate_skills or []}
    need = {s.strip().lower() for s in required_skills}
    return round(len(have & need) / len(need) * 100)


class CRUDJob(CRUDBase[Job]):

    async def get_active_by_employer(
        self,
        db: AsyncSession,
        employer_id: str,
    ) -> List[Job]:
        result = await db.execute(
            select(self.model)
            .where(self.model.employer_id == employer_id, self.model.status == JobStatus.ACTIVE.value)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_by_status(self, db: AsyncSession, employer_id: str) -> Dict[str, int]:
        result = await db.execute(
            select(self.model.status, func.count())
            .where(self.model.employer_id == employer_id)
            .group_by(self.model.status)
        )
        counts = {status.value: 0 for status in JobStatus}
        counts.update({status: total for status, total in result.all()})
        return counts

    async def increment_views(self, db: AsyncSession, job: Job) -> Job:
        job.view_count += 1
        await db.flush()
        return job


class CRUDApplication(CRUDBase[Application]):

    async def get_by_candidate_and_job(
        self,
        db: AsyncSession,
        candidate_id: str,
        job_id: str,
    ) -> Optional[Application]:
        return await self.get_by(db, self.model.candidate_id == candidate_id, self.model.job_id == job_id)

    async def create_for_job(
        self,
        db: AsyncSession,
        *,
        job: Job,
        candidate: Candidate,
        cover_letter: Optional[str] = None,
    ) -> Application:
        """Create the application and bump the job's counter"""
        application = await self.create(db, obj_in={
            "candidate_id": candidate.id,
            "job_id": job.id,
            "employer_id": job.employer_id,
            "cover_letter": cover_letter,
            "match_score": skill_match_score(candidate.technical_skills, job.required_skills),
        })
        job.application_count += 1
        await db.flush()
        return application

    async def count_by_status(
        self,
        db: AsyncSession,
        *,
        employer_id: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> Dict[str, int]:
        query = select(self.model.status, func.count()).group_by(self.model.status)
        if employer_id:
            query = query.where(self.model.employer_id == employer_id)
        if job_id:
            query = query.where(self.model.job_id == job_id)
        result = await db.execute(query)
        counts = {status.value: 0 for status in ApplicationStatus}
        counts.update({status: total for status, total in result.all()})
        return counts

    async def average_match_score(self, db: AsyncSession, employer_id: str) -> Optional[float]:
        result = await db.execute(
            select(func.avg(self.model.match_score)).where(self.model.employer_id == employer_id)
        )
        value = result.scalar()
        return round(float(value), 2) if value is not None else None


job_crud = CRUDJob(Job)
application_crud = CRUDApplication(Application)
