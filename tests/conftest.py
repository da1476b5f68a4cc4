"""
Test fixtures: in-memory database, HTTP client and a data factory
"""
from typing import AsyncGenerator, Optional
from dataclasses import dataclass, field

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app import models  # noqa: F401
from app.core.database import get_db, get_session_factory
from app.main import create_app


# ========== data factory ==========

@dataclass
class DataFactory:
    """
    Creates test data through the public API

    Keeps request payloads in one place so schema changes touch one file
    """
    client: AsyncClient
    _counter: int = field(default=0, repr=False)

    def _next_id(self) -> str:
        self._counter += 1
        return str(self._counter)

    async def _post(self, url: str, data: dict) -> dict:
        resp = await self.client.post(url, json=data)
        assert resp.status_code == 200, f"POST {url} failed: {resp.text}"
        return resp.json()["data"]

    async def create_employer(self, **overrides) -> dict:
        suffix = self._next_id()
        return await self._post("/api/v1/employers", {
            "company_name": f"Test Company {suffix}",
            "industry": "Information Technology",
            "company_size": "51-200",
            "contact_email": f"hr{suffix}@company.sa",
            **overrides
        })

    async def create_candidate(self, **overrides) -> dict:
        suffix = self._next_id()
        return await self._post("/api/v1/candidates", {
            "full_name": f"Candidate {suffix}",
            "email": f"candidate{suffix}@example.com",
            "years_of_experience": 3,
            "technical_skills": ["Python", "FastAPI", "SQL"],
            **overrides
        })

    async def create_job(self, employer_id: Optional[str] = None, **overrides) -> dict:
        if employer_id is None:
            employer_id = (await self.create_employer())["id"]
        suffix = self._next_id()
        return await self._post("/api/v1/jobs", {
            "employer_id": employer_id,
            "title": f"Backend Engineer {suffix}",
            "location": "Riyadh",
            "salary_min": 15000,
            "salary_max": 25000,
            "required_skills": ["Python", "FastAPI", "Docker", "SQL"],
            "status": "active",
            **overrides
        })

    async def create_application(
        self,
        job_id: Optional[str] = None,
        candidate_id: Optional[str] = None,
        **overrides
    ) -> dict:
        if job_id is None:
            job_id = (await self.create_job())["id"]
        if candidate_id is None:
            candidate_id = (await self.create_candidate())["id"]
        return await self._post("/api/v1/applications", {
            "job_id": job_id,
            "candidate_id": candidate_id,
            **overrides
        })

    async def create_ab_test(self, employer_id: Optional[str] = None, **overrides) -> dict:
        if employer_id is None:
            employer_id = (await self.create_employer())["id"]
        suffix = self._next_id()
        return await self._post("/api/v1/ab-tests", {
            "employer_id": employer_id,
            "name": f"Subject test {suffix}",
            "variants": [
                {"variant_name": "A", "email_subject": "Your next role", "traffic_allocation": 50},
                {"variant_name": "B", "email_subject": "We'd like to meet you", "traffic_allocation": 50},
            ],
            **overrides
        })

    async def create_template(self, employer_id: Optional[str] = None, **overrides) -> dict:
        if employer_id is None:
            employer_id = (await self.create_employer())["id"]
        suffix = self._next_id()
        return await self._post("/api/v1/templates", {
            "employer_id": employer_id,
            "name": f"Outreach {suffix}",
            "type": "custom",
            "subject": "Hello {{candidate_name}}",
            "body_html": "<p>{{company_name}} is hiring a {{job_title}}.</p>",
            **overrides
        })

    async def record_workforce(self, employer_id: str, total: int, saudi: int, sector: str = "retail") -> dict:
        resp = await self.client.put(
            f"/api/v1/compliance/{employer_id}/workforce",
            json={"total_employees": total, "saudi_employees": saudi, "activity_sector": sector},
        )
        assert resp.status_code == 200, f"Workforce update failed: {resp.text}"
        return resp.json()["data"]


# ========== database / client ==========

@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """
    Fresh in-memory database per test

    StaticPool keeps one connection so every session sees the same data
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Session for service and CRUD level tests"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client against the app

    Each request gets its own session from the test database, like get_db
    """
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def factory(client: AsyncClient) -> DataFactory:
    return DataFactory(client=client)
