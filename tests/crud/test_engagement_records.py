"""
Engagement CRUD against the session directly
"""
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import engagement_crud, employer_crud, candidate_crud
from app.models.engagement import InteractionType


async def _pair(db: AsyncSession):
    employer = await employer_crud.create(db, obj_in={"company_name": "Najd Tech"})
    candidate = await candidate_crud.create(db, obj_in={"full_name": "Sara", "email": "sara@example.com"})
    return employer.id, candidate.id


async def test_first_interaction_creates_row(db_session: AsyncSession):
    employer_id, candidate_id = await _pair(db_session)
    assert await engagement_crud.get_pair(db_session, candidate_id, employer_id) is None

    row = await engagement_crud.record_interaction(
        db_session,
        candidate_id=candidate_id,
        employer_id=employer_id,
        interaction=InteractionType.EMAIL_SENT,
    )
    assert row.total_emails_sent == 1
    assert row.first_engagement_at is None

    row = await engagement_crud.record_interaction(
        db_session,
        candidate_id=candidate_id,
        employer_id=employer_id,
        interaction=InteractionType.LINK_CLICKED,
    )
    assert row.total_links_clicked == 1
    assert row.click_rate == 100
    assert row.engagement_score == 40
    assert row.engagement_level == "medium"
    assert row.first_engagement_at is not None

    history = await engagement_crud.trend(db_session, candidate_id, employer_id)
    assert [h.trigger for h in history] == ["email_sent", "link_clicked"]


async def test_recalculate_only_counts_changes(db_session: AsyncSession):
    employer_id, candidate_id = await _pair(db_session)
    row = await engagement_crud.record_interaction(
        db_session,
        candidate_id=candidate_id,
        employer_id=employer_id,
        interaction=InteractionType.EMAIL_SENT,
    )
    assert await engagement_crud.recalculate_all(db_session, employer_id) == 0

    # counters edited outside the scoring path
    row.total_emails_opened = 1
    assert await engagement_crud.recalculate_all(db_session) == 1
    assert row.engagement_score == 30
    assert row.engagement_level == "low"
