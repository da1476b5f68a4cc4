"""
Warmup schedule bookkeeping
"""
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import warmup_crud, employer_crud


async def _warmup(db: AsyncSession, **kwargs):
    employer = await employer_crud.create(db, obj_in={"company_name": "Najd Tech"})
    return await warmup_crud.create_schedule(
        db, employer_id=employer.id, domain="Mail.Najd.SA", target_volume=100, total_days=2, **kwargs
    )


async def test_create_uses_first_day_limit(db_session: AsyncSession):
    warmup = await _warmup(db_session)
    assert warmup.domain == "mail.najd.sa"
    assert warmup.daily_limit == 10
    assert [entry["limit"] for entry in warmup.schedule] == [10, 100]


async def test_record_send_without_warmup(db_session: AsyncSession):
    assert await warmup_crud.record_send(db_session, "nobody", "mail.najd.sa", 5) is None


async def test_advance_day_closes_out_schedule(db_session: AsyncSession):
    warmup = await _warmup(db_session)
    await warmup_crud.record_send(db_session, warmup.employer_id, "mail.najd.sa", 7)

    warmup = await warmup_crud.advance_day(db_session, warmup)
    assert warmup.current_day == 2
    assert warmup.daily_limit == 100
    assert warmup.sent_today == 0
    assert warmup.total_sent == 7
    assert warmup.schedule[0]["sent"] == 7

    warmup = await warmup_crud.advance_day(db_session, warmup)
    assert warmup.status == "completed"
    assert warmup.completed_at is not None
    assert warmup_crud.progress(warmup)["progress_percent"] == 100.0

    gate = await warmup_crud.can_send(db_session, warmup.employer_id, "mail.najd.sa", 1000)
    assert gate["allowed"] is True
