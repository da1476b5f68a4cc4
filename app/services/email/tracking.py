"""
Open / click / reply tracking

Repeat opens and clicks bump the counters on the email row; only the
first of each is counted towards candidate engagement and A/B variants.
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.exceptions import NotFoundException
from app.crud.ab_test import ab_test_crud
from app.crud.email import email_analytics_crud
from app.crud.engagement import engagement_crud
from app.models.ab_test import VariantEvent
from app.models.email import EmailAnalytics
from app.models.engagement import InteractionType


async def _get_email(db: AsyncSession, tracking_id: str) -> EmailAnalytics:
    email = await email_analytics_crud.get_by_tracking_id(db, tracking_id)
    if email is None:
        raise NotFoundException(f"Unknown tracking id: {tracking_id}")
    return email


async def _credit(
    db: AsyncSession,
    email: EmailAnalytics,
    interaction: InteractionType,
    variant_event: Optional[VariantEvent] = None,
) -> None:
    if email.candidate_id:
        await engagement_crud.record_interaction(
            db,
            candidate_id=email.candidate_id,
            employer_id=email.employer_id,
            interaction=interaction,
        )
    if variant_event and email.ab_test_variant_id:
        variant = await ab_test_crud.get_variant_by_id(db, email.ab_test_variant_id)
        if variant is not None:
            await ab_test_crud.record_event(db, variant=variant, event=variant_event)


async def track_open(db: AsyncSession, tracking_id: str) -> EmailAnalytics:
    email = await _get_email(db, tracking_id)
    if await email_analytics_crud.mark_opened(db, email):
        await _credit(db, email, InteractionType.EMAIL_OPENED, VariantEvent.OPENED)
        logger.debug("Email {} opened", tracking_id)
    return email


async def track_click(db: AsyncSession, tracking_id: str) -> EmailAnalytics:
    email = await _get_email(db, tracking_id)
    was_opened = email.opened_at is not None
    if await email_analytics_crud.mark_clicked(db, email):
        if not was_opened:
            await _credit(db, email, InteractionType.EMAIL_OPENED, VariantEvent.OPENED)
        await _credit(db, email, InteractionType.LINK_CLICKED, VariantEvent.CLICKED)
        logger.debug("Email {} clicked", tracking_id)
    return email


async def track_reply(db: AsyncSession, tracking_id: str) -> EmailAnalytics:
    email = await _get_email(db, tracking_id)
    if await email_analytics_crud.mark_replied(db, email):
        await _credit(db, email, InteractionType.RESPONDED, VariantEvent.CONVERTED)
        logger.debug("Email {} replied", tracking_id)
    return email
