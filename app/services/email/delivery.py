"""
Email delivery

There is no outbound provider: the transport logs the message. Every
send is still gated by the sender domain's warmup schedule, recorded as
an EmailAnalytics row with a tracking id, and counted against the
candidate's engagement.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.config import settings
from app.core.exceptions import BadRequestException, NotFoundException
from app.crud.ab_test import ab_test_crud
from app.crud.email import email_analytics_crud, template_crud
from app.crud.employer import employer_crud, candidate_crud
from app.crud.engagement import engagement_crud
from app.crud.warmup import warmup_crud
from app.models.ab_test import VariantEvent
from app.models.email import EmailAnalytics, EmailType
from app.models.engagement import InteractionType
from .templates import render


def default_sending_domain() -> str:
    return settings.mail_from.rsplit("@", 1)[-1].lower()


def tracking_pixel(tracking_id: str) -> str:
    url = f"{settings.app_base_url}/api/v1/analytics/track/open/{tracking_id}"
    return f'<img src="{url}" width="1" height="1" alt="" style="display:none" />'


async def _transport(to: str, subject: str, html: str, sender: str) -> str:
    """Mock transport: log and hand back a message id"""
    message_id = f"dev-{uuid.uuid4().hex[:16]}"
    logger.info("Email {} from {} to {}: {}", message_id, sender, to, subject)
    return message_id


async def send_email(
    db: AsyncSession,
    *,
    employer_id: str,
    candidate_id: str,
    template_id: Optional[str] = None,
    subject: Optional[str] = None,
    body_html: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
    email_type: str = EmailType.CUSTOM.value,
    sending_domain: Optional[str] = None,
    campaign_id: Optional[str] = None,
    ab_test_variant_id: Optional[str] = None,
) -> EmailAnalytics:
    """
    Render and send one email to a candidate

    Either `template_id` or an inline `subject` + `body_html` is required.
    Raises BadRequestException when the warmup cap for the domain is hit.
    """
    employer = await employer_crud.get(db, employer_id)
    if not employer:
        raise NotFoundException(f"Employer not found: {employer_id}")
    candidate = await candidate_crud.get(db, candidate_id)
    if not candidate:
        raise NotFoundException(f"Candidate not found: {candidate_id}")

    template = None
    if template_id:
        template = await template_crud.get(db, template_id)
        if not template or template.employer_id != employer_id:
            raise NotFoundException(f"Template not found: {template_id}")
        subject = template.subject
        body_html = template.body_html
        email_type = template.type
    if not subject or not body_html:
        raise BadRequestException("Either template_id or subject and body_html are required")

    domain = (sending_domain or default_sending_domain()).lower()
    gate = await warmup_crud.can_send(db, employer_id, domain)
    if not gate["allowed"]:
        raise BadRequestException(gate["reason"], data={"domain": domain, "remaining": gate["remaining"]})

    merge = {
        "candidate_name": candidate.full_name,
        "candidate_email": candidate.email,
        "company_name": employer.company_name,
        **(data or {}),
    }
    rendered_subject = render(subject, merge)
    tracking_id = uuid.uuid4().hex
    rendered_html = render(body_html, merge) + tracking_pixel(tracking_id)

    await _transport(candidate.email, rendered_subject, rendered_html, settings.mail_from)

    email = await email_analytics_crud.create(db, obj_in={
        "employer_id": employer_id,
        "candidate_id": candidate_id,
        "campaign_id": campaign_id,
        "ab_test_variant_id": ab_test_variant_id,
        "email_type": email_type,
        "recipient_email": candidate.email,
        "subject": rendered_subject,
        "tracking_id": tracking_id,
        "sending_domain": domain,
        "sent_at": datetime.now(timezone.utc),
    })
    await warmup_crud.record_send(db, employer_id, domain)
    await engagement_crud.record_interaction(
        db,
        candidate_id=candidate_id,
        employer_id=employer_id,
        interaction=InteractionType.EMAIL_SENT,
    )
    if ab_test_variant_id:
        variant = await ab_test_crud.get_variant_by_id(db, ab_test_variant_id)
        if variant is not None:
            await ab_test_crud.record_event(db, variant=variant, event=VariantEvent.SENT)
    if template is not None:
        await template_crud.increment_usage(db, template)
    return email
