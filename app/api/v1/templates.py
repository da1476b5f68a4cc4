"""
Email template API
"""
from typing import Optional, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import success_response, ResponseModel, DictResponse, MessageResponse
from app.core.exceptions import NotFoundException, ConflictException
from app.crud import template_crud, employer_crud
from app.models.email import (
    EmailTemplate,
    EmailType,
    EmailTemplateCreate,
    EmailTemplateUpdate,
    TemplateRenderRequest,
    TemplatePreviewRequest,
    ContentOptimizeRequest,
    EmailTemplateResponse,
)
from app.services.email import extract_variables, render_template, DEFAULT_TEMPLATES
from app.services.email.optimizer import optimize_content

router = APIRouter()


async def _get_template(db: AsyncSession, template_id: str) -> EmailTemplate:
    template = await template_crud.get(db, template_id)
    if not template:
        raise NotFoundException(f"Template not found: {template_id}")
    return template


def _dump(template: EmailTemplate) -> dict:
    return EmailTemplateResponse.model_validate(template).model_dump()


@router.get("", summary="List templates", response_model=ResponseModel[List[EmailTemplateResponse]])
async def get_templates(
    employer_id: str = Query(..., description="Employer ID"),
    type: Optional[EmailType] = Query(None, description="Template type"),
    active_only: bool = Query(False, description="Only active templates"),
    db: AsyncSession = Depends(get_db),
):
    templates = await template_crud.get_by_employer(
        db, employer_id, type=type.value if type else None, active_only=active_only
    )
    return success_response(data=[_dump(t) for t in templates])


@router.post("", summary="Create template", response_model=ResponseModel[EmailTemplateResponse])
async def create_template(
    data: EmailTemplateCreate,
    db: AsyncSession = Depends(get_db),
):
    if not await employer_crud.get(db, data.employer_id):
        raise NotFoundException(f"Employer not found: {data.employer_id}")
    if await template_crud.get_by_name(db, data.employer_id, data.name):
        raise ConflictException(f"Template '{data.name}' already exists")

    values = data.model_dump()
    values["variables"] = extract_variables(data.subject, data.body_html, data.body_text or "")
    template = await template_crud.create(db, obj_in=values)
    return success_response(data=_dump(template), message="Template created")


@router.post("/defaults", summary="Install default templates", response_model=ResponseModel[List[EmailTemplateResponse]])
async def install_defaults(
    employer_id: str = Query(..., description="Employer ID"),
    db: AsyncSession = Depends(get_db),
):
    """Create the stock templates the employer does not have yet"""
    if not await employer_crud.get(db, employer_id):
        raise NotFoundException(f"Employer not found: {employer_id}")

    created = []
    for default in DEFAULT_TEMPLATES:
        if await template_crud.get_by_name(db, employer_id, default["name"]):
            continue
        template = await template_crud.create(db, obj_in={
            **default,
            "employer_id": employer_id,
            "is_default": True,
            "variables": extract_variables(default["subject"], default["body_html"], default["body_text"]),
        })
        created.append(_dump(template))
    return success_response(data=created, message=f"{len(created)} default templates installed")


@router.post("/preview", summary="Render unsaved content", response_model=DictResponse)
async def preview(data: TemplatePreviewRequest):
    return success_response(data=render_template(data.subject, data.body_html, data.data))


@router.post("/optimize", summary="Suggest content improvements", response_model=DictResponse)
async def optimize(
    data: ContentOptimizeRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Subject, body and send-time suggestions

    Uses the LLM when configured; otherwise heuristics built from the
    employer's past open rates.
    """
    suggestions = await optimize_content(
        db,
        employer_id=data.employer_id,
        subject=data.subject,
        body=data.body,
        email_type=data.email_type.value,
    )
    return success_response(data=suggestions)


@router.get("/{template_id}", summary="Get template", response_model=ResponseModel[EmailTemplateResponse])
async def get_template(template_id: str, db: AsyncSession = Depends(get_db)):
    template = await _get_template(db, template_id)
    return success_response(data=_dump(template))


@router.patch("/{template_id}", summary="Update template", response_model=ResponseModel[EmailTemplateResponse])
async def update_template(
    template_id: str,
    data: EmailTemplateUpdate,
    db: AsyncSession = Depends(get_db),
):
    template = await _get_template(db, template_id)
    if data.name and data.name != template.name:
        if await template_crud.get_by_name(db, template.employer_id, data.name):
            raise ConflictException(f"Template '{data.name}' already exists")

    changes = data.model_dump(exclude_unset=True)
    changes["variables"] = extract_variables(
        changes.get("subject") or template.subject,
        changes.get("body_html") or template.body_html,
        changes.get("body_text") or template.body_text or "",
    )
    template = await template_crud.update(db, db_obj=template, obj_in=changes)
    return success_response(data=_dump(template), message="Template updated")


@router.delete("/{template_id}", summary="Delete template", response_model=MessageResponse)
async def delete_template(template_id: str, db: AsyncSession = Depends(get_db)):
    await _get_template(db, template_id)
    await template_crud.delete(db, id=template_id)
    return success_response(message="Template deleted")


@router.post("/{template_id}/render", summary="Render template", response_model=DictResponse)
async def render(
    template_id: str,
    data: TemplateRenderRequest,
    db: AsyncSession = Depends(get_db),
):
    template = await _get_template(db, template_id)
    rendered = render_template(template.subject, template.body_html, data.data, template.body_text)
    await template_crud.increment_usage(db, template)
    return success_response(data=rendered)
