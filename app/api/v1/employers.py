"""
Employer API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import (
    success_response,
    paged_response,
    page_offset,
    ResponseModel,
    PagedResponseModel,
    MessageResponse,
)
from app.core.exceptions import NotFoundException, ConflictException
from app.crud import employer_crud
from app.models.employer import EmployerCreate, EmployerUpdate, EmployerResponse

router = APIRouter()


@router.get("", summary="List employers", response_model=PagedResponseModel[EmployerResponse])
async def get_employers(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    skip = page_offset(page, page_size)
    employers = await employer_crud.get_multi(db, skip=skip, limit=page_size)
    total = await employer_crud.count(db)
    items = [EmployerResponse.model_validate(e).model_dump() for e in employers]
    return paged_response(items, total, page, page_size)


@router.post("", summary="Create employer", response_model=ResponseModel[EmployerResponse])
async def create_employer(
    data: EmployerCreate,
    db: AsyncSession = Depends(get_db),
):
    if await employer_crud.get_by_name(db, data.company_name):
        raise ConflictException(f"Employer '{data.company_name}' already exists")

    employer = await employer_crud.create(db, obj_in=data)
    return success_response(
        data=EmployerResponse.model_validate(employer).model_dump(),
        message="Employer created"
    )


@router.get("/{employer_id}", summary="Get employer", response_model=ResponseModel[EmployerResponse])
async def get_employer(
    employer_id: str,
    db: AsyncSession = Depends(get_db),
):
    employer = await employer_crud.get(db, employer_id)
    if not employer:
        raise NotFoundException(f"Employer not found: {employer_id}")
    return success_response(data=EmployerResponse.model_validate(employer).model_dump())


@router.patch("/{employer_id}", summary="Update employer", response_model=ResponseModel[EmployerResponse])
async def update_employer(
    employer_id: str,
    data: EmployerUpdate,
    db: AsyncSession = Depends(get_db),
):
    employer = await employer_crud.get(db, employer_id)
    if not employer:
        raise NotFoundException(f"Employer not found: {employer_id}")

    if data.company_name and data.company_name != employer.company_name:
        if await employer_crud.get_by_name(db, data.company_name):
            raise ConflictException(f"Employer '{data.company_name}' already exists")

    employer = await employer_crud.update(db, db_obj=employer, obj_in=data)
    return success_response(
        data=EmployerResponse.model_validate(employer).model_dump(),
        message="Employer updated"
    )


@router.delete("/{employer_id}", summary="Delete employer", response_model=MessageResponse)
async def delete_employer(
    employer_id: str,
    db: AsyncSession = Depends(get_db),
):
    if not await employer_crud.delete(db, id=employer_id):
        raise NotFoundException(f"Employer not found: {employer_id}")
    return success_response(message="Employer deleted")
