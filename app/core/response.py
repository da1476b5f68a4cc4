"""
API envelope helpers

All REST endpoints reply with the same four keys:

    {"success": bool, "code": int, "message": str, "data": ...}

List endpoints put a page object in `data`:

    {"items": [...], "total": 42, "page": 1, "page_size": 20, "pages": 3}
"""
import math
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field
from fastapi.encoders import jsonable_encoder

T = TypeVar("T")


class ResponseModel(BaseModel, Generic[T]):
    """Envelope used as `response_model` on every route"""
    success: bool = True
    code: int = Field(default=200, description="Mirrors the HTTP status")
    message: str = "OK"
    data: Optional[T] = None


class PagedData(BaseModel, Generic[T]):
    items: List[T]
    total: int = Field(description="Rows matching the filters")
    page: int
    page_size: int
    pages: int


class PagedResponseModel(ResponseModel[PagedData[T]], Generic[T]):
    pass


class ErrorResponse(ResponseModel[Dict[str, Any]]):
    """Shape of every 4xx/5xx body"""
    success: bool = False
    code: int = 400
    message: str = "Request failed"


DictResponse = ResponseModel[Dict[str, Any]]
ListResponse = ResponseModel[list]
MessageResponse = ResponseModel[None]

# documented on the routers so the OpenAPI schema shows the error envelope
ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Business rule rejected the request"},
    403: {"model": ErrorResponse, "description": "Resource belongs to another employer or user"},
    404: {"model": ErrorResponse, "description": "Resource not found"},
    409: {"model": ErrorResponse, "description": "Duplicate resource"},
    422: {"model": ErrorResponse, "description": "Request body or query failed validation"},
}


def page_offset(page: int, page_size: int) -> int:
    """Row offset for a 1-based page number"""
    return max(page - 1, 0) * page_size


def success_response(data: Any = None, message: str = "OK", code: int = 200) -> dict:
    # models, enums and datetimes inside `data` are encoded here
    return {"success": True, "code": code, "message": message, "data": jsonable_encoder(data)}


def error_response(message: str = "Request failed", code: int = 400, data: Any = None) -> dict:
    return {"success": False, "code": code, "message": message, "data": data}


def paged_response(
    items: list,
    total: int,
    page: int,
    page_size: int,
    message: str = "OK",
) -> dict:
    page_data = {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": math.ceil(total / page_size) if page_size > 0 else 0,
    }
    return success_response(page_data, message=message)
