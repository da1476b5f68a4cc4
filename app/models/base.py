"""
Common model pieces

Table models combine `TimestampMixin`, `IDMixin` and `SQLModelBase`;
request/response schemas derive from `SQLModelBase` alone.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes

    aiosqlite returns stored timestamps without tzinfo, and comparing
    those to `utcnow()` raises.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SQLModelBase(SQLModel):
    # schemas validate straight from ORM rows and trim incoming strings
    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
        "str_strip_whitespace": True,
    }


class IDMixin(SQLModel):
    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)


class TimestampMixin(SQLModel):
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


class TimestampResponse(SQLModelBase):
    id: str
    created_at: datetime
    updated_at: datetime
