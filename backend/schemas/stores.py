from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from schemas.common import CamelModel


class StoreCreate(CamelModel):
    name: str = Field(max_length=255)
    location: str = Field(max_length=255)

    @field_validator("name", "location")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required and cannot be empty")
        return v


class StoreRead(CamelModel):
    id: UUID
    name: str
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
