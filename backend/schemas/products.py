from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from schemas.common import CamelModel


def _strip(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty")
    return v


class ProductInventoryCreate(CamelModel):
    store_id: UUID
    quantity: int = Field(ge=0)
    min_stock: int = Field(ge=0)


class ProductCreate(CamelModel):
    name: str = Field(max_length=255)
    description: str
    category: str = Field(max_length=100)
    price: float = Field(gt=0)
    sku: str = Field(max_length=100)
    inventory: ProductInventoryCreate

    @field_validator("name", "description", "category", "sku")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        return _strip(v or "")


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    price: Optional[float] = Field(default=None, gt=0)
    sku: Optional[str] = Field(default=None, max_length=100)

    @field_validator("name", "description", "category", "sku")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


class ProductInventoryRead(CamelModel):
    id: UUID
    store_id: UUID
    quantity: int
    min_stock: int
    is_low_stock: bool


class ProductRead(CamelModel):
    id: UUID
    sku: str
    name: str
    description: str
    category: str
    price: float
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    inventories: Optional[List[ProductInventoryRead]] = None
    total_stock: Optional[int] = None


class ProductPage(CamelModel):
    rows: List[ProductRead]
    count: int
