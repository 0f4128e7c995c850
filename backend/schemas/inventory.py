from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from db.inventory.movement import MovementType
from schemas.common import CamelModel
from schemas.stores import StoreRead


class InventoryTransferCreate(CamelModel):
    product_id: UUID
    source_store_id: UUID
    target_store_id: UUID
    # sign is checked by the transfer service (400 invalid_quantity, not 422)
    quantity: int
    min_stock: Optional[int] = Field(default=None, ge=0)


class InventoryStockOut(CamelModel):
    id: UUID
    product_id: UUID
    store_id: UUID
    quantity: int
    min_stock: int
    is_low_stock: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    store: Optional[StoreRead] = None


class InventoryMovementOut(CamelModel):
    id: UUID
    product_id: UUID
    source_store_id: Optional[UUID] = None
    target_store_id: Optional[UUID] = None
    quantity: int
    type: MovementType
    timestamp: datetime
