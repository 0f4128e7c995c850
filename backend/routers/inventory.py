from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_async_session
from db.inventory.movement import InventoryMovement
from db.inventory.stock import InventoryStock
from schemas.inventory import InventoryMovementOut, InventoryStockOut, InventoryTransferCreate
from schemas.stores import StoreRead
from services.alerts import get_low_stock
from services.transfers import transfer_stock

router = APIRouter()


def serialize_stock(s: InventoryStock) -> InventoryStockOut:
    # only embed the store when it was eagerly loaded; a lazy load is not possible here
    store = s.__dict__.get("store")
    return InventoryStockOut(
        id=s.id,
        product_id=s.product_id,
        store_id=s.store_id,
        quantity=int(s.quantity or 0),
        min_stock=int(s.min_stock or 0),
        is_low_stock=s.is_low_stock,
        created_at=s.created_at,
        updated_at=s.updated_at,
        store=StoreRead(**store.to_schema) if store is not None else None,
    )


def serialize_movement(mv: InventoryMovement) -> InventoryMovementOut:
    return InventoryMovementOut(
        id=mv.id,
        product_id=mv.product_id,
        source_store_id=mv.source_store_id,
        target_store_id=mv.target_store_id,
        quantity=int(mv.quantity),
        type=mv.type,
        timestamp=mv.timestamp,
    )


@router.post("/inventory/transfer", response_model=InventoryStockOut)
async def create_transfer(
    payload: InventoryTransferCreate,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Transfer stock of one product between two stores.

    - Decrements the source record and increments (or creates) the target record.
    - Appends one TRANSFER movement to the audit log.
    - Returns the updated source record.
    """
    source = await transfer_stock(
        db,
        product_id=payload.product_id,
        source_store_id=payload.source_store_id,
        target_store_id=payload.target_store_id,
        quantity=payload.quantity,
        min_stock=payload.min_stock,
    )
    return serialize_stock(source)


@router.get("/inventory/alerts", response_model=List[InventoryStockOut])
async def list_low_stock(db: AsyncSession = Depends(get_async_session)):
    records = await get_low_stock(db)
    return [serialize_stock(s) for s in records]
