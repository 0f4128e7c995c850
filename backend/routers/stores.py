from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_async_session
from routers.inventory import serialize_stock
from schemas.inventory import InventoryStockOut
from schemas.stores import StoreCreate, StoreRead
from services import stores as store_service

router = APIRouter()


@router.get("/stores", response_model=List[StoreRead])
async def list_stores(db: AsyncSession = Depends(get_async_session)):
    items = await store_service.list_stores(db)
    return [StoreRead(**s.to_schema) for s in items]


@router.post("/stores", response_model=StoreRead, status_code=status.HTTP_201_CREATED)
async def create_store(
    payload: StoreCreate,
    db: AsyncSession = Depends(get_async_session),
):
    store = await store_service.create_store(db, payload)
    return StoreRead(**store.to_schema)


@router.get("/stores/{store_id}", response_model=StoreRead)
async def get_store(
    store_id: UUID,
    db: AsyncSession = Depends(get_async_session),
):
    store = await store_service.get_store(db, store_id)
    return StoreRead(**store.to_schema)


@router.get("/stores/{store_id}/inventory", response_model=List[InventoryStockOut])
async def get_store_inventory(
    store_id: UUID,
    db: AsyncSession = Depends(get_async_session),
):
    """Every stock record of the store, with the store embedded. 404 when there are none."""
    records = await store_service.get_store_inventory(db, store_id)
    return [serialize_stock(s) for s in records]
