"""Store registry use-cases."""
import logging
from typing import List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NoInventoriesForStoreError, StoreNotFoundError
from db.inventory.stock import InventoryStock
from db.store import Store
from schemas.stores import StoreCreate
from services.registry import find_store
from services.stock_ledger import find_by_store

logger = logging.getLogger("inventory.stores")


async def create_store(db: AsyncSession, payload: StoreCreate) -> Store:
    store = Store(name=payload.name, location=payload.location)
    db.add(store)
    await db.commit()
    await db.refresh(store)
    logger.info("store.created", extra={"store_id": str(store.id)})
    return store


async def get_store(db: AsyncSession, store_id: UUID) -> Store:
    store = await find_store(db, store_id)
    if not store:
        raise StoreNotFoundError(store_id)
    return store


async def list_stores(db: AsyncSession) -> List[Store]:
    res = await db.execute(select(Store).order_by(func.lower(Store.name).asc()))
    return list(res.scalars().all())


async def get_store_inventory(db: AsyncSession, store_id: UUID) -> List[InventoryStock]:
    await get_store(db, store_id)
    records = await find_by_store(db, store_id)
    if not records:
        raise NoInventoriesForStoreError(store_id)
    return records
