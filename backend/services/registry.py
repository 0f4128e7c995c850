"""Existence checks against the store and product registries."""
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.product import Product
from db.store import Store


async def find_store(db: AsyncSession, store_id: UUID) -> Optional[Store]:
    res = await db.execute(select(Store).where(Store.id == store_id))
    return res.scalar_one_or_none()


async def stores_exist_all(db: AsyncSession, store_ids: Iterable[UUID]) -> bool:
    """True iff every id resolves to a store. Vacuously true for no ids."""
    wanted = set(store_ids)
    if not wanted:
        return True
    res = await db.execute(select(func.count()).select_from(Store).where(Store.id.in_(wanted)))
    return int(res.scalar_one() or 0) == len(wanted)


async def find_product(db: AsyncSession, product_id: UUID) -> Optional[Product]:
    res = await db.execute(select(Product).where(Product.id == product_id))
    return res.scalar_one_or_none()
