"""
Stock ledger: per-(product, store) quantity records.

Reads meant for mutation go through ``lock_stock`` / ``lock_stock_pair``,
which issue ``SELECT ... FOR UPDATE`` and refresh any copy already held in
the session's identity map. The caller owns the transaction.
"""
import uuid
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.database import utcnow
from db.inventory.stock import InventoryStock

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


async def find_by_store(db: AsyncSession, store_id: UUID, *, lock: bool = False) -> List[InventoryStock]:
    stmt = (
        select(InventoryStock)
        .where(InventoryStock.store_id == store_id)
        .options(selectinload(InventoryStock.store))
        .order_by(InventoryStock.created_at.asc())
    )
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def create_stock(
    db: AsyncSession,
    *,
    product_id: UUID,
    store_id: UUID,
    quantity: int,
    min_stock: int = 0,
) -> InventoryStock:
    """Insert a new record. A duplicate (product, store) pair raises IntegrityError."""
    stock = InventoryStock(
        product_id=product_id,
        store_id=store_id,
        quantity=int(quantity),
        min_stock=int(min_stock or 0),
    )
    db.add(stock)
    await db.flush()
    return stock


async def find_low_stock(db: AsyncSession) -> List[InventoryStock]:
    res = await db.execute(
        select(InventoryStock)
        .where(InventoryStock.quantity < InventoryStock.min_stock)
        .options(selectinload(InventoryStock.store))
        .order_by(InventoryStock.store_id, InventoryStock.quantity.asc())
    )
    return list(res.scalars().all())


async def lock_stock(db: AsyncSession, *, product_id: UUID, store_id: UUID) -> Optional[InventoryStock]:
    res = await db.execute(
        select(InventoryStock)
        .where(
            InventoryStock.product_id == product_id,
            InventoryStock.store_id == store_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def lock_stock_pair(
    db: AsyncSession,
    *,
    product_id: UUID,
    store_ids: Iterable[UUID],
) -> Dict[UUID, Optional[InventoryStock]]:
    """
    Lock the records of ``product_id`` at each store, smallest store id first.

    The order depends only on the ids, so two transfers between the same pair
    of stores acquire their row locks in the same sequence whichever way the
    stock moves.
    """
    locked: Dict[UUID, Optional[InventoryStock]] = {}
    for store_id in sorted(set(store_ids), key=str):
        locked[store_id] = await lock_stock(db, product_id=product_id, store_id=store_id)
    return locked


def adjust_quantity(stock: InventoryStock, delta: int) -> InventoryStock:
    """Apply ``delta`` to a locked record. Never takes it below zero."""
    new_quantity = int(stock.quantity or 0) + int(delta)
    if new_quantity < 0:
        raise ValueError(f"stock {stock.id} would go negative ({new_quantity})")
    stock.quantity = new_quantity
    stock.updated_at = utcnow()
    return stock


async def increment_or_create(
    db: AsyncSession,
    *,
    product_id: UUID,
    store_id: UUID,
    quantity: int,
    min_stock: int = 0,
) -> InventoryStock:
    """
    Add ``quantity`` to the (product, store) record, creating it if missing.

    Runs as a single INSERT ... ON CONFLICT DO UPDATE on the unique
    (product_id, store_id) constraint, so a concurrent insert of the same
    pair turns into an increment instead of a duplicate row.
    """
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"stock upsert is not supported on {dialect!r}")

    now = utcnow()
    stock_tbl = InventoryStock.__table__
    upsert = (
        insert(stock_tbl)
        .values(
            id=uuid.uuid4(),
            product_id=product_id,
            store_id=store_id,
            quantity=int(quantity),
            min_stock=int(min_stock or 0),
            created_at=now,
            updated_at=now,
        )
        .on_conflict_do_update(
            index_elements=[stock_tbl.c.product_id, stock_tbl.c.store_id],
            set_={"quantity": stock_tbl.c.quantity + int(quantity), "updated_at": now},
        )
        .returning(stock_tbl.c.id)
    )
    stock_id = (await db.execute(upsert)).scalar_one()

    res = await db.execute(
        select(InventoryStock)
        .where(InventoryStock.id == stock_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one()
