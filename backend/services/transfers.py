"""
Cross-store stock transfers.

A transfer moves ``quantity`` units of one product from a source store's
stock record to a target store's record and appends one TRANSFER movement,
all inside the caller's session transaction. Any failure after the input
checks rolls the whole unit back, movement included, and re-raises.
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import (
    AppError,
    InsufficientInventoryError,
    InvalidQuantityError,
    InventoryNotFoundError,
    ProductNotFoundError,
    SameStoreTransferError,
    SourceOrTargetStoreNotFoundError,
)
from db.inventory.movement import MovementType
from db.inventory.stock import InventoryStock
from services import movement_log, stock_ledger
from services.registry import find_product, stores_exist_all

logger = logging.getLogger("inventory.transfers")


async def transfer_stock(
    db: AsyncSession,
    *,
    product_id: UUID,
    source_store_id: UUID,
    target_store_id: UUID,
    quantity: int,
    min_stock: Optional[int] = None,
    timestamp: Optional[datetime] = None,
) -> InventoryStock:
    """
    Transfer stock between two stores and return the updated source record.

    Raises:
        SameStoreTransferError: source and target are the same store
        InvalidQuantityError: quantity <= 0
        SourceOrTargetStoreNotFoundError: either store is missing
        ProductNotFoundError: product is missing
        InventoryNotFoundError: the source store has no record for the product
        InsufficientInventoryError: source quantity < requested quantity

    Concurrency:
        - Both records are read with SELECT ... FOR UPDATE
        - Locks are taken in store-id order, not source-then-target
        - A missing target is created through the ledger upsert
    """
    # Input checks: no I/O before these pass.
    if source_store_id == target_store_id:
        raise SameStoreTransferError(source_store_id)
    if quantity is None or int(quantity) <= 0:
        raise InvalidQuantityError(quantity)
    qty = int(quantity)

    try:
        if not await stores_exist_all(db, [source_store_id, target_store_id]):
            raise SourceOrTargetStoreNotFoundError(source_store_id, target_store_id)

        product = await find_product(db, product_id)
        if not product:
            raise ProductNotFoundError(product_id)

        locked = await stock_ledger.lock_stock_pair(
            db,
            product_id=product_id,
            store_ids=[source_store_id, target_store_id],
        )
        source = locked[source_store_id]
        target = locked[target_store_id]

        if source is None:
            raise InventoryNotFoundError(product_id, source_store_id)

        available = int(source.quantity or 0)
        if available < qty:
            raise InsufficientInventoryError(requested=qty, available=available)

        stock_ledger.adjust_quantity(source, -qty)

        if target is not None:
            stock_ledger.adjust_quantity(target, qty)
            await db.flush()
        else:
            await db.flush()
            await stock_ledger.increment_or_create(
                db,
                product_id=product_id,
                store_id=target_store_id,
                quantity=qty,
                min_stock=min_stock or 0,
            )

        await movement_log.record_movement(
            db,
            product_id=product_id,
            source_store_id=source_store_id,
            target_store_id=target_store_id,
            quantity=qty,
            type=MovementType.TRANSFER,
            timestamp=timestamp,
        )

        await db.commit()
    except AppError as e:
        await db.rollback()
        logger.info(
            "stock.transfer.rejected",
            extra={"code": e.code, "product_id": str(product_id), "qty": qty},
        )
        raise
    except Exception:
        await db.rollback()
        logger.exception(
            "stock.transfer.failed",
            extra={
                "product_id": str(product_id),
                "source_store_id": str(source_store_id),
                "target_store_id": str(target_store_id),
                "qty": qty,
            },
        )
        raise

    logger.info(
        "stock.transfer",
        extra={
            "product_id": str(product_id),
            "source_store_id": str(source_store_id),
            "target_store_id": str(target_store_id),
            "qty": qty,
            "source_remaining": int(source.quantity),
        },
    )
    return source
