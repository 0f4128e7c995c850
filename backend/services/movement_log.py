"""
Movement log: append-only audit trail of stock movements.

Entries are never updated or deleted. A wrong entry is corrected by
recording a compensating movement.
"""
import logging
from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InvalidMovementTypeError, InvalidQuantityError
from db.database import utcnow
from db.inventory.movement import InventoryMovement, MovementType

logger = logging.getLogger("inventory.movements")


def coerce_movement_type(value: Union[MovementType, str]) -> MovementType:
    if isinstance(value, MovementType):
        return value
    try:
        return MovementType(value)
    except ValueError:
        raise InvalidMovementTypeError(value, [t.value for t in MovementType]) from None


async def record_movement(
    db: AsyncSession,
    *,
    product_id: UUID,
    quantity: int,
    type: Union[MovementType, str],
    source_store_id: Optional[UUID] = None,
    target_store_id: Optional[UUID] = None,
    timestamp: Optional[datetime] = None,
) -> InventoryMovement:
    movement_type = coerce_movement_type(type)
    if int(quantity) <= 0:
        raise InvalidQuantityError(quantity)

    movement = InventoryMovement(
        product_id=product_id,
        source_store_id=source_store_id,
        target_store_id=target_store_id,
        quantity=int(quantity),
        type=movement_type,
        timestamp=timestamp or utcnow(),
    )
    db.add(movement)
    await db.flush()

    logger.info(
        "movement.recorded",
        extra={
            "movement_id": str(movement.id),
            "product_id": str(product_id),
            "type": movement_type.value,
            "qty": int(quantity),
        },
    )
    return movement


async def list_movements(
    db: AsyncSession,
    *,
    product_id: Optional[UUID] = None,
    store_id: Optional[UUID] = None,
    type: Optional[Union[MovementType, str]] = None,
    limit: int = 200,
) -> List[InventoryMovement]:
    """Newest first. ``store_id`` matches either side of a movement."""
    stmt = select(InventoryMovement)
    if product_id:
        stmt = stmt.where(InventoryMovement.product_id == product_id)
    if store_id:
        stmt = stmt.where(
            or_(
                InventoryMovement.source_store_id == store_id,
                InventoryMovement.target_store_id == store_id,
            )
        )
    if type is not None:
        stmt = stmt.where(InventoryMovement.type == coerce_movement_type(type))

    stmt = stmt.order_by(InventoryMovement.timestamp.desc(), InventoryMovement.created_at.desc()).limit(limit)
    res = await db.execute(stmt)
    return list(res.scalars().all())
