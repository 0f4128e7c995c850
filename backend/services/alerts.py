"""
Low-stock scanner.

Reports every stock record whose quantity is below its min_stock. An empty
result is raised as NoLowStockInventoriesError so alerting consumers can tell
"checked, nothing low" apart from an empty payload.
"""
import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NoLowStockInventoriesError
from db.inventory.stock import InventoryStock
from services.stock_ledger import find_low_stock

logger = logging.getLogger("inventory.alerts")


async def get_low_stock(db: AsyncSession) -> List[InventoryStock]:
    records = await find_low_stock(db)
    if not records:
        raise NoLowStockInventoriesError()

    for s in records:
        logger.warning(
            "stock.low",
            extra={
                "product_id": str(s.product_id),
                "store_id": str(s.store_id),
                "quantity": int(s.quantity),
                "min_stock": int(s.min_stock),
            },
        )
    return records
