"""Product registry use-cases: create with initial stock, update, list, soft delete."""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.errors import (
    AppError,
    DuplicateProductError,
    InactiveProductError,
    ProductNotFoundError,
    StoreNotFoundError,
)
from db.inventory.stock import InventoryStock
from db.product import Product
from schemas.products import ProductCreate, ProductUpdate
from services.registry import find_product, find_store
from services.stock_ledger import create_stock

logger = logging.getLogger("inventory.products")


@dataclass
class ProductFilter:
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_stock: Optional[int] = None
    store_id: Optional[UUID] = None
    include_inventory: bool = False


async def _sku_taken(db: AsyncSession, sku: str, exclude_id: Optional[UUID] = None) -> bool:
    stmt = select(func.count()).select_from(Product).where(Product.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    res = await db.execute(stmt)
    return int(res.scalar_one() or 0) > 0


async def create_product(db: AsyncSession, payload: ProductCreate) -> Product:
    """Insert the product and its first stock record in one transaction."""
    try:
        inv = payload.inventory
        if not await find_store(db, inv.store_id):
            raise StoreNotFoundError(inv.store_id)
        if await _sku_taken(db, payload.sku):
            raise DuplicateProductError(payload.sku)

        product = Product(
            sku=payload.sku,
            name=payload.name,
            description=payload.description,
            category=payload.category,
            price=payload.price,
            active=True,
        )
        db.add(product)
        await db.flush()

        await create_stock(
            db,
            product_id=product.id,
            store_id=inv.store_id,
            quantity=inv.quantity,
            min_stock=inv.min_stock,
        )
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        # lost a race on the unique sku after the pre-check passed
        if await _sku_taken(db, payload.sku):
            raise DuplicateProductError(payload.sku) from None
        logger.exception("product.create.failed", extra={"sku": payload.sku})
        raise
    except Exception:
        await db.rollback()
        logger.exception("product.create.failed", extra={"sku": payload.sku})
        raise

    logger.info(
        "product.created",
        extra={"product_id": str(product.id), "sku": product.sku, "store_id": str(inv.store_id)},
    )
    return product


async def update_product(db: AsyncSession, product_id: UUID, payload: ProductUpdate) -> Product:
    try:
        product = await find_product(db, product_id)
        if not product:
            raise ProductNotFoundError(product_id)

        data = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "sku" in data and data["sku"] != product.sku:
            if await _sku_taken(db, data["sku"], exclude_id=product_id):
                raise DuplicateProductError(data["sku"])

        if not product.active:
            raise InactiveProductError(product_id)

        for field, value in data.items():
            setattr(product, field, value)

        await db.commit()
        await db.refresh(product)
    except AppError:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        if payload.sku and await _sku_taken(db, payload.sku, exclude_id=product_id):
            raise DuplicateProductError(payload.sku) from None
        logger.exception("product.update.failed", extra={"product_id": str(product_id)})
        raise
    except Exception:
        await db.rollback()
        logger.exception("product.update.failed", extra={"product_id": str(product_id)})
        raise
    return product


async def get_product(db: AsyncSession, product_id: UUID) -> Product:
    product = await find_product(db, product_id)
    if not product:
        raise ProductNotFoundError(product_id)
    return product


async def list_products(
    db: AsyncSession,
    filters: Optional[ProductFilter] = None,
    *,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Tuple[List[Product], int]:
    """Active products matching ``filters`` and the total match count."""
    filters = filters or ProductFilter()
    stmt = select(Product).where(Product.active == True)  # noqa: E712

    if filters.category:
        stmt = stmt.where(Product.category == filters.category)
    if filters.min_price is not None:
        stmt = stmt.where(Product.price >= filters.min_price)
    if filters.max_price is not None:
        stmt = stmt.where(Product.price <= filters.max_price)

    if filters.min_stock is not None or filters.store_id is not None:
        stocked = select(InventoryStock.product_id)
        if filters.min_stock is not None:
            stocked = stocked.where(InventoryStock.quantity >= filters.min_stock)
        if filters.store_id is not None:
            stocked = stocked.where(InventoryStock.store_id == filters.store_id)
        stmt = stmt.where(Product.id.in_(stocked))

    count_res = await db.execute(select(func.count()).select_from(stmt.subquery()))
    count = int(count_res.scalar_one() or 0)

    if filters.include_inventory:
        stmt = stmt.options(selectinload(Product.stocks))
    stmt = stmt.order_by(Product.created_at.asc(), Product.sku.asc())
    if limit is not None:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)

    res = await db.execute(stmt)
    return list(res.scalars().all()), count


async def delete_product(db: AsyncSession, product_id: UUID) -> bool:
    """Soft delete: the product is deactivated, its stock rows stay."""
    try:
        product = await find_product(db, product_id)
        if not product:
            raise ProductNotFoundError(product_id)
        product.active = False
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except Exception:
        await db.rollback()
        logger.exception("product.delete.failed", extra={"product_id": str(product_id)})
        raise
    logger.info("product.deactivated", extra={"product_id": str(product_id)})
    return True
