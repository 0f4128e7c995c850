from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from db.database import get_async_session
from db.product import Product
from routers.inventory import serialize_movement
from schemas.inventory import InventoryMovementOut
from schemas.products import ProductCreate, ProductInventoryRead, ProductPage, ProductRead, ProductUpdate
from services import products as product_service
from services.movement_log import list_movements

router = APIRouter()


def _serialize_product(
    p: Product,
    *,
    include_inventory: bool = False,
    store_id: Optional[UUID] = None,
    min_stock: Optional[int] = None,
) -> ProductRead:
    out = ProductRead(**p.to_schema)
    if include_inventory:
        stocks = [
            s for s in (p.stocks or [])
            if (store_id is None or s.store_id == store_id)
            and (min_stock is None or int(s.quantity or 0) >= min_stock)
        ]
        out.inventories = [
            ProductInventoryRead(
                id=s.id,
                store_id=s.store_id,
                quantity=int(s.quantity or 0),
                min_stock=int(s.min_stock or 0),
                is_low_stock=s.is_low_stock,
            )
            for s in stocks
        ]
        out.total_stock = sum(int(s.quantity or 0) for s in stocks)
    return out


@router.post("/products", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_async_session),
):
    product = await product_service.create_product(db, payload)
    return _serialize_product(product)


@router.get("/products", response_model=ProductPage)
async def list_products(
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    min_stock: Optional[int] = Query(None, alias="minStock", ge=0),
    store_id: Optional[UUID] = Query(None, alias="storeId"),
    include_inventory: bool = Query(False, alias="includeInventory"),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List active products.

    - minStock keeps products with a stock record holding at least that quantity.
    - storeId keeps products stocked at that store.
    - Attached inventory is narrowed by the same storeId and minStock predicates.
    - page/limit paginate; page without limit uses the default page size.
    """
    filters = product_service.ProductFilter(
        category=category,
        min_price=min_price,
        max_price=max_price,
        min_stock=min_stock,
        store_id=store_id,
        include_inventory=include_inventory,
    )
    if page is not None and limit is None:
        limit = settings.default_page_size
    if limit is not None:
        limit = min(limit, settings.max_page_size)
    offset = (page - 1) * limit if page and limit else None

    rows, count = await product_service.list_products(db, filters, limit=limit, offset=offset)
    return ProductPage(
        rows=[
            _serialize_product(p, include_inventory=include_inventory, store_id=store_id, min_stock=min_stock)
            for p in rows
        ],
        count=count,
    )


@router.get("/products/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_async_session),
):
    product = await product_service.get_product(db, product_id)
    return _serialize_product(product)


@router.put("/products/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: UUID,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    product = await product_service.update_product(db, product_id, payload)
    return _serialize_product(product)


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_async_session),
):
    await product_service.delete_product(db, product_id)
    return {"success": True}


@router.get("/products/{product_id}/movements", response_model=List[InventoryMovementOut])
async def list_product_movements(
    product_id: UUID,
    limit: int = Query(200, ge=1, le=1000),
    db: AsyncSession = Depends(get_async_session),
):
    await product_service.get_product(db, product_id)
    movements = await list_movements(db, product_id=product_id, limit=limit)
    return [serialize_movement(mv) for mv in movements]
