import asyncio
import sys
from pathlib import Path

"""
Seed demo stores, products and stock into the database.

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py`

It uses the same DATABASE_URL env var as the backend (dotenv supported).
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from dataclasses import dataclass  # noqa: E402

from sqlalchemy import select  # noqa: E402

from db.database import async_session_maker, create_db_and_tables  # noqa: E402
from db.product import Product  # noqa: E402
from db.store import Store  # noqa: E402
from services.stock_ledger import increment_or_create  # noqa: E402


@dataclass(frozen=True)
class SeedProduct:
    sku: str
    name: str
    category: str
    price: float
    # store name -> (quantity, min_stock)
    stock: dict


SEED_STORES = [
    ("Downtown", "12 Main St"),
    ("Airport", "Terminal 2"),
    ("Warehouse", "Industrial Park, Unit 7"),
]

SEED_PRODUCTS = [
    SeedProduct("TSHIRT-BLK-M", "T-Shirt Black M", "apparel", 19.9,
                {"Downtown": (50, 10), "Warehouse": (400, 50)}),
    SeedProduct("MUG-WHT", "Mug White", "home", 8.5,
                {"Downtown": (3, 10), "Airport": (5, 20)}),
    SeedProduct("CAP-RED", "Cap Red", "apparel", 12.0,
                {"Airport": (30, 5)}),
]


async def get_or_create_store(session, name: str, location: str) -> Store:
    res = await session.execute(select(Store).where(Store.name == name))
    store = res.scalar_one_or_none()
    if store:
        return store
    store = Store(name=name, location=location)
    session.add(store)
    await session.flush()
    return store


async def get_or_create_product(session, seed: SeedProduct) -> tuple[Product, bool]:
    res = await session.execute(select(Product).where(Product.sku == seed.sku))
    product = res.scalar_one_or_none()
    if product:
        return product, False
    product = Product(
        sku=seed.sku,
        name=seed.name,
        description=f"Demo product {seed.name}",
        category=seed.category,
        price=seed.price,
        active=True,
    )
    session.add(product)
    await session.flush()
    return product, True


async def main() -> None:
    await create_db_and_tables()
    async with async_session_maker() as session:
        stores = {}
        for name, location in SEED_STORES:
            stores[name] = await get_or_create_store(session, name, location)

        created = 0
        for seed in SEED_PRODUCTS:
            product, is_new = await get_or_create_product(session, seed)
            if not is_new:
                continue
            created += 1
            for store_name, (qty, min_stock) in seed.stock.items():
                await increment_or_create(
                    session,
                    product_id=product.id,
                    store_id=stores[store_name].id,
                    quantity=qty,
                    min_stock=min_stock,
                )

        await session.commit()
    print(f"Seeded {len(SEED_STORES)} stores and {created} new products")


if __name__ == "__main__":
    asyncio.run(main())
