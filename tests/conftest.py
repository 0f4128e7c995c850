"""
Pytest fixtures for the inventory backend.

Every test gets its own SQLite file behind the same async SQLAlchemy stack
the service uses in production.
"""

import os

# the module-level engine in db.database must be constructible without Postgres
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from db.database import create_db_and_tables, get_async_session
from db.inventory.movement import InventoryMovement
from db.inventory.stock import InventoryStock
from db.product import Product
from db.store import Store


def _id(obj):
    # readers take models or bare ids; a rolled-back session expires its models
    return obj if isinstance(obj, uuid.UUID) else obj.id


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}"


@pytest.fixture
async def engine(db_url):
    engine = create_async_engine(db_url, poolclass=NullPool)
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_store(db):
    async def _make(name="Store", location="Main St"):
        store = Store(name=name, location=location)
        db.add(store)
        await db.commit()
        return store
    return _make


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    async def _make(sku=None, category="general", price=10.0, active=True):
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU-{counter['n']:04d}",
            name=f"Product {counter['n']}",
            description="Test product",
            category=category,
            price=price,
            active=active,
        )
        db.add(product)
        await db.commit()
        return product
    return _make


@pytest.fixture
def make_stock(db):
    async def _make(product, store, quantity, min_stock=0):
        stock = InventoryStock(
            product_id=product.id,
            store_id=store.id,
            quantity=quantity,
            min_stock=min_stock,
        )
        db.add(stock)
        await db.commit()
        return stock
    return _make


@pytest.fixture
def stock_of(session_maker):
    """Read a quantity through a fresh session (None when no record exists)."""
    async def _get(product, store):
        async with session_maker() as s:
            res = await s.execute(
                select(InventoryStock).where(
                    InventoryStock.product_id == _id(product),
                    InventoryStock.store_id == _id(store),
                )
            )
            stock = res.scalar_one_or_none()
            return None if stock is None else stock.quantity
    return _get


@pytest.fixture
def movements_of(session_maker):
    async def _list(product):
        async with session_maker() as s:
            res = await s.execute(
                select(InventoryMovement).where(InventoryMovement.product_id == _id(product))
            )
            return list(res.scalars().all())
    return _list


@pytest.fixture
def total_stock(session_maker):
    async def _sum(product):
        async with session_maker() as s:
            res = await s.execute(
                select(func.coalesce(func.sum(InventoryStock.quantity), 0))
                .where(InventoryStock.product_id == _id(product))
            )
            return int(res.scalar_one())
    return _sum


@pytest.fixture
def client(db_url):
    """TestClient bound to a fresh database; requests run on the client's own loop."""
    from main import create_app

    api_engine = create_async_engine(db_url, poolclass=NullPool)
    asyncio.run(create_db_and_tables(api_engine))
    maker = async_sessionmaker(api_engine, expire_on_commit=False)

    async def _session_override():
        async with maker() as session:
            yield session

    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_async_session] = _session_override
    with TestClient(app) as c:
        yield c
