"""Tests for the low-stock scanner."""

import logging

import pytest

from core.errors import NoLowStockInventoriesError
from services.alerts import get_low_stock


async def test_returns_every_record_below_its_threshold(db, make_store, make_product, make_stock):
    a = await make_store("A")
    b = await make_store("B")
    p1 = await make_product()
    p2 = await make_product()
    await make_stock(p1, a, 3, min_stock=10)
    await make_stock(p2, b, 5, min_stock=20)
    await make_stock(p2, a, 50, min_stock=20)

    records = await get_low_stock(db)

    assert sorted((r.quantity, r.min_stock) for r in records) == [(3, 10), (5, 20)]
    assert all(r.is_low_stock for r in records)


async def test_quantity_equal_to_threshold_is_not_low(db, make_store, make_product, make_stock):
    store = await make_store()
    product = await make_product()
    await make_stock(product, store, 10, min_stock=10)

    with pytest.raises(NoLowStockInventoriesError):
        await get_low_stock(db)


async def test_empty_ledger_raises(db):
    with pytest.raises(NoLowStockInventoriesError) as exc:
        await get_low_stock(db)
    assert exc.value.status_code == 404
    assert exc.value.as_dict() == {
        "error": "no_low_stock_inventories",
        "message": "No low-stock inventories found",
    }


async def test_logs_a_warning_per_low_record(db, caplog, make_store, make_product, make_stock):
    store = await make_store()
    product = await make_product()
    await make_stock(product, store, 1, min_stock=4)

    with caplog.at_level(logging.WARNING, logger="inventory.alerts"):
        await get_low_stock(db)

    [record] = [r for r in caplog.records if r.name == "inventory.alerts"]
    assert record.getMessage() == "stock.low"
    assert record.quantity == 1
    assert record.min_stock == 4
