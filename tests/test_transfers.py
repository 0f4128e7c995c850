"""Tests for the transfer coordinator: invariants, failures and rollback."""

import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest

from core.errors import (
    InsufficientInventoryError,
    InvalidQuantityError,
    InventoryNotFoundError,
    ProductNotFoundError,
    SameStoreTransferError,
    SourceOrTargetStoreNotFoundError,
)
from db.inventory.movement import MovementType
from services import movement_log, stock_ledger
from services.transfers import transfer_stock


@pytest.fixture
async def two_stores(make_store):
    return await make_store("A"), await make_store("B")


class TestSuccessfulTransfer:
    async def test_moves_quantity_between_existing_records(
        self, db, two_stores, make_product, make_stock, stock_of, movements_of, total_stock
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 50)
        await make_stock(product, b, 30)

        source = await transfer_stock(
            db, product_id=product.id, source_store_id=a.id, target_store_id=b.id, quantity=10
        )

        assert source.store_id == a.id
        assert source.quantity == 40
        assert await stock_of(product, a) == 40
        assert await stock_of(product, b) == 40
        assert await total_stock(product) == 80

        movements = await movements_of(product)
        assert len(movements) == 1
        mv = movements[0]
        assert mv.type is MovementType.TRANSFER
        assert (mv.source_store_id, mv.target_store_id, mv.quantity) == (a.id, b.id, 10)

    async def test_creates_missing_target_record(
        self, db, two_stores, make_product, make_stock, stock_of, session_maker
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 20)

        await transfer_stock(
            db, product_id=product.id, source_store_id=a.id, target_store_id=b.id,
            quantity=5, min_stock=3,
        )

        assert await stock_of(product, a) == 15
        assert await stock_of(product, b) == 5
        async with session_maker() as s:
            target = await stock_ledger.lock_stock(s, product_id=product.id, store_id=b.id)
            assert target.min_stock == 3

    async def test_missing_target_defaults_min_stock_to_zero(
        self, db, two_stores, make_product, make_stock, session_maker
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 20)

        await transfer_stock(
            db, product_id=product.id, source_store_id=a.id, target_store_id=b.id, quantity=1
        )

        async with session_maker() as s:
            target = await stock_ledger.lock_stock(s, product_id=product.id, store_id=b.id)
            assert target.min_stock == 0

    async def test_whole_stock_can_be_moved(self, db, two_stores, make_product, make_stock, stock_of):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 7)

        source = await transfer_stock(
            db, product_id=product.id, source_store_id=a.id, target_store_id=b.id, quantity=7
        )

        assert source.quantity == 0
        assert await stock_of(product, b) == 7

    async def test_back_and_forth_conserves_total(
        self, db, two_stores, make_product, make_stock, stock_of, total_stock, movements_of
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 50)
        await make_stock(product, b, 30)

        await transfer_stock(db, product_id=product.id, source_store_id=a.id, target_store_id=b.id, quantity=10)
        await transfer_stock(db, product_id=product.id, source_store_id=b.id, target_store_id=a.id, quantity=25)

        assert await stock_of(product, a) == 65
        assert await stock_of(product, b) == 15
        assert await total_stock(product) == 80
        assert len(await movements_of(product)) == 2

    async def test_caller_timestamp_is_recorded(self, db, two_stores, make_product, make_stock, movements_of):
        from datetime import datetime

        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 5)
        when = datetime(2024, 6, 1, 9, 0)

        await transfer_stock(
            db, product_id=product.id, source_store_id=a.id, target_store_id=b.id,
            quantity=1, timestamp=when,
        )

        [mv] = await movements_of(product)
        assert mv.timestamp.replace(tzinfo=None) == when


class TestInputChecks:
    async def test_same_store_touches_no_storage(self):
        db = AsyncMock()
        store_id = uuid.uuid4()

        with pytest.raises(SameStoreTransferError) as exc:
            await transfer_stock(
                db, product_id=uuid.uuid4(), source_store_id=store_id, target_store_id=store_id, quantity=1
            )

        assert exc.value.status_code == 400
        db.execute.assert_not_called()
        db.commit.assert_not_called()
        db.rollback.assert_not_called()

    @pytest.mark.parametrize("qty", [0, -5])
    async def test_non_positive_quantity(self, qty):
        db = AsyncMock()

        with pytest.raises(InvalidQuantityError) as exc:
            await transfer_stock(
                db, product_id=uuid.uuid4(), source_store_id=uuid.uuid4(),
                target_store_id=uuid.uuid4(), quantity=qty,
            )

        assert exc.value.details == {"quantity": qty}
        db.execute.assert_not_called()

    async def test_same_store_is_checked_before_quantity(self):
        store_id = uuid.uuid4()
        with pytest.raises(SameStoreTransferError):
            await transfer_stock(
                AsyncMock(), product_id=uuid.uuid4(), source_store_id=store_id,
                target_store_id=store_id, quantity=0,
            )


class TestFailures:
    # a failed transfer rolls back the session and expires loaded models,
    # so ids are captured before the call

    async def test_insufficient_stock_leaves_records_unchanged(
        self, db, two_stores, make_product, make_stock, stock_of, movements_of
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 50)
        await make_stock(product, b, 30)
        pid, a_id, b_id = product.id, a.id, b.id

        with pytest.raises(InsufficientInventoryError) as exc:
            await transfer_stock(
                db, product_id=pid, source_store_id=a_id, target_store_id=b_id, quantity=100
            )

        assert exc.value.requested == 100
        assert exc.value.available == 50
        assert exc.value.as_dict()["details"] == {"requested": 100, "available": 50}
        assert await stock_of(pid, a_id) == 50
        assert await stock_of(pid, b_id) == 30
        assert await movements_of(pid) == []

    async def test_missing_store(self, db, make_store, make_product):
        a = await make_store("A")
        product = await make_product()
        pid, a_id, ghost = product.id, a.id, uuid.uuid4()

        with pytest.raises(SourceOrTargetStoreNotFoundError) as exc:
            await transfer_stock(
                db, product_id=pid, source_store_id=a_id, target_store_id=ghost, quantity=1
            )

        assert exc.value.details == {"source_store_id": a_id, "target_store_id": ghost}
        assert exc.value.status_code == 404

    async def test_missing_product(self, db, two_stores):
        a, b = two_stores
        with pytest.raises(ProductNotFoundError):
            await transfer_stock(
                db, product_id=uuid.uuid4(), source_store_id=a.id, target_store_id=b.id, quantity=1
            )

    async def test_missing_source_record(self, db, two_stores, make_product, make_stock, stock_of):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, b, 10)
        pid, a_id, b_id = product.id, a.id, b.id

        with pytest.raises(InventoryNotFoundError) as exc:
            await transfer_stock(
                db, product_id=pid, source_store_id=a_id, target_store_id=b_id, quantity=1
            )

        assert exc.value.details == {"product_id": pid, "store_id": a_id}
        assert await stock_of(pid, b_id) == 10

    async def test_movement_log_failure_rolls_back_ledger(
        self, db, monkeypatch, two_stores, make_product, make_stock, stock_of, movements_of
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 50)
        await make_stock(product, b, 30)
        pid, a_id, b_id = product.id, a.id, b.id

        async def _broken(*args, **kwargs):
            raise RuntimeError("audit log unavailable")

        monkeypatch.setattr(movement_log, "record_movement", _broken)

        with pytest.raises(RuntimeError, match="audit log unavailable"):
            await transfer_stock(
                db, product_id=pid, source_store_id=a_id, target_store_id=b_id, quantity=10
            )

        assert await stock_of(pid, a_id) == 50
        assert await stock_of(pid, b_id) == 30
        assert await movements_of(pid) == []

    async def test_failure_after_target_creation_rolls_back_new_record(
        self, db, monkeypatch, two_stores, make_product, make_stock, stock_of
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 50)
        pid, a_id, b_id = product.id, a.id, b.id

        async def _broken(*args, **kwargs):
            raise RuntimeError("audit log unavailable")

        monkeypatch.setattr(movement_log, "record_movement", _broken)

        with pytest.raises(RuntimeError):
            await transfer_stock(
                db, product_id=pid, source_store_id=a_id, target_store_id=b_id, quantity=10
            )

        assert await stock_of(pid, a_id) == 50
        assert await stock_of(pid, b_id) is None

    async def test_session_is_usable_after_rollback(
        self, db, two_stores, make_product, make_stock, stock_of
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 5)
        pid, a_id, b_id = product.id, a.id, b.id

        with pytest.raises(InsufficientInventoryError):
            await transfer_stock(db, product_id=pid, source_store_id=a_id, target_store_id=b_id, quantity=6)

        source = await transfer_stock(db, product_id=pid, source_store_id=a_id, target_store_id=b_id, quantity=5)
        assert source.quantity == 0
        assert await stock_of(pid, b_id) == 5


class TestLockOrder:
    async def test_both_directions_lock_in_the_same_order(
        self, db, monkeypatch, two_stores, make_product, make_stock
    ):
        a, b = two_stores
        product = await make_product()
        await make_stock(product, a, 10)
        await make_stock(product, b, 10)

        seen = []
        original = stock_ledger.lock_stock

        async def _spy(db, *, product_id, store_id):
            seen.append(store_id)
            return await original(db, product_id=product_id, store_id=store_id)

        monkeypatch.setattr(stock_ledger, "lock_stock", _spy)

        await transfer_stock(db, product_id=product.id, source_store_id=a.id, target_store_id=b.id, quantity=1)
        a_to_b = list(seen)
        seen.clear()
        await transfer_stock(db, product_id=product.id, source_store_id=b.id, target_store_id=a.id, quantity=1)

        assert a_to_b == seen
        assert len(seen) == 2


class TestConcurrentTransfers:
    async def test_two_sources_into_the_same_missing_target(
        self, session_maker, make_store, make_product, make_stock, stock_of, movements_of, total_stock
    ):
        a = await make_store("A")
        b = await make_store("B")
        c = await make_store("C")
        product = await make_product()
        await make_stock(product, a, 20)
        await make_stock(product, b, 30)
        pid, c_id = product.id, c.id

        async def _transfer(source_id, qty):
            async with session_maker() as s:
                return await transfer_stock(
                    s, product_id=pid, source_store_id=source_id, target_store_id=c_id, quantity=qty
                )

        await asyncio.gather(_transfer(a.id, 5), _transfer(b.id, 7))

        assert await stock_of(pid, a) == 15
        assert await stock_of(pid, b) == 23
        # one target row holding both increments
        assert await stock_of(pid, c_id) == 12
        assert await total_stock(pid) == 50
        assert len(await movements_of(pid)) == 2
