"""
Domain errors for the inventory backend.

Every error carries a machine-readable ``code``, a human message, the HTTP
status the API layer answers with, and optional ``details`` for diagnostics.

Usage:
    try:
        await transfer_stock(db, ...)
    except InsufficientInventoryError as e:
        print(f"only {e.available} left")
"""

from typing import Any, Optional

from fastapi import status
from pydantic.alias_generators import to_camel


class AppError(Exception):
    code: str = "app_error"
    default_message: str = "Application error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = {k: v for k, v in details.items() if v is not None}
        super().__init__(self.message)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to the API error body (detail keys in camelCase)."""
        out: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            out["details"] = {to_camel(k): str(v) if not isinstance(v, (int, float, bool)) else v
                              for k, v in self.details.items()}
        return out

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, details={self.details!r})"


# -- validation -------------------------------------------------------------

class SameStoreTransferError(AppError):
    code = "invalid_transfer"
    default_message = "Cannot transfer inventory to the same store"

    def __init__(self, store_id):
        super().__init__(store_id=store_id)
        self.store_id = store_id


class InvalidQuantityError(AppError):
    code = "invalid_quantity"
    default_message = "Quantity must be a positive integer"

    def __init__(self, quantity, reason: Optional[str] = None):
        super().__init__(reason, quantity=quantity)
        self.quantity = quantity


class InvalidMovementTypeError(AppError):
    code = "invalid_movement_type"
    default_message = "Invalid movement type"

    def __init__(self, value, valid: list[str]):
        super().__init__(
            f"Invalid movement type: {value}. Valid types are: {', '.join(valid)}",
            type=value,
        )
        self.value = value


# -- state ------------------------------------------------------------------

class InsufficientInventoryError(AppError):
    code = "insufficient_inventory"
    default_message = "Source store does not have enough inventory for the transfer"

    def __init__(self, requested: int, available: int):
        super().__init__(requested=requested, available=available)
        self.requested = requested
        self.available = available


class InactiveProductError(AppError):
    code = "inactive_product"
    default_message = "Cannot update an inactive product"

    def __init__(self, product_id):
        super().__init__(product_id=product_id)


# -- not found --------------------------------------------------------------

class InventoryNotFoundError(AppError):
    code = "inventory_not_found"
    default_message = "The requested inventory does not exist"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, product_id=None, store_id=None):
        super().__init__(product_id=product_id, store_id=store_id)


class ProductNotFoundError(AppError):
    code = "product_not_found"
    default_message = "The specified product does not exist"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, product_id):
        super().__init__(product_id=product_id)


class StoreNotFoundError(AppError):
    code = "store_not_found"
    default_message = "The specified store does not exist"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, store_id):
        super().__init__(store_id=store_id)


class SourceOrTargetStoreNotFoundError(AppError):
    code = "source_or_target_store_not_found"
    default_message = "The source or target store does not exist"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, source_store_id, target_store_id):
        super().__init__(source_store_id=source_store_id, target_store_id=target_store_id)


class NoLowStockInventoriesError(AppError):
    code = "no_low_stock_inventories"
    default_message = "No low-stock inventories found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self):
        super().__init__()


class NoInventoriesForStoreError(AppError):
    code = "no_inventories_for_store"
    default_message = "No inventories found for the specified store"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, store_id):
        super().__init__(store_id=store_id)


# -- conflict ---------------------------------------------------------------

class DuplicateProductError(AppError):
    code = "duplicate_product"
    default_message = "A product with this SKU already exists"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, sku: str):
        super().__init__(sku=sku)
