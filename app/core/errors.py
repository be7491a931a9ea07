# app/core/errors.py
"""
Cart error taxonomy.

Engine operations never raise these for expected failures; they are carried
inside a `CartErr` result (see app/services/cart_engine.py). Routers turn them
into HTTP errors using `status_code`.

Store implementations raise `StoreError` (or `StaleLineError`) and nothing else
for I/O problems; the engine translates those into `SyncFailure`.
"""

from fastapi import status

# Centralized messages
ERROR_UNAUTHENTICATED = "Must be logged in to modify the cart"
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_LINE_NOT_FOUND = "Item not found in cart"
ERROR_INVALID_QUANTITY = "Quantity must be at least 1"
ERROR_SYNC_FAILED = "Cart could not be synchronized"
ERROR_CONCURRENT_UPDATE = "Cart was changed by another session, reload and retry"


class CartError(Exception):
    """Base class for failures reported by cart operations."""

    code = "cart_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Cart operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(CartError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = ERROR_UNAUTHENTICATED


class ProductNotFound(CartError):
    code = "product_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = ERROR_PRODUCT_NOT_FOUND


class LineNotFound(CartError):
    code = "line_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = ERROR_LINE_NOT_FOUND


class InvalidQuantity(CartError):
    code = "invalid_quantity"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = ERROR_INVALID_QUANTITY


class SyncFailure(CartError):
    """Store or catalog I/O failed; the local snapshot was left untouched."""

    code = "sync_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = ERROR_SYNC_FAILED


class ConcurrentUpdate(SyncFailure):
    """A conditional quantity write lost against another writer."""

    code = "concurrent_update"
    status_code = status.HTTP_409_CONFLICT
    default_message = ERROR_CONCURRENT_UPDATE


# ---- store-side ----


class StoreError(Exception):
    """Raised by cart stores and catalogs when the backing service fails."""


class StaleLineError(StoreError):
    """
    Conditional update rejected: the line is gone or its quantity no longer
    matches the expected value.
    """
