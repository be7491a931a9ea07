# app/routers/cart.py
import uuid
from collections.abc import Iterator

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.core.auth import get_session_provider
from app.core.config import get_settings
from app.core.session import SessionProvider
from app.database import get_session
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartSummary, CartItemCreate, CartItemUpdate
from app.services.cart_engine import CartEngine, CartErr, CartResult
from app.services.cart_projection import summarize

router = APIRouter(prefix="/cart", tags=["Cart"])


def get_cart_engine(
    session: Session = Depends(get_session),
    sessions: SessionProvider = Depends(get_session_provider),
) -> Iterator[CartEngine]:
    """
    Build a cart engine for this request and load the caller's cart.

    Guests get an engine with an empty snapshot; mutations then fail
    with Unauthenticated.
    """
    engine = CartEngine(
        sessions,
        CartRepository(session),
        ProductRepository(session),
        conditional_merge=get_settings().CART_CONDITIONAL_MERGE,
    )
    try:
        _unwrap(engine.load())
        yield engine
    finally:
        engine.close()


def _unwrap(result: CartResult) -> CartSummary:
    if isinstance(result, CartErr):
        raise HTTPException(
            status_code=result.error.status_code,
            detail=result.error.message,
        )
    return summarize(result.snapshot)


@router.get("", response_model=CartSummary)
def get_my_cart(engine: CartEngine = Depends(get_cart_engine)):
    """
    Get current user's cart summary.

    Guests receive an empty cart.
    """
    return summarize(engine.snapshot)


@router.post("", response_model=CartSummary)
def add_to_cart(
    payload: CartItemCreate,
    engine: CartEngine = Depends(get_cart_engine),
):
    """
    Add product to the current user's cart.

    Re-adding a product increases its quantity and keeps the price it
    was first added at. Returns the updated cart summary.
    """
    return _unwrap(engine.add(payload.product_id, payload.quantity))


@router.patch("/{line_id}", response_model=CartSummary)
def update_cart_line(
    line_id: uuid.UUID,
    payload: CartItemUpdate,
    engine: CartEngine = Depends(get_cart_engine),
):
    """
    Update quantity of a cart line. Zero or negative removes it.

    Returns the updated cart summary.
    """
    return _unwrap(engine.set_quantity(line_id, payload.quantity))


@router.delete("/{line_id}", response_model=CartSummary)
def remove_cart_line(
    line_id: uuid.UUID,
    engine: CartEngine = Depends(get_cart_engine),
):
    """
    Remove a line from the cart (no error if it is already gone).

    Returns the updated cart summary.
    """
    return _unwrap(engine.remove(line_id))


@router.delete("", response_model=CartSummary)
def clear_cart(engine: CartEngine = Depends(get_cart_engine)):
    """
    Clear the entire cart.

    Returns an empty cart summary.
    """
    return _unwrap(engine.clear())
