# app/services/cart_projection.py
"""
Derived cart views. Pure functions, recomputed from a snapshot on demand.
"""

from collections.abc import Iterable
from decimal import Decimal

from app.schemas.cart import CartLine, CartLineRead, CartSummary

ZERO = Decimal("0")


def line_total(line: CartLine) -> Decimal:
    return line.price_at_addition * line.quantity


def cart_total(lines: Iterable[CartLine]) -> Decimal:
    """Sum of price_at_addition * quantity, undiscounted, in base currency."""
    return sum((line_total(line) for line in lines), ZERO)


def item_count(lines: Iterable[CartLine]) -> int:
    """Number of units in the cart (a quantity-5 line counts as 5)."""
    return sum(line.quantity for line in lines)


def summarize(lines: Iterable[CartLine]) -> CartSummary:
    """
    Return full cart summary:
      - list of CartLineRead (with line_total)
      - total_quantity
      - total_price
    """
    lines = list(lines)
    items = [
        CartLineRead(
            id=line.id,
            product_id=line.product_id,
            quantity=line.quantity,
            price_at_addition=line.price_at_addition,
            product_name=line.product_name,
            billing_period=line.billing_period,
            line_total=line_total(line),
            created_at=line.created_at,
        )
        for line in lines
    ]
    return CartSummary(
        items=items,
        total_quantity=item_count(lines),
        total_price=cart_total(lines),
    )
