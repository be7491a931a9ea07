# app/schemas/cart.py
import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel, Field

from app.models.product import BillingPeriod


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    product_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart line.

    Zero or negative quantities remove the line.
    """

    quantity: int


class CartLine(SQLModel):
    """
    One line of a user's cart as last read from the store.

    The engine replaces whole snapshots, it never edits lines.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int = Field(ge=1)
    price_at_addition: Decimal
    product_name: str | None = None
    billing_period: BillingPeriod = BillingPeriod.ONE_TIME
    created_at: datetime
    updated_at: datetime


class CartLineRead(SQLModel):
    """
    Read model for a single cart line, including line_total.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    price_at_addition: Decimal
    product_name: str | None = None
    billing_period: BillingPeriod
    line_total: Decimal
    created_at: datetime


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    items: list[CartLineRead]
    total_quantity: int
    total_price: Decimal
