# app/models/cart.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from app.models.product import BillingPeriod


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CartItem(SQLModel, table=True):
    """
    Shopping cart entry for a user.
    One user cannot have 2 rows for the same product.

    `price_at_addition`, `product_name` and `billing_period` are copied
    from the product on insert and never updated afterwards.
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_cart_items_user_product"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    # Supabase auth.users.id; the cart does not keep its own users table.
    user_id: uuid.UUID = Field(index=True)

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    price_at_addition: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Price when first added to cart",
    )

    product_name: str | None = None
    billing_period: BillingPeriod = Field(default=BillingPeriod.ONE_TIME)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)
