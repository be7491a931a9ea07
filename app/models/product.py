# app/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlmodel import SQLModel, Field


class BillingPeriod(str, Enum):
    ONE_TIME = "one-time"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ProductCategory(str, Enum):
    MEMBERSHIP = "membership"
    RENTAL = "rental"
    OTHER = "other"


class Product(SQLModel, table=True):
    """
    Catalog entry: a membership plan or a rental slot.

    The cart only reads this table; `price` is copied onto a cart line
    when the product is first added.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        min_length=3,
        index=True,
        description="Display name of the plan/slot",
    )

    description: str | None = Field(
        default=None,
        description="Optional long description",
    )

    price: Decimal = Field(
        gt=0,
        max_digits=10,
        decimal_places=2,
        description="Unit price in the store's base currency (USD)",
    )

    billing_period: BillingPeriod = Field(
        default=BillingPeriod.ONE_TIME,
        description="one-time | monthly | yearly",
    )

    category: ProductCategory = Field(
        default=ProductCategory.OTHER,
        index=True,
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product can be bought",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
