# app/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel

from app.models.product import BillingPeriod, ProductCategory


class ProductRead(SQLModel):
    """
    Product representation for clients and for the cart's catalog lookup.
    """

    id: uuid.UUID
    name: str
    description: str | None = None
    price: Decimal
    billing_period: BillingPeriod = BillingPeriod.ONE_TIME
    category: ProductCategory = ProductCategory.OTHER
    is_active: bool = True
    created_at: datetime | None = None
