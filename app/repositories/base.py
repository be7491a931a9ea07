# app/repositories/base.py
"""
Interfaces the cart engine depends on.

Two implementations ship with the app:
  - SQLModel repositories (cart_repo.py, product_repo.py) used by the API
  - Supabase/PostgREST repositories (supabase_repo.py) for talking to the
    hosted tables directly, as the storefront frontend does
"""

import uuid
from typing import Protocol

from app.schemas.cart import CartLine
from app.schemas.product import ProductRead


class CartStore(Protocol):
    """
    Authoritative persistence for cart lines, keyed by user.

    Every method raises StoreError on I/O failure.
    """

    def list_lines(self, user_id: uuid.UUID) -> list[CartLine]:
        """All lines of the user, newest first."""
        ...

    def upsert_line(
        self,
        user_id: uuid.UUID,
        product: ProductRead,
        quantity: int,
        conditional: bool = False,
    ) -> CartLine:
        """
        Insert a line keyed by (user_id, product.id).

        If the row already exists only its quantity is set; the stored
        price is kept. With `conditional` an existing row raises
        StaleLineError instead.
        """
        ...

    def update_quantity(
        self,
        user_id: uuid.UUID,
        line_id: uuid.UUID,
        quantity: int,
        expected_quantity: int | None = None,
    ) -> CartLine:
        """
        Set the quantity of one line.

        Raises StaleLineError if the line does not exist or, when
        expected_quantity is given, the stored quantity differs from it.
        """
        ...

    def delete_line(self, user_id: uuid.UUID, line_id: uuid.UUID) -> None:
        """Delete one line. Deleting a missing line is a no-op."""
        ...

    def delete_all_lines(self, user_id: uuid.UUID) -> None:
        ...


class Catalog(Protocol):
    def get_product(self, product_id: uuid.UUID) -> ProductRead | None:
        """Return the product, or None if it doesn't exist."""
        ...
