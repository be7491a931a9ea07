# app/repositories/supabase_repo.py
"""
Cart store and catalog talking to the Supabase tables over PostgREST.

Same contract as CartRepository / ProductRepository, but goes through a
supabase `Client` instead of a SQLModel Session. With the anon client RLS
applies as well, the explicit user_id filters are kept regardless.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, ValidationError
from supabase import Client

from app.core.errors import StaleLineError, StoreError
from app.schemas.cart import CartLine
from app.schemas.product import ProductRead

CART_TABLE = "cart_items"
PRODUCTS_TABLE = "products"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BaseSupabaseRepository:
    """Holds the client and maps transport errors to StoreError."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def _execute(self, query) -> list[dict[str, Any]]:
        try:
            return query.execute().data or []
        except (APIError, httpx.HTTPError) as e:
            raise StoreError(str(e)) from e

    def _parse(self, model: type[BaseModel], row: dict[str, Any]):
        try:
            return model.model_validate(row)
        except ValidationError as e:
            raise StoreError(f"Malformed {model.__name__} row: {e}") from e


class SupabaseCartRepository(BaseSupabaseRepository):
    def list_lines(self, user_id: uuid.UUID) -> list[CartLine]:
        rows = self._execute(
            self.client.table(CART_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
        )
        return [self._parse(CartLine, row) for row in rows]

    def upsert_line(
        self,
        user_id: uuid.UUID,
        product: ProductRead,
        quantity: int,
        conditional: bool = False,
    ) -> CartLine:
        row = {
            "user_id": str(user_id),
            "product_id": str(product.id),
            "quantity": quantity,
            "price_at_addition": str(product.price),
            "product_name": product.name,
            "billing_period": product.billing_period.value,
        }
        # ignore_duplicates keeps an existing row (and its price) untouched
        inserted = self._execute(
            self.client.table(CART_TABLE).upsert(
                row, on_conflict="user_id,product_id", ignore_duplicates=True
            )
        )
        if inserted:
            return self._parse(CartLine, inserted[0])
        if conditional:
            raise StaleLineError(
                f"Cart line for product {product.id} was added concurrently"
            )

        updated = self._execute(
            self.client.table(CART_TABLE)
            .update({"quantity": quantity, "updated_at": _now_iso()})
            .eq("user_id", str(user_id))
            .eq("product_id", str(product.id))
        )
        if not updated:
            raise StaleLineError(f"Cart line for product {product.id} vanished")
        return self._parse(CartLine, updated[0])

    def update_quantity(
        self,
        user_id: uuid.UUID,
        line_id: uuid.UUID,
        quantity: int,
        expected_quantity: int | None = None,
    ) -> CartLine:
        query = (
            self.client.table(CART_TABLE)
            .update({"quantity": quantity, "updated_at": _now_iso()})
            .eq("id", str(line_id))
            .eq("user_id", str(user_id))
        )
        if expected_quantity is not None:
            query = query.eq("quantity", expected_quantity)

        rows = self._execute(query)
        if not rows:
            raise StaleLineError(f"Cart line {line_id} was not updated")
        return self._parse(CartLine, rows[0])

    def delete_line(self, user_id: uuid.UUID, line_id: uuid.UUID) -> None:
        self._execute(
            self.client.table(CART_TABLE)
            .delete()
            .eq("id", str(line_id))
            .eq("user_id", str(user_id))
        )

    def delete_all_lines(self, user_id: uuid.UUID) -> None:
        self._execute(
            self.client.table(CART_TABLE).delete().eq("user_id", str(user_id))
        )


class SupabaseProductRepository(BaseSupabaseRepository):
    def get_product(self, product_id: uuid.UUID) -> ProductRead | None:
        rows = self._execute(
            self.client.table(PRODUCTS_TABLE)
            .select("*")
            .eq("id", str(product_id))
            .limit(1)
        )
        if not rows:
            return None
        return self._parse(ProductRead, rows[0])
