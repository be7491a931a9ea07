# app/repositories/cart_repo.py
import uuid
from typing import NoReturn

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from app.core.errors import StaleLineError, StoreError
from app.models.cart import CartItem, utc_now
from app.schemas.cart import CartLine
from app.schemas.product import ProductRead


def to_cart_line(item: CartItem) -> CartLine:
    return CartLine(
        id=item.id,
        user_id=item.user_id,
        product_id=item.product_id,
        quantity=item.quantity,
        price_at_addition=item.price_at_addition,
        product_name=item.product_name,
        billing_period=item.billing_period,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


class CartRepository:
    """
    Cart store backed by the `cart_items` table.

    - Bound to one SQLModel Session (one per request).
    - Every query is scoped by user_id.
    - Database errors are rolled back and re-raised as StoreError.
    """

    def __init__(self, session: Session):
        self.session = session

    # ----- queries -----

    def list_lines(self, user_id: uuid.UUID) -> list[CartLine]:
        stmt = (
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(col(CartItem.created_at).desc())
        )
        try:
            return [to_cart_line(it) for it in self.session.exec(stmt).all()]
        except (SQLAlchemyError, ValidationError) as e:
            self._fail(e)

    def _get_item(
        self,
        user_id: uuid.UUID,
        line_id: uuid.UUID,
        for_update: bool = False,
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.id == line_id, CartItem.user_id == user_id
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.exec(stmt).first()

    def _get_item_for_product(
        self, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.user_id == user_id, CartItem.product_id == product_id
        )
        return self.session.exec(stmt).first()

    # ----- mutations -----

    def upsert_line(
        self,
        user_id: uuid.UUID,
        product: ProductRead,
        quantity: int,
        conditional: bool = False,
    ) -> CartLine:
        """
        Insert a new line snapshotting price, name and billing period.

        If a row for (user, product) already exists, possibly written by
        another session since our last read, only its quantity is set.
        With `conditional` the caller expected no row, so an existing one
        raises StaleLineError instead.
        """
        try:
            item = self._get_item_for_product(user_id, product.id)
            if item is None:
                item = CartItem(
                    user_id=user_id,
                    product_id=product.id,
                    quantity=quantity,
                    price_at_addition=product.price,
                    product_name=product.name,
                    billing_period=product.billing_period,
                )
                self.session.add(item)
                try:
                    self.session.commit()
                except IntegrityError:
                    # lost the insert race on uq_cart_items_user_product
                    self.session.rollback()
                    item = self._get_item_for_product(user_id, product.id)
                    if item is None:
                        raise
                    self._overwrite(item, quantity, conditional)
            else:
                self._overwrite(item, quantity, conditional)

            self.session.refresh(item)
            return to_cart_line(item)
        except (SQLAlchemyError, ValidationError) as e:
            self._fail(e)

    def update_quantity(
        self,
        user_id: uuid.UUID,
        line_id: uuid.UUID,
        quantity: int,
        expected_quantity: int | None = None,
    ) -> CartLine:
        try:
            # Row lock on Postgres keeps the compare and the write atomic.
            item = self._get_item(user_id, line_id, for_update=True)
            if item is None:
                self.session.rollback()
                raise StaleLineError(f"Cart line {line_id} no longer exists")
            if expected_quantity is not None and item.quantity != expected_quantity:
                found = item.quantity
                self.session.rollback()
                raise StaleLineError(
                    f"Cart line {line_id} has quantity {found}, "
                    f"expected {expected_quantity}"
                )

            self._set_quantity(item, quantity)
            self.session.refresh(item)
            return to_cart_line(item)
        except (SQLAlchemyError, ValidationError) as e:
            self._fail(e)

    def delete_line(self, user_id: uuid.UUID, line_id: uuid.UUID) -> None:
        try:
            item = self._get_item(user_id, line_id)
            if item is None:
                return
            self.session.delete(item)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail(e)

    def delete_all_lines(self, user_id: uuid.UUID) -> None:
        try:
            stmt = select(CartItem).where(CartItem.user_id == user_id)
            for row in self.session.exec(stmt).all():
                self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail(e)

    # ----- helpers -----

    def _overwrite(self, item: CartItem, quantity: int, conditional: bool) -> None:
        if conditional:
            self.session.rollback()
            raise StaleLineError(
                f"Cart line for product {item.product_id} was added concurrently"
            )
        self._set_quantity(item, quantity)

    def _set_quantity(self, item: CartItem, quantity: int) -> None:
        item.quantity = quantity
        item.updated_at = utc_now()
        self.session.add(item)
        self.session.commit()

    def _fail(self, exc: Exception) -> NoReturn:
        self.session.rollback()
        raise StoreError(str(exc)) from exc
