# app/repositories/product_repo.py
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from app.core.errors import StoreError
from app.models.product import Product, ProductCategory
from app.schemas.product import ProductRead


class ProductRepository:
    """
    Read-only data access for the product catalog.

    - Pure DB operations (queries).
    - No FastAPI, no business logic.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, product_id: uuid.UUID) -> Product | None:
        return self.session.get(Product, product_id)

    def get_product(self, product_id: uuid.UUID) -> ProductRead | None:
        """Catalog lookup used by the cart engine."""
        try:
            product = self.get_by_id(product_id)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(str(e)) from e
        if product is None:
            return None
        return ProductRead.model_validate(product)

    def list(
        self,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
        category: ProductCategory | None = None,
    ) -> list[Product]:
        stmt = select(Product)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if category is not None:
            stmt = stmt.where(Product.category == category)
        stmt = stmt.order_by(col(Product.created_at).desc()).offset(skip).limit(limit)
        return self.session.exec(stmt).all()
