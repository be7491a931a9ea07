# app/routers/products.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from app.core.errors import ERROR_PRODUCT_NOT_FOUND
from app.database import get_session
from app.models.product import ProductCategory
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductRead

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    category: ProductCategory | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
):
    """
    List purchasable products (memberships, rental slots).

    - Public endpoint.
    - Inactive products are hidden.
    """
    return ProductRepository(session).list(skip=skip, limit=limit, category=category)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a single active product by id.

    - Public endpoint.
    """
    product = ProductRepository(session).get_by_id(product_id)
    if not product or not product.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ERROR_PRODUCT_NOT_FOUND,
        )
    return product
