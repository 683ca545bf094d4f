"""Public catalogue for the online shop. No authentication."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.core.database import get_db
from backend.app.core.exceptions import NotFoundError
from backend.app.schemas.inventory import ProductEnvelope, ProductListEnvelope
from backend.app.services.inventory import get_product, list_products

router = APIRouter()


@router.get("/products", response_model=ProductListEnvelope)
def storefront_products(
    in_stock_only: bool = Query(False, description="Only products with quantity > 0"),
    db: Session = Depends(get_db),
) -> dict:
    return {"products": list_products(db, in_stock_only=in_stock_only)}


@router.get("/products/{product_id}", response_model=ProductEnvelope)
def storefront_product(product_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        return {"product": get_product(db, product_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
