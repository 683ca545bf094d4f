from __future__ import annotations

import math
from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin, require_salesperson
from backend.app.core.database import get_db
from backend.app.core.exceptions import NotFoundError
from backend.app.models.sales import PaymentMethod
from backend.app.models.user import User
from backend.app.schemas.sales import (
    DailySalesOut,
    SaleCreate,
    SaleEnvelope,
    SaleListOut,
    SaleResultOut,
    SaleStatsOut,
    SaleUpdate,
)
from backend.app.services.sales import (
    create_sale,
    daily_sales,
    get_sale,
    list_sales,
    refund_sale,
    sales_stats,
    update_sale,
)

router = APIRouter()


@router.post("", response_model=SaleResultOut, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_salesperson),
) -> dict:
    """Ring up a sale and deduct stock."""
    try:
        sale = create_sale(
            db,
            items=payload.items,
            cashier_id=current_user.id,
            payment_method=payload.payment_method,
            discount=payload.discount,
            notes=payload.notes,
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except IntegrityError:
        # Another checkout took the same sale number between count and insert
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sale number already taken, please retry",
        )
    db.commit()
    db.refresh(sale)
    return {"success": True, "message": "Sale completed successfully", "sale": sale}


@router.get("", response_model=SaleListOut)
def list_all_sales(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    payment_method: PaymentMethod | None = Query(None),
    search: str | None = Query(None, description="Sale number, customer name or phone"),
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    sales, total = list_sales(
        db,
        page=page,
        limit=limit,
        start_date=start_date,
        end_date=end_date,
        payment_method=payment_method,
        search=search,
    )
    return {
        "sales": sales,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit),
        },
    }


@router.get("/stats", response_model=SaleStatsOut)
def read_sales_stats(
    period: Literal["today", "week", "month", "year"] = Query("today"),
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    return sales_stats(db, period)


@router.get("/daily", response_model=DailySalesOut)
def read_daily_sales(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    return daily_sales(db)


@router.get("/{sale_id}", response_model=SaleEnvelope)
def read_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    try:
        return {"sale": get_sale(db, sale_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{sale_id}", response_model=SaleEnvelope)
def update_existing_sale(
    sale_id: UUID,
    payload: SaleUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    try:
        sale = update_sale(db, sale_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(sale)
    return {"sale": sale}


@router.delete("/{sale_id}", response_model=SaleResultOut)
def refund(
    sale_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    """Refund a sale and restore inventory. Admin only."""
    try:
        sale = refund_sale(db, sale_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(sale)
    return {"success": True, "message": "Sale refunded successfully", "sale": sale}
