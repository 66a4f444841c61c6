from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, func, select
from sqlalchemy.exc import SQLAlchemyError
from fertistock.dependencies import require_admin
from fertistock.models.branch import Branch
from fertistock.models.category import Category
from fertistock.models.database import get_db
from fertistock.models.product import Product
from fertistock.models.stock import Stock
from fertistock.models.user import User
from fertistock.routers.auth import get_current_user
from fertistock.schemas.stock import (
    PaginatedStockResponse,
    StockAuditResponse,
    StockResponse,
)
from fertistock.services import stock_ledger
from fertistock.utils.settings import LOW_STOCK_THRESHOLD

router = APIRouter(prefix="/inventory", tags=["Inventario"])


@router.get("/", response_model=PaginatedStockResponse)
def get_inventory(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    low_stock: bool = Query(False),
    branch_id: Optional[int] = Query(None),
):
    """Stock actual por producto y sucursal (solo productos activos), los más recientes primero."""
    try:
        statement = (
            select(
                Stock.id,
                Stock.product_id,
                Product.name.label("product_name"),
                Product.code.label("product_code"),
                Category.name.label("category_name"),
                Stock.branch_id,
                Branch.name.label("branch_name"),
                Stock.quantity,
                Stock.unit,
                Stock.memo,
                Stock.updated_at,
            )
            .join(Product, Product.id == Stock.product_id)
            .join(Category, Category.id == Product.category_id, isouter=True)
            .join(Branch, Branch.id == Stock.branch_id)
            .where(Product.active == True)  # noqa: E712
        )

        if search:
            search_like = f"%{search.lower()}%"
            statement = statement.where(
                func.lower(Product.name).like(search_like)
                | func.lower(Product.code).like(search_like)
            )

        if low_stock:
            statement = statement.where(Stock.quantity < LOW_STOCK_THRESHOLD)

        if branch_id:
            statement = statement.where(Stock.branch_id == branch_id)

        rows = db.exec(
            statement.order_by(Stock.updated_at.desc(), Stock.id.desc())
            .limit(limit)
            .offset(offset)
        ).all()
        total_records = (
            db.exec(select(func.count()).select_from(statement.subquery())).first() or 0
        )

    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return PaginatedStockResponse(
        data=[StockResponse.model_validate(row) for row in rows],
        total=total_records,
        limit=limit,
        offset=offset,
    )


@router.get("/audit", response_model=StockAuditResponse)
def audit_inventory(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Comprueba que cada stock coincide con la suma de sus entradas activas."""
    try:
        return stock_ledger.audit_stock(db)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )
