from datetime import date, datetime, time, timezone
from typing import List, Optional
from dateutil.relativedelta import relativedelta
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlmodel import Session, func, select
from sqlalchemy.exc import SQLAlchemyError
from fertistock.dependencies import get_default_branch_id
from fertistock.models.branch import Branch
from fertistock.models.database import get_db
from fertistock.models.product import Product
from fertistock.models.stock_entry import StockEntry
from fertistock.models.supplier import Supplier
from fertistock.models.user import User
from fertistock.routers.auth import get_current_user
from fertistock.routers.websocket import notify_inventory_change
from fertistock.schemas.stock_entry import (
    PaginatedStockEntryResponse,
    RecordEntryInput,
    RetiredEntryResponse,
    RetireEntryInput,
    ReviseEntryInput,
    StockEntryLastYearGraph,
    StockEntryResponse,
)
from fertistock.services import stock_ledger
from fertistock.utils.dates import utc_now
from fertistock.utils.settings import LOW_STOCK_THRESHOLD

router = APIRouter(prefix="/stockentries", tags=["Entradas de stock"])


@router.get("/", response_model=PaginatedStockEntryResponse)
def get_stock_entries(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    low_stock: bool = Query(False),
    product_id: Optional[int] = Query(None),
    branch_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
):
    """Lista las entradas activas, las más recientes primero.
    - `search` busca en nombre y código del producto, factura y nota.
    - `low_stock` deja solo las entradas con cantidad menor al umbral configurado.
    """
    try:
        statement = (
            select(StockEntry, Product, Supplier, Branch)
            .join(Product, Product.id == StockEntry.product_id)
            .join(Supplier, Supplier.id == StockEntry.supplier_id)
            .join(Branch, Branch.id == StockEntry.branch_id)
            .where(StockEntry.status == stock_ledger.ACTIVE)
        )

        if search:
            search_like = f"%{search.lower()}%"
            statement = statement.where(
                func.lower(Product.name).like(search_like)
                | func.lower(Product.code).like(search_like)
                | func.lower(StockEntry.invoice).like(search_like)
                | func.lower(StockEntry.memo).like(search_like)
            )

        if low_stock:
            statement = statement.where(StockEntry.quantity < LOW_STOCK_THRESHOLD)

        if product_id:
            statement = statement.where(StockEntry.product_id == product_id)

        if branch_id:
            statement = statement.where(StockEntry.branch_id == branch_id)

        if date_from:
            statement = statement.where(
                StockEntry.entry_date
                >= datetime.combine(date_from, time.min, tzinfo=timezone.utc)
            )

        if date_to:
            statement = statement.where(
                StockEntry.entry_date
                <= datetime.combine(date_to, time.max, tzinfo=timezone.utc)
            )

        results = db.exec(
            statement.order_by(StockEntry.created_at.desc(), StockEntry.id.desc())
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

    entries = [
        {
            **entry.model_dump(),
            "product": product.model_dump(),
            "supplier": supplier.model_dump(),
            "branch": branch.model_dump(),
        }
        for entry, product, supplier, branch in results
    ]

    return {"data": entries, "total": total_records, "limit": limit, "offset": offset}


@router.get("/last-year", response_model=List[StockEntryLastYearGraph])
def get_stock_entries_last_year(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Entradas activas del último año, para gráficos."""
    date_to = utc_now()
    date_from = date_to - relativedelta(years=1)

    try:
        results = db.exec(
            select(StockEntry)
            .where(StockEntry.status == stock_ledger.ACTIVE)
            .where(StockEntry.entry_date >= date_from)
            .where(StockEntry.entry_date <= date_to)
            .order_by(StockEntry.entry_date.desc())
        ).all()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return [
        StockEntryLastYearGraph(
            id=row.id,
            product_id=row.product_id,
            branch_id=row.branch_id,
            entry_date=row.entry_date,
            quantity=row.quantity,
        )
        for row in results
    ]


@router.get("/{id}", response_model=StockEntryResponse)
def get_stock_entry(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Detalle de una entrada (activa o retirada)."""
    try:
        entry = db.get(StockEntry, id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Entrada de stock no encontrada",
        )

    return stock_ledger.describe_entry(db, entry)


@router.post("/", response_model=StockEntryResponse, status_code=status.HTTP_201_CREATED)
def create_stock_entry(
    entry_data: RecordEntryInput,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    default_branch_id: int = Depends(get_default_branch_id),
):
    """
    Registra una entrada de stock y suma su cantidad al stock de la sucursal.

    - Sin `branch_id` se usa la sucursal por defecto.
    - Producto inexistente → 404; sucursal o proveedor inexistentes → 400.
    """
    entry = stock_ledger.record_entry(db, entry_data, default_branch_id)
    notify_inventory_change(
        f"Nueva entrada de stock: {entry.id} (producto {entry.product_id}, +{entry.quantity})"
    )
    return stock_ledger.describe_entry(db, entry)


@router.put("/{id}", response_model=StockEntryResponse)
def update_stock_entry(
    id: int,
    entry_update: ReviseEntryInput,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Corrige una entrada activa. Solo se modifican los campos enviados.

    Si la corrección dejara el stock por debajo de cero se rechaza (400) y no se
    guarda ningún cambio.
    """
    entry = stock_ledger.revise_entry(db, id, entry_update)
    notify_inventory_change(f"Entrada de stock corregida: {entry.id}")
    return stock_ledger.describe_entry(db, entry)


@router.delete("/{id}", response_model=RetiredEntryResponse)
def delete_stock_entry(
    id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Retira una entrada (queda inactiva) y descuenta su cantidad del stock."""
    entry_id = stock_ledger.retire_entry(db, RetireEntryInput(entry_id=id))
    notify_inventory_change(f"Entrada de stock retirada: {entry_id}")
    return {"id": entry_id}
