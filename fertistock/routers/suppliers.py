from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, func, select
from sqlalchemy.exc import SQLAlchemyError
from fertistock.dependencies import require_admin
from fertistock.models.database import get_db
from fertistock.models.stock_entry import StockEntry
from fertistock.models.supplier import Supplier
from fertistock.models.user import User
from fertistock.routers.auth import get_current_user
from fertistock.schemas.supplier import (
    PaginatedSupplierResponse,
    SupplierCreate,
    SupplierResponse,
    SupplierUpdate,
)

router = APIRouter(prefix="/suppliers", tags=["Proveedores"])


@router.get("/", response_model=PaginatedSupplierResponse)
def get_suppliers(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
):
    """Lista los proveedores, con búsqueda por nombre o empresa."""
    try:
        statement = select(Supplier)

        if search:
            search_like = f"%{search.lower()}%"
            statement = statement.where(
                func.lower(Supplier.name).like(search_like)
                | func.lower(Supplier.company_name).like(search_like)
            )

        if active is not None:
            statement = statement.where(Supplier.active == active)

        suppliers = db.exec(
            statement.order_by(Supplier.name).limit(limit).offset(offset)
        ).all()
        total_records = (
            db.exec(select(func.count()).select_from(statement.subquery())).first() or 0
        )
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return {"data": suppliers, "total": total_records, "limit": limit, "offset": offset}


@router.get("/{id}", response_model=SupplierResponse)
def get_supplier(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    supplier = db.get(Supplier, id)
    if not supplier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Proveedor no encontrado"
        )
    return supplier


@router.post("/", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    supplier_data: SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    new_supplier = Supplier(**supplier_data.model_dump())

    try:
        db.add(new_supplier)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor al registrar el proveedor.",
        )
    db.refresh(new_supplier)
    return new_supplier


@router.put("/{id}", response_model=SupplierResponse)
def update_supplier(
    id: int,
    supplier_update: SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    supplier = db.get(Supplier, id)
    if not supplier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Proveedor no encontrado"
        )

    for field, value in supplier_update.model_dump(exclude_unset=True).items():
        if value is not None or field in {"company_name", "phone"}:
            setattr(supplier, field, value)

    try:
        db.add(supplier)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al actualizar el proveedor.",
        )
    db.refresh(supplier)
    return supplier


@router.delete("/{id}", response_model=SupplierResponse)
def delete_supplier(
    id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Elimina un proveedor sin entradas de stock; si las tiene, se debe desactivar."""
    supplier = db.get(Supplier, id)
    if not supplier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Proveedor no encontrado"
        )

    if db.exec(select(StockEntry.id).where(StockEntry.supplier_id == id)).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar este proveedor ya que tiene entradas de stock registradas.",
        )

    deleted = SupplierResponse.model_validate(supplier)
    try:
        db.delete(supplier)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor al eliminar el proveedor.",
        )

    return deleted
