from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from fertistock.dependencies import get_default_branch_id, require_admin
from fertistock.models.branch import Branch
from fertistock.models.database import get_db
from fertistock.models.stock import Stock
from fertistock.models.stock_entry import StockEntry
from fertistock.models.user import User
from fertistock.routers.auth import get_current_user
from fertistock.schemas.branch import (
    BranchCreate,
    BranchResponse,
    BranchUpdate,
    PaginatedBranchResponse,
)

router = APIRouter(prefix="/branches", tags=["Sucursales"])


def _stock_in_branch(db: Session, branch_id: int) -> int:
    try:
        return (
            db.exec(
                select(func.sum(Stock.quantity)).where(Stock.branch_id == branch_id)
            ).first()
            or 0
        )
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )


@router.get("/", response_model=PaginatedBranchResponse)
def get_branches(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
):
    """Lista las sucursales. Usuarios y admins pueden verlas."""
    try:
        statement = select(Branch)

        if search:
            search_like = f"%{search.lower()}%"
            statement = statement.where(
                func.lower(Branch.name).like(search_like)
                | func.lower(Branch.code).like(search_like)
            )

        if active is not None:
            statement = statement.where(Branch.active == active)

        branches = db.exec(
            statement.order_by(Branch.name).limit(limit).offset(offset)
        ).all()
        total_records = (
            db.exec(select(func.count()).select_from(statement.subquery())).first() or 0
        )

    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )
    return {"data": branches, "total": total_records, "limit": limit, "offset": offset}


@router.get("/{id}", response_model=BranchResponse)
def get_branch(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    branch = db.get(Branch, id)
    if not branch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Sucursal no encontrada."
        )
    return branch


@router.post("/", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
def create_branch(
    branch_data: BranchCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Crea una sucursal. Solo administradores."""
    new_branch = Branch(**branch_data.model_dump())

    try:
        db.add(new_branch)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ya existe una sucursal con ese código.",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor al registrar la sucursal.",
        )
    db.refresh(new_branch)
    return new_branch


@router.put("/{id}", response_model=BranchResponse)
def update_branch(
    id: int,
    branch_update: BranchUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    default_branch_id: int = Depends(get_default_branch_id),
):
    """Edita nombre, dirección o estado. No se puede desactivar una sucursal con stock."""
    branch = db.get(Branch, id)
    if not branch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Sucursal no encontrada"
        )

    if branch_update.active is False:
        if id == default_branch_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La sucursal por defecto no se puede desactivar.",
            )
        if _stock_in_branch(db, id) > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"La sucursal {branch.code} tiene stock y no se puede desactivar.",
            )

    if branch_update.name:
        branch.name = branch_update.name
    if branch_update.address is not None:
        branch.address = branch_update.address
    if branch_update.active is not None:
        branch.active = branch_update.active

    try:
        db.add(branch)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor al actualizar la sucursal.",
        )
    db.refresh(branch)
    return branch


@router.delete("/{id}", response_model=BranchResponse)
def delete_branch(
    id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    default_branch_id: int = Depends(get_default_branch_id),
):
    """Elimina una sucursal solo si no tiene entradas de stock."""
    branch = db.get(Branch, id)
    if not branch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Sucursal no encontrada"
        )

    if id == default_branch_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La sucursal por defecto no se puede eliminar.",
        )

    if db.exec(select(StockEntry.id).where(StockEntry.branch_id == id)).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar esta sucursal ya que tiene entradas de stock registradas.",
        )

    deleted = BranchResponse.model_validate(branch)
    try:
        db.delete(branch)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor al eliminar la sucursal.",
        )

    return deleted
