from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from fertistock.dependencies import require_admin
from fertistock.models.category import Category
from fertistock.models.database import get_db
from fertistock.models.product import Product
from fertistock.routers.auth import get_current_user
from fertistock.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    PaginatedCategoryResponse,
)
from fertistock.utils.validation import normalize_name

router = APIRouter(prefix="/categories", tags=["Categorías"])


def _get_or_404(db: Session, id: int) -> Category:
    category = db.get(Category, id)
    if not category:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Categoría no encontrada")
    return category


def _save_named(db: Session, category: Category) -> Category:
    """Guarda la categoría; el nombre normalizado es único."""
    try:
        db.add(category)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail=f"Ya existe una categoría llamada '{category.name}'",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al guardar la categoría",
        )
    db.refresh(category)
    return category


@router.get("/", response_model=PaginatedCategoryResponse)
def list_categories(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
):
    """Categorías con el número de productos de cada una."""
    statement = (
        select(Category.id, Category.name, func.count(Product.id).label("product_count"))
        .join(Product, Product.category_id == Category.id, isouter=True)
        .group_by(Category.id, Category.name)
    )
    if search:
        statement = statement.where(func.lower(Category.name).like(f"%{search.lower()}%"))

    try:
        rows = db.exec(statement.order_by(Category.name).limit(limit).offset(offset)).all()
        total = db.exec(select(func.count()).select_from(statement.subquery())).first()
    except SQLAlchemyError:
        raise HTTPException(500, detail="Error al obtener las categorías")

    return {
        "data": [CategoryResponse.model_validate(row) for row in rows],
        "total": total or 0,
        "limit": limit,
        "offset": offset,
    }


@router.get("/{id}", response_model=CategoryResponse)
def get_category(
    id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)
):
    category = _get_or_404(db, id)
    product_count = db.exec(
        select(func.count(Product.id)).where(Product.category_id == id)
    ).first()
    return {"id": category.id, "name": category.name, "product_count": product_count or 0}


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate, db: Session = Depends(get_db), admin=Depends(require_admin)
):
    """Crea la categoría con el nombre normalizado (sin tildes ni espacios de más)."""
    return _save_named(db, Category(name=normalize_name(data.name)))


@router.put("/{id}", response_model=CategoryResponse)
def update_category(
    id: int,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    category = _get_or_404(db, id)
    if data.name:
        category.name = normalize_name(data.name)
    return _save_named(db, category)


@router.delete("/{id}", response_model=CategoryResponse)
def delete_category(id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    """Solo se borran categorías vacías."""
    category = _get_or_404(db, id)

    if db.exec(select(Product.id).where(Product.category_id == id)).first():
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar esta categoría porque tiene productos asociados",
        )

    deleted = CategoryResponse.model_validate(category)
    try:
        db.delete(category)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(500, detail="Error al eliminar la categoría")

    return deleted
