from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from fertistock.dependencies import require_admin
from fertistock.models.category import Category
from fertistock.models.database import get_db
from fertistock.models.product import Product
from fertistock.models.stock import Stock
from fertistock.models.stock_entry import StockEntry
from fertistock.models.user import User
from fertistock.routers.auth import get_current_user
from fertistock.schemas.product import (
    BulkStatusRequest,
    PaginatedProductResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from fertistock.utils.validation import is_admin_user

router = APIRouter(prefix="/products", tags=["Productos"])


def _with_category(db: Session, product: Product) -> dict:
    category = db.get(Category, product.category_id)
    return {**product.model_dump(), "category_name": category.name if category else ""}


def _get_or_404(db: Session, id: int) -> Product:
    product = db.get(Product, id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado"
        )
    return product


def _check_references(
    db: Session,
    code: Optional[str],
    category_id: Optional[int],
    product_id: Optional[int] = None,
):
    """Código libre y categoría existente. Solo se comprueba lo que se envía."""
    if code:
        statement = select(Product.id).where(Product.code == code)
        if product_id is not None:
            statement = statement.where(Product.id != product_id)
        if db.exec(statement).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"El código {code} ya está registrado.",
            )

    if category_id and not db.get(Category, category_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La categoría especificada no existe.",
        )


def _stock_total(db: Session, product_id: int) -> int:
    return (
        db.exec(
            select(func.sum(Stock.quantity)).where(Stock.product_id == product_id)
        ).first()
        or 0
    )


@router.get("/", response_model=PaginatedProductResponse)
def get_products(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    active: Optional[bool] = Query(None),
):
    """Catálogo de fertilizantes. Solo los admins ven (y filtran) los inactivos."""
    statement = select(Product, Category.name).join(
        Category, Product.category_id == Category.id
    )

    if search:
        search_like = f"%{search.lower()}%"
        statement = statement.where(
            func.lower(Product.name).like(search_like)
            | func.lower(Product.code).like(search_like)
        )
    if category_id:
        statement = statement.where(Product.category_id == category_id)
    if not is_admin_user(current_user):
        statement = statement.where(Product.active == True)  # noqa: E712
    elif active is not None:
        statement = statement.where(Product.active == active)

    try:
        rows = db.exec(statement.order_by(Product.name).limit(limit).offset(offset)).all()
        total_records = (
            db.exec(select(func.count()).select_from(statement.subquery())).first() or 0
        )
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return {
        "data": [
            {**product.model_dump(), "category_name": category_name}
            for product, category_name in rows
        ],
        "total": total_records,
        "limit": limit,
        "offset": offset,
    }


@router.get("/{id}", response_model=ProductResponse)
def get_product(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _get_or_404(db, id)
    if not product.active and not is_admin_user(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permiso para ver este producto",
        )
    return _with_category(db, product)


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_references(db, product_data.code, product_data.category_id)

    product = Product(**product_data.model_dump())
    try:
        db.add(product)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error de integridad en la base de datos. Verifica los datos enviados.",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al crear el producto.",
        )
    db.refresh(product)
    return _with_category(db, product)


@router.put("/status-multiple")
def change_products_status(
    data: BulkStatusRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Activa o desactiva varios productos a la vez.

    Un producto con existencias en alguna sucursal no se desactiva; se cuenta
    en `skipped` junto con los identificadores que no existen.
    """
    updated = 0
    try:
        for product in db.exec(select(Product).where(Product.id.in_(data.ids))).all():
            if product.active == data.active:
                updated += 1
                continue
            if not data.active and _stock_total(db, product.id) > 0:
                continue
            product.active = data.active
            db.add(product)
            updated += 1
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(500, detail="Error al actualizar productos")

    return {
        "message": f"{updated} productos actualizados",
        "skipped": len(set(data.ids)) - updated,
    }


@router.put("/{id}", response_model=ProductResponse)
def update_product(
    id: int,
    product_update: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Edición parcial. Cambiar `active` es cosa de admins."""
    product = _get_or_404(db, id)

    if product_update.active is not None and not is_admin_user(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para cambiar el estado del producto",
        )
    _check_references(db, product_update.code, product_update.category_id, product_id=id)

    for field, value in product_update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(product, field, value)

    try:
        db.add(product)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al actualizar el producto.",
        )
    db.refresh(product)
    return _with_category(db, product)


@router.delete("/{id}", response_model=ProductResponse)
def delete_product(
    id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin)
):
    """Borrado físico, solo para productos sin historial de entradas."""
    product = _get_or_404(db, id)

    if db.exec(select(StockEntry.id).where(StockEntry.product_id == id)).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Este producto tiene entradas de stock asociadas, no se puede eliminar.",
        )

    deleted = _with_category(db, product)
    try:
        db.delete(product)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al eliminar el producto.",
        )
    return deleted
