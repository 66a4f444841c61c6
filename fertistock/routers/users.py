from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, func, select
from sqlalchemy.exc import SQLAlchemyError
from fertistock.dependencies import require_admin
from fertistock.models.database import get_db
from fertistock.models.user import User
from fertistock.schemas.user import (
    PaginatedUserResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from fertistock.utils.authentication import hash_password

# Todas las rutas son solo para administradores
router = APIRouter(
    prefix="/usuarios", tags=["Usuarios"], dependencies=[Depends(require_admin)]
)


def _ensure_email_free(db: Session, email: str, user_id: Optional[int] = None):
    statement = select(User.id).where(User.email == email)
    if user_id is not None:
        statement = statement.where(User.id != user_id)
    if db.exec(statement).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El correo ya está registrado.",
        )


def _save(db: Session, user: User, error_detail: str) -> User:
    try:
        db.add(user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_detail
        )
    db.refresh(user)
    return user


@router.get("/", response_model=PaginatedUserResponse)
def get_users(
    db: Session = Depends(get_db),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
):
    """Lista el personal, filtrando por nombre/email, rol o estado."""
    statement = select(User)
    if search:
        search_like = f"%{search.lower()}%"
        statement = statement.where(
            func.lower(User.name).like(search_like)
            | func.lower(User.email).like(search_like)
        )
    if role:
        statement = statement.where(User.role == role)
    if active is not None:
        statement = statement.where(User.active == active)

    try:
        users = db.exec(statement.order_by(User.name).limit(limit).offset(offset)).all()
        total_records = (
            db.exec(select(func.count()).select_from(statement.subquery())).first() or 0
        )
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return {"data": users, "total": total_records, "limit": limit, "offset": offset}


@router.get("/{id}", response_model=UserResponse)
def get_user(id: int, db: Session = Depends(get_db)):
    user = db.get(User, id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado"
        )
    return user


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(user_data: UserCreate, db: Session = Depends(get_db)):
    """Alta directa por un admin, con el rol y el estado que indique."""
    _ensure_email_free(db, user_data.email)

    new_user = User(
        **user_data.model_dump(exclude={"passwd", "role", "active"}),
        passwd=hash_password(user_data.passwd),
        role=user_data.role or "staff",
        active=bool(user_data.active),
    )
    return _save(db, new_user, "Error interno del servidor al crear el usuario.")


@router.put("/{id}", response_model=UserResponse)
def update_user(
    id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = db.get(User, id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado"
        )

    if user_update.email:
        _ensure_email_free(db, user_update.email, user_id=id)

    # Un admin no puede desactivarse ni quitarse el rol a sí mismo
    if user.id == current_user.id and (
        user_update.active is False
        or (user_update.role is not None and user_update.role != "admin")
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No puedes desactivarte ni cambiar tu propio rol.",
        )

    changes = user_update.model_dump(exclude_unset=True, exclude_none=True)
    if "passwd" in changes:
        changes["passwd"] = hash_password(changes["passwd"])
    for field, value in changes.items():
        setattr(user, field, value)

    return _save(db, user, "Error interno al actualizar el usuario.")
