"""
Cuentas de usuario del sistema de inventario.

- POST /auth/registro: alta de un usuario `staff` inactivo; un admin lo activa.
- POST /auth/login: credenciales (el `username` del formulario es el email).
  Devuelve el token de acceso y deja el de refresco en una cookie HttpOnly.
- GET /auth/perfil: usuario autenticado.
- POST /auth/refresh: nuevo token de acceso a partir de la cookie.
- POST /auth/logout: borra la cookie.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError
from fertistock.models.database import get_db
from fertistock.models.user import User
from fertistock.schemas.user import UserCreate, UserResponse
from fertistock.utils.authentication import (
    ACCESS,
    REFRESH,
    REFRESH_TOKEN_DURATION,
    create_token,
    decode_token,
    hash_password,
    verify_password,
)

router = APIRouter(prefix="/auth", tags=["Autenticación"])

oauth2 = OAuth2PasswordBearer(tokenUrl="/auth/login")

REFRESH_COOKIE = "refresh_token"
REFRESH_COOKIE_PATH = "/auth/refresh"


def _find_user(db: Session, **filters) -> User:
    try:
        statement = select(User)
        for field, value in filters.items():
            statement = statement.where(getattr(User, field) == value)
        return db.exec(statement).first()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )


def _ensure_active(user: User) -> None:
    if not user.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="El usuario está inactivo. Contacta al administrador para activarlo.",
        )


def _token_response(response: Response, user: User) -> dict:
    """Emite el par de tokens: el de refresco va en cookie, el de acceso en el cuerpo."""
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=create_token(user.id, REFRESH),
        httponly=True,
        secure=True,
        samesite="none",
        path=REFRESH_COOKIE_PATH,
        max_age=REFRESH_TOKEN_DURATION * 24 * 60 * 60,
    )
    return {
        "access_token": create_token(user.id, ACCESS, {"role": user.role}),
        "token_type": "bearer",
    }


@router.post(
    "/registro", response_model=UserResponse, status_code=status.HTTP_201_CREATED
)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """El rol y el estado enviados se ignoran: siempre `staff` e inactivo."""
    if _find_user(db, email=user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El correo ya está registrado.",
        )

    new_user = User(
        name=user_data.name,
        email=user_data.email,
        passwd=hash_password(user_data.passwd),
        role="staff",
        active=False,
    )

    try:
        db.add(new_user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor al registrar el usuario.",
        )
    db.refresh(new_user)
    return new_user


@router.post("/login")
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = _find_user(db, email=form_data.username)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="El usuario no existe"
        )
    _ensure_active(user)
    if not verify_password(form_data.password, user.passwd):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciales incorrectas"
        )

    return _token_response(response, user)


def get_current_user(token: str = Depends(oauth2), db: Session = Depends(get_db)):
    """Usuario activo dueño del token de acceso."""
    payload = decode_token(token, ACCESS)

    user = _find_user(db, id=int(payload["sub"]))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuario no encontrado o eliminado",
        )
    _ensure_active(user)
    return user


@router.get("/perfil", response_model=UserResponse)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.post("/refresh")
def refresh_token(request: Request, response: Response, db: Session = Depends(get_db)):
    """Renueva ambos tokens. Solo acepta tokens de refresco."""
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token no encontrado en cookies",
        )

    payload = decode_token(token, REFRESH)
    user = _find_user(db, id=int(payload["sub"]))
    if not user or not user.active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado o inactivo",
        )

    return _token_response(response, user)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(
        key=REFRESH_COOKIE, path=REFRESH_COOKIE_PATH, secure=True, samesite="none"
    )
    return {"message": "Sesión cerrada correctamente"}
