# Contraseñas con bcrypt (passlib) y tokens JWT de acceso y de refresco.
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import HTTPException, status
from passlib.context import CryptContext
import jwt
from fertistock.utils.getenv import get_env, get_required_env

SECRET_KEY = get_required_env("SECRET_KEY")
ALGORITHM = "HS256"

ACCESS_TOKEN_DURATION = int(get_env("ACCESS_TOKEN_DURATION", "30"))  # minutos
REFRESH_TOKEN_DURATION = int(get_env("REFRESH_TOKEN_DURATION", "7"))  # días

ACCESS = "access"
REFRESH = "refresh"

_TOKEN_LIFETIMES = {
    ACCESS: timedelta(minutes=ACCESS_TOKEN_DURATION),
    REFRESH: timedelta(days=REFRESH_TOKEN_DURATION),
}

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_token(user_id: int, token_type: str, claims: Optional[dict] = None) -> str:
    """Firma un token del tipo indicado (`access` o `refresh`) para el usuario.

    La expiración depende del tipo: minutos para el de acceso, días para el de
    refresco.
    """
    payload = dict(claims or {})
    payload.update(
        {
            "sub": str(user_id),
            "type": token_type,
            "exp": datetime.now(timezone.utc) + _TOKEN_LIFETIMES[token_type],
        }
    )
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str, token_type: str) -> dict:
    """Valida firma, expiración y tipo del token. Cualquier fallo es un 401."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expirado"
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido"
        )

    if payload.get("type") != token_type or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido"
        )
    return payload
