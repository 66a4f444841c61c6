from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

ROLE_PATTERN = "^(admin|manager|staff)$"


class UserBase(BaseModel):
    """
    Esquema base para usuarios.
    - `EmailStr` valida que el correo tenga formato correcto.
    """

    name: str = Field(..., min_length=3, max_length=100, description="Nombre del usuario")
    email: EmailStr = Field(..., max_length=100, description="Correo electrónico válido")


class UserCreate(UserBase):
    """
    Esquema para registrar usuarios.
    - `passwd`: mínimo 8 caracteres.
    - `role`: por defecto 'staff'.
    - `active`: False por defecto, un administrador debe activarlo.
    """

    passwd: str = Field(..., min_length=8, max_length=72)
    role: Optional[str] = Field(default="staff", pattern=ROLE_PATTERN)
    active: Optional[bool] = Field(default=False)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = Field(None, max_length=100)
    role: Optional[str] = Field(None, pattern=ROLE_PATTERN)
    active: Optional[bool] = None
    passwd: Optional[str] = Field(None, min_length=8, max_length=72)


class UserResponse(UserBase):
    """No incluye `passwd` por seguridad."""

    id: int
    role: str
    active: bool

    class Config:
        from_attributes = True


class PaginatedUserResponse(BaseModel):
    data: List[UserResponse]
    total: int
    limit: int
    offset: int
