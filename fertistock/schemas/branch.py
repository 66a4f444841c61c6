from typing import List, Optional
from pydantic import BaseModel, Field


class BranchBase(BaseModel):
    """Esquema base con los campos comunes de una sucursal."""

    code: str = Field(..., min_length=2, max_length=20, pattern="^[A-Z0-9_-]+$")
    name: str = Field(..., max_length=255, description="Nombre de la sucursal")
    address: Optional[str] = Field(None, max_length=255)
    active: Optional[bool] = Field(default=True)


class BranchCreate(BranchBase):
    pass


class BranchUpdate(BaseModel):
    """Actualización parcial: solo se modifican los campos enviados."""

    name: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    active: Optional[bool] = None


class BranchResponse(BranchBase):
    id: int

    class Config:
        from_attributes = True


class PaginatedBranchResponse(BaseModel):
    data: List[BranchResponse]
    total: int
    limit: int
    offset: int
