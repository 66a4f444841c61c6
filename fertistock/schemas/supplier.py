from typing import List, Optional
from pydantic import BaseModel, Field


class SupplierBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    company_name: Optional[str] = Field(None, max_length=150)
    phone: Optional[str] = Field(None, max_length=30)


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    company_name: Optional[str] = Field(None, max_length=150)
    phone: Optional[str] = Field(None, max_length=30)
    active: Optional[bool] = None


class SupplierResponse(SupplierBase):
    id: int
    active: bool

    class Config:
        from_attributes = True


class PaginatedSupplierResponse(BaseModel):
    data: List[SupplierResponse]
    total: int
    limit: int
    offset: int
