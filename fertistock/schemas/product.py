from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional


class ProductBase(BaseModel):
    """
    Esquema base para productos.
    - `code`: solo letras mayúsculas, números y guiones.
    - `unit`: unidad de medida (kg, saco, litro...), se copia al stock.
    """

    code: str = Field(..., min_length=3, max_length=20, pattern="^[A-Z0-9-]+$")
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    unit: Optional[str] = Field(None, max_length=20)
    category_id: int = Field(..., gt=0)
    cost_price: Decimal = Field(default=Decimal("0"), ge=0)
    sell_price: Decimal = Field(default=Decimal("0"), ge=0)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=3, max_length=20, pattern="^[A-Z0-9-]+$")
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    unit: Optional[str] = Field(None, max_length=20)
    category_id: Optional[int] = Field(None, gt=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    sell_price: Optional[Decimal] = Field(None, ge=0)
    active: Optional[bool] = None


class ProductResponse(ProductBase):
    id: int
    active: bool
    category_name: str
    cost_price: float
    sell_price: float

    class Config:
        from_attributes = True


class PaginatedProductResponse(BaseModel):
    data: List[ProductResponse]
    total: int
    limit: int
    offset: int


class BulkStatusRequest(BaseModel):
    ids: List[int]
    active: bool
