from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class StockResponse(BaseModel):
    """Existencias de un producto en una sucursal."""

    id: int
    product_id: int
    product_name: str = Field(..., description="Nombre del producto asociado")
    product_code: str
    category_name: Optional[str] = None
    branch_id: int
    branch_name: str = Field(..., description="Nombre de la sucursal asociada")
    quantity: int = Field(..., ge=0, description="Unidades disponibles en stock")
    unit: str
    memo: str
    updated_at: datetime

    class Config:
        from_attributes = True


class PaginatedStockResponse(BaseModel):
    """Esquema para paginación de StockResponse"""

    data: List[StockResponse]
    total: int
    limit: int
    offset: int


class StockDiscrepancy(BaseModel):
    """Par (producto, sucursal) cuyo stock no coincide con la suma de sus entradas activas."""

    product_id: int
    branch_id: int
    stock_quantity: int
    entries_quantity: int
    difference: int


class StockAuditResponse(BaseModel):
    checked: int = Field(..., ge=0, description="Pares (producto, sucursal) revisados")
    consistent: bool
    discrepancies: List[StockDiscrepancy]
