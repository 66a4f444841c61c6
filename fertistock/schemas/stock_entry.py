from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


EntryStatus = Literal["active", "inactive"]


class RecordEntryInput(BaseModel):
    """Datos para registrar una entrada de stock.
    - `branch_id` es opcional: si no se envía se usa la sucursal por defecto.
    - `entry_date` es opcional: por defecto, la fecha actual."""

    product_id: int = Field(..., gt=0, description="Producto que entra en stock")
    supplier_id: int = Field(..., gt=0, description="Proveedor de la mercancía")
    branch_id: Optional[int] = Field(None, gt=0, description="Sucursal de destino")
    quantity: int = Field(..., ge=1, description="Unidades que entran (mayor a 0)")
    entry_price: Decimal = Field(..., ge=0, description="Precio unitario de entrada")
    entry_date: Optional[datetime] = Field(None, description="Fecha de la entrada")
    invoice: Optional[str] = Field(None, max_length=100)
    memo: Optional[str] = Field(None, max_length=500)


class ReviseEntryInput(BaseModel):
    """Corrección parcial de una entrada de stock.
    - Solo se actualizan los campos enviados.
    - `status="inactive"` retira la entrada (igual que DELETE)."""

    product_id: Optional[int] = Field(None, gt=0)
    supplier_id: Optional[int] = Field(None, gt=0)
    branch_id: Optional[int] = Field(None, gt=0)
    quantity: Optional[int] = Field(None, ge=1)
    entry_price: Optional[Decimal] = Field(None, ge=0)
    entry_date: Optional[datetime] = None
    invoice: Optional[str] = Field(None, max_length=100)
    memo: Optional[str] = Field(None, max_length=500)
    status: Optional[EntryStatus] = None


class RetireEntryInput(BaseModel):
    entry_id: int = Field(..., gt=0, description="Entrada que se retira")


class ProductSummary(BaseModel):
    id: int
    code: str
    name: str
    unit: Optional[str] = None

    class Config:
        from_attributes = True


class SupplierSummary(BaseModel):
    id: int
    name: str
    company_name: Optional[str] = None

    class Config:
        from_attributes = True


class BranchSummary(BaseModel):
    id: int
    code: str
    name: str

    class Config:
        from_attributes = True


class StockEntryResponse(BaseModel):
    """Entrada de stock con los datos resumidos de producto, proveedor y sucursal."""

    id: int
    product_id: int
    supplier_id: int
    branch_id: int
    quantity: int
    entry_price: float
    entry_date: datetime
    invoice: Optional[str] = None
    memo: Optional[str] = None
    status: EntryStatus
    created_at: datetime
    updated_at: datetime
    product: Optional[ProductSummary] = None
    supplier: Optional[SupplierSummary] = None
    branch: Optional[BranchSummary] = None

    class Config:
        from_attributes = True


class PaginatedStockEntryResponse(BaseModel):
    data: List[StockEntryResponse]
    total: int
    limit: int
    offset: int


class StockEntryLastYearGraph(BaseModel):
    id: int
    product_id: int
    branch_id: int
    entry_date: datetime
    quantity: int


class RetiredEntryResponse(BaseModel):
    id: int
