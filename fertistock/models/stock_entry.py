from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from fertistock.utils.dates import utc_now


class StockEntry(SQLModel, table=True):
    __tablename__ = "stock_entries"

    id: int = Field(default=None, primary_key=True, nullable=False)
    product_id: int = Field(foreign_key="products.id", nullable=False, index=True)
    supplier_id: int = Field(foreign_key="suppliers.id", nullable=False)
    branch_id: int = Field(foreign_key="branches.id", nullable=False, index=True)
    quantity: int = Field(nullable=False, ge=1)  # Cantidad del evento, no un delta
    entry_price: Decimal = Field(default=0, max_digits=12, decimal_places=2)
    entry_date: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    invoice: Optional[str] = Field(default=None, max_length=100)
    memo: Optional[str] = Field(default=None)
    status: str = Field(
        default="active", nullable=False, index=True
    )  # "active" | "inactive", la restricción está en el esquema
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
