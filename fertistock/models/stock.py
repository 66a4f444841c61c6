from datetime import datetime
from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field
from fertistock.utils.dates import utc_now


class Stock(SQLModel, table=True):
    """Existencias actuales de un producto en una sucursal.

    La cantidad es la suma de las entradas activas del par (producto, sucursal)
    y solo la modifica el servicio `stock_ledger`.
    """

    __tablename__ = "stock"
    __table_args__ = (
        UniqueConstraint("product_id", "branch_id", name="uq_stock_product_branch"),
        CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
    )

    id: int = Field(default=None, primary_key=True)
    product_id: int = Field(
        foreign_key="products.id", nullable=False, description="Producto asociado"
    )
    branch_id: int = Field(
        foreign_key="branches.id", nullable=False, description="Sucursal asociada"
    )
    quantity: int = Field(
        default=0, nullable=False, ge=0, description="Unidades en stock (mínimo 0)"
    )
    unit: str = Field(default="", max_length=20)
    memo: str = Field(default="")
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
