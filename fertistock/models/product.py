from decimal import Decimal
from typing import Optional
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: int = Field(default=None, primary_key=True, nullable=False)
    code: str = Field(unique=True, index=True, nullable=False)
    name: str = Field(nullable=False)
    description: Optional[str] = Field(default=None)
    unit: Optional[str] = Field(default=None, max_length=20)  # kg, saco, litro...
    category_id: int = Field(foreign_key="categories.id", nullable=False)
    cost_price: Decimal = Field(default=0, max_digits=12, decimal_places=2)
    sell_price: Decimal = Field(default=0, max_digits=12, decimal_places=2)
    active: bool = Field(default=True, nullable=False)
