from typing import Optional
from sqlmodel import SQLModel, Field


class Supplier(SQLModel, table=True):
    __tablename__ = "suppliers"

    id: int = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=100)
    company_name: Optional[str] = Field(default=None, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=30)
    active: bool = Field(default=True, nullable=False)
