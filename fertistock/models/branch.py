from typing import Optional
from sqlmodel import SQLModel, Field


class Branch(SQLModel, table=True):
    __tablename__ = "branches"

    id: int = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True, nullable=False, max_length=20)
    name: str = Field(nullable=False, max_length=255)
    address: Optional[str] = Field(default=None, max_length=255)
    active: bool = Field(default=True, nullable=False)
