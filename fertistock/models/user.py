from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int = Field(default=None, primary_key=True, nullable=False)
    name: str = Field(nullable=False)
    email: str = Field(unique=True, nullable=False, index=True)
    passwd: str = Field(nullable=False)
    role: str = Field(nullable=False)
    active: bool = Field(default=True, nullable=False)
