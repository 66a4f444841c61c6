from pydantic import BaseModel, Field
from typing import List, Optional


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=50)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=50)


class CategoryResponse(CategoryBase):
    id: int
    product_count: int = 0

    class Config:
        from_attributes = True


class PaginatedCategoryResponse(BaseModel):
    data: List[CategoryResponse]
    total: int
    limit: int
    offset: int
