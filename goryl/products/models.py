from typing import Optional
from pydantic import BaseModel, Field


class ProductCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: int = Field(..., gt=0, description="Price in cents")
    stock_qty: int = Field(0, ge=0)
    category_slug: str
    image_url: Optional[str] = None


class ProductReviewIn(BaseModel):
    reason: Optional[str] = None


class ReviewIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
