from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class OrderItemIn(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class OrderCreateIn(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    shipping_address: Optional[Dict[str, Any]] = None


class OrderStatusIn(BaseModel):
    status: str
