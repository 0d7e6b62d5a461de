from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from . import models


class OrderItemCreate(BaseModel):
    item_id: int = Field(..., alias="itemId")
    quantity: int = Field(..., gt=0)

    class Config:
        populate_by_name = True


class OrderCreate(BaseModel):
    order_number: str = Field(..., alias="orderNumber", min_length=1)
    items: List[OrderItemCreate] = Field(..., min_length=1)

    class Config:
        populate_by_name = True


class FulfillOrderRequest(BaseModel):
    location: Optional[str] = None


class OrderItemRead(BaseModel):
    id: int
    order_id: int = Field(..., serialization_alias="orderId")
    item_id: int = Field(..., serialization_alias="itemId")
    quantity: int

    class Config:
        from_attributes = True
        populate_by_name = True


class OrderRead(BaseModel):
    id: int
    order_number: str = Field(..., serialization_alias="orderNumber")
    status: models.OrderStatusEnum
    created_at: datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime = Field(..., serialization_alias="updatedAt")
    items: List[OrderItemRead] = Field(default_factory=list)

    class Config:
        from_attributes = True
        populate_by_name = True
