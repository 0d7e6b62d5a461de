from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    unit: str = Field(..., min_length=1)


class InventoryItemRead(InventoryItemCreate):
    id: int
    created_at: datetime = Field(..., serialization_alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class StockReceiveRequest(BaseModel):
    item_id: int = Field(..., alias="itemId")
    location: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)

    class Config:
        populate_by_name = True


class InventoryStockRead(BaseModel):
    id: int
    item_id: int = Field(..., serialization_alias="itemId")
    location: str
    quantity: int
    created_at: datetime = Field(..., serialization_alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class AvailableQuantityRead(BaseModel):
    item_id: int = Field(..., serialization_alias="itemId")
    location: Optional[str] = None
    available: int
