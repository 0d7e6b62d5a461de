from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from stockdb.database import get_db, get_read_db

from . import schemas, services

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.post(
    "/items",
    response_model=schemas.InventoryItemRead,
    status_code=status.HTTP_201_CREATED,
)
def create_item(
    payload: schemas.InventoryItemCreate,
    db: Session = Depends(get_db),
):
    item = services.create_item(
        db,
        name=payload.name,
        sku=payload.sku,
        item_type=payload.type,
        unit=payload.unit,
    )
    db.commit()
    db.refresh(item)
    return item


@router.get("/items", response_model=List[schemas.InventoryItemRead])
def list_items(db: Session = Depends(get_read_db)):
    return services.list_items(db)


@router.post(
    "/stock",
    response_model=schemas.InventoryStockRead,
    status_code=status.HTTP_201_CREATED,
)
def receive_stock(
    payload: schemas.StockReceiveRequest,
    db: Session = Depends(get_db),
):
    entry = services.receive_stock(
        db,
        item_id=payload.item_id,
        location=payload.location,
        quantity=payload.quantity,
    )
    db.commit()
    db.refresh(entry)
    return entry


@router.get("/items/{item_id}/available", response_model=schemas.AvailableQuantityRead)
def get_available(
    item_id: int,
    location: Optional[str] = Query(None),
    db: Session = Depends(get_read_db),
):
    if not services.get_item(db, item_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
    return schemas.AvailableQuantityRead(
        item_id=item_id,
        location=location,
        available=services.available_total(db, item_id, location),
    )


@router.get("/items/{item_id}/stock", response_model=List[schemas.InventoryStockRead])
def list_stock(item_id: int, db: Session = Depends(get_read_db)):
    return services.list_stock(db, item_id)
