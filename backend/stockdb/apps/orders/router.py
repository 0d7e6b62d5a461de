from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from stockdb.apps.events.broker import event_log
from stockdb.apps.inventory import services as inventory_services
from stockdb.database import get_db, get_read_db

from . import schemas, services
from .fulfillment import FulfillmentEngine

router = APIRouter(prefix="/orders", tags=["orders"])

fulfillment_engine = FulfillmentEngine(
    ledger=inventory_services,
    registry=services,
    notifier=event_log,
)


@router.post(
    "",
    response_model=schemas.OrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: schemas.OrderCreate,
    db: Session = Depends(get_db),
):
    order = services.create_order(db, order_number=payload.order_number, lines=payload.items)
    db.commit()
    db.refresh(order)
    return order


@router.get("/{order_id}", response_model=schemas.OrderRead)
def get_order(order_id: int, db: Session = Depends(get_read_db)):
    order = services.get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.post("/{order_id}/fulfill", response_model=schemas.OrderRead)
def fulfill_order(
    order_id: int,
    payload: Optional[schemas.FulfillOrderRequest] = Body(None),
    db: Session = Depends(get_db),
):
    location = payload.location if payload else None
    order = fulfillment_engine.fulfill(db, order_id, location=location)
    db.refresh(order)
    return order
