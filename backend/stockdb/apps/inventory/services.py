from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from stockdb.apps.events.broker import AppEventType, EventLog, event_log
from stockdb.errors import DuplicateKeyError, InvariantViolationError, NotFoundError

from . import models

logger = logging.getLogger(__name__)


def _normalize_sku(sku: str) -> str:
    return (sku or "").strip()


# -------------------------------------------------------------------
# ITEM REGISTRY
# -------------------------------------------------------------------

def get_item(db: Session, item_id: int) -> Optional[models.InventoryItem]:
    return db.query(models.InventoryItem).filter(models.InventoryItem.id == item_id).first()


def get_item_by_sku(db: Session, sku: str) -> Optional[models.InventoryItem]:
    return db.query(models.InventoryItem).filter(models.InventoryItem.sku == sku).first()


def _require_item(db: Session, item_id: int) -> models.InventoryItem:
    item = get_item(db, item_id)
    if not item:
        raise NotFoundError("Inventory item not found")
    return item


def list_items(db: Session) -> List[models.InventoryItem]:
    return db.query(models.InventoryItem).order_by(models.InventoryItem.id.asc()).all()


def create_item(
    db: Session,
    *,
    name: str,
    sku: str,
    item_type: str,
    unit: str,
    notifier: EventLog = event_log,
) -> models.InventoryItem:
    sku = _normalize_sku(sku)
    if get_item_by_sku(db, sku):
        raise DuplicateKeyError("SKU already exists")
    item = models.InventoryItem(name=name, sku=sku, type=item_type, unit=unit)
    try:
        with db.begin_nested():
            db.add(item)
    except IntegrityError:
        # Lost a race with a concurrent create of the same SKU.
        if get_item_by_sku(db, sku):
            logger.warning("Concurrent SKU insert rejected", extra={"sku": sku})
            raise DuplicateKeyError("SKU already exists")
        raise
    notifier.stage(db, AppEventType.ITEM_CREATED, {"itemId": item.id, "sku": item.sku})
    return item


# -------------------------------------------------------------------
# STOCK LEDGER
# -------------------------------------------------------------------

def _stock_query(db: Session, item_id: int, location: Optional[str]) -> Query:
    query = db.query(models.InventoryStock).filter(models.InventoryStock.item_id == item_id)
    if location is not None:
        query = query.filter(models.InventoryStock.location == location)
    return query


def _locked_entry(db: Session, item_id: int, location: str) -> Optional[models.InventoryStock]:
    return _stock_query(db, item_id, location).with_for_update().populate_existing().first()


def receive_stock(
    db: Session,
    *,
    item_id: int,
    location: str,
    quantity: int,
    notifier: EventLog = event_log,
) -> models.InventoryStock:
    """Add `quantity` to the (item, location) entry, creating it on first receipt."""
    if quantity <= 0:
        raise ValueError("quantity must be positive")
    item = _require_item(db, item_id)

    entry = _locked_entry(db, item.id, location)
    if entry:
        entry.quantity += quantity
    else:
        entry = models.InventoryStock(item_id=item.id, location=location, quantity=quantity)
        try:
            with db.begin_nested():
                db.add(entry)
        except IntegrityError:
            # A concurrent first receipt created the entry; add to it instead.
            entry = _locked_entry(db, item.id, location)
            if entry is None:
                raise
            logger.info(
                "Concurrent first receipt merged into existing stock entry",
                extra={"item_id": item.id, "location": location, "stock_id": entry.id},
            )
            entry.quantity += quantity
    db.flush()

    notifier.stage(
        db,
        AppEventType.STOCK_ADDED,
        {"itemId": item.id, "location": location, "quantity": quantity},
    )
    return entry


def available_total(db: Session, item_id: int, location: Optional[str] = None) -> int:
    query = db.query(func.coalesce(func.sum(models.InventoryStock.quantity), 0)).filter(
        models.InventoryStock.item_id == item_id
    )
    if location is not None:
        query = query.filter(models.InventoryStock.location == location)
    return int(query.scalar() or 0)


def list_oldest_first(db: Session, item_id: int, location: Optional[str] = None) -> List[models.InventoryStock]:
    return (
        _stock_query(db, item_id, location)
        .order_by(models.InventoryStock.created_at.asc(), models.InventoryStock.id.asc())
        .all()
    )


def lock_entries(db: Session, item_ids: Iterable[int], location: Optional[str] = None) -> List[models.InventoryStock]:
    """
    Take row locks on every stock entry of `item_ids`.

    Rows are locked in (item_id, created_at, id) order so that two callers
    locking overlapping items always acquire them in the same sequence.
    """
    ids = sorted(set(item_ids))
    if not ids:
        return []
    query = db.query(models.InventoryStock).filter(models.InventoryStock.item_id.in_(ids))
    if location is not None:
        query = query.filter(models.InventoryStock.location == location)
    return (
        query.order_by(
            models.InventoryStock.item_id.asc(),
            models.InventoryStock.created_at.asc(),
            models.InventoryStock.id.asc(),
        )
        .with_for_update()
        .populate_existing()
        .all()
    )


def decrement(db: Session, stock_id: int, amount: int) -> models.InventoryStock:
    if amount <= 0:
        raise ValueError("amount must be positive")
    entry = (
        db.query(models.InventoryStock)
        .filter(models.InventoryStock.id == stock_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not entry:
        raise NotFoundError("Stock entry not found")
    if entry.quantity - amount < 0:
        logger.error(
            "Refusing stock decrement below zero",
            extra={"stock_id": stock_id, "quantity": entry.quantity, "amount": amount},
        )
        raise InvariantViolationError(
            f"Stock entry {stock_id} cannot go below zero (quantity {entry.quantity}, requested {amount})"
        )
    entry.quantity -= amount
    db.flush()
    return entry


def list_stock(db: Session, item_id: int) -> List[models.InventoryStock]:
    item = _require_item(db, item_id)
    return list_oldest_first(db, item.id)
