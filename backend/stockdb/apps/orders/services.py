from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockdb.apps.events.broker import AppEventType, EventLog, event_log
from stockdb.apps.inventory import models as inventory_models
from stockdb.errors import DuplicateKeyError, InvalidStateError, NotFoundError

from . import models, schemas

logger = logging.getLogger(__name__)


def get_order(db: Session, order_id: int) -> Optional[models.Order]:
    return db.query(models.Order).filter(models.Order.id == order_id).first()


def get_order_by_number(db: Session, order_number: str) -> Optional[models.Order]:
    return db.query(models.Order).filter(models.Order.order_number == order_number).first()


def lock_order(db: Session, order_id: int) -> Optional[models.Order]:
    """Load the order with a row lock held until the current transaction ends."""
    return (
        db.query(models.Order)
        .filter(models.Order.id == order_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _missing_item_ids(db: Session, item_ids: Iterable[int]) -> List[int]:
    wanted = set(item_ids)
    found = {
        row[0]
        for row in db.query(inventory_models.InventoryItem.id)
        .filter(inventory_models.InventoryItem.id.in_(wanted))
        .all()
    }
    return sorted(wanted - found)


def create_order(
    db: Session,
    *,
    order_number: str,
    lines: Iterable[schemas.OrderItemCreate],
    notifier: EventLog = event_log,
) -> models.Order:
    lines = list(lines)
    if not lines:
        raise InvalidStateError("Order has no items")

    if get_order_by_number(db, order_number):
        raise DuplicateKeyError("order_number already exists")

    missing = _missing_item_ids(db, [line.item_id for line in lines])
    if missing:
        raise NotFoundError(f"Inventory item {missing[0]} not found")

    order = models.Order(
        order_number=order_number,
        status=models.OrderStatusEnum.PENDING,
        items=[models.OrderItem(item_id=line.item_id, quantity=line.quantity) for line in lines],
    )
    try:
        with db.begin_nested():
            db.add(order)
    except IntegrityError:
        # Lost a race with a concurrent create of the same order number.
        if get_order_by_number(db, order_number):
            logger.warning("Concurrent order insert rejected", extra={"order_number": order_number})
            raise DuplicateKeyError("order_number already exists")
        raise

    notifier.stage(
        db,
        AppEventType.ORDER_CREATED,
        {"orderId": order.id, "orderNumber": order.order_number},
    )
    logger.info("Order created", extra={"order_id": order.id, "lines": len(lines)})
    return order


def set_status(db: Session, order_id: int, status: models.OrderStatusEnum) -> models.Order:
    order = get_order(db, order_id)
    if not order:
        raise NotFoundError("Order not found")
    order.status = status
    db.flush()
    return order
