"""
Order fulfillment.

`FulfillmentEngine.fulfill` reserves stock for every line of a PENDING order,
oldest stock entry first, and marks the order FULFILLED. The whole run is one
unit of work: any failure rolls back every decrement and drops every event
staged along the way.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from stockdb.apps.events.broker import AppEventType, EventLog, event_log
from stockdb.apps.inventory import services as inventory_services
from stockdb.database import unit_of_work
from stockdb.errors import InsufficientStockError, InvalidStateError, NotFoundError, StockDBError

from . import models
from . import services as order_services

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 10


class FulfillmentEngine:
    def __init__(
        self,
        *,
        ledger=inventory_services,
        registry=order_services,
        notifier: EventLog = event_log,
        low_stock_threshold: int = LOW_STOCK_THRESHOLD,
    ) -> None:
        self._ledger = ledger
        self._registry = registry
        self._notifier = notifier
        self._low_stock_threshold = low_stock_threshold

    def fulfill(self, db: Session, order_id: int, location: Optional[str] = None) -> models.Order:
        """
        Fulfil `order_id`, optionally drawing stock from `location` only.

        Commits `db` on success and rolls it back on any error; the error is
        re-raised unchanged. Events are recorded only after the commit.
        """
        try:
            with unit_of_work(db):
                order = self._registry.lock_order(db, order_id)
                if not order:
                    raise NotFoundError("Order not found")
                if order.status != models.OrderStatusEnum.PENDING:
                    raise InvalidStateError("Order is not pending")
                lines = list(order.items or [])
                if not lines:
                    raise InvalidStateError("Order has no items")

                # Stock rows stay locked from the availability check to commit.
                self._ledger.lock_entries(db, [line.item_id for line in lines], location)

                self._check_availability(db, lines, location)
                for line in lines:
                    self._reserve_line(db, order, line, location)

                self._registry.set_status(db, order.id, models.OrderStatusEnum.FULFILLED)
                self._notifier.stage(db, AppEventType.ORDER_FULFILLED, {"orderId": order.id})
        except StockDBError as exc:
            logger.warning(
                "Order fulfillment rejected",
                extra={"order_id": order_id, "location": location, "code": exc.code, "detail": exc.detail},
            )
            raise

        logger.info("Order fulfilled", extra={"order_id": order.id, "location": location})
        return order

    def _check_availability(self, db: Session, lines: List[models.OrderItem], location: Optional[str]) -> None:
        # Lines for the same item are checked against their combined quantity.
        demanded: Dict[int, int] = defaultdict(int)
        for line in lines:
            demanded[line.item_id] += line.quantity
            available = self._ledger.available_total(db, line.item_id, location)
            if available < demanded[line.item_id]:
                raise InsufficientStockError(line.item_id, demanded[line.item_id], available)

    def _reserve_line(
        self,
        db: Session,
        order: models.Order,
        line: models.OrderItem,
        location: Optional[str],
    ) -> None:
        remaining = line.quantity
        for entry in self._ledger.list_oldest_first(db, line.item_id, location):
            if remaining <= 0:
                break
            deduct = min(remaining, entry.quantity)
            if deduct > 0:
                self._ledger.decrement(db, entry.id, deduct)
                self._notifier.stage(
                    db,
                    AppEventType.ITEM_RESERVED,
                    {"orderId": order.id, "itemId": line.item_id, "quantity": deduct, "fromStockId": entry.id},
                )
                remaining -= deduct

        if remaining > 0:
            raise InvalidStateError(f"Unexpected stock shortage during reservation for item {line.item_id}")

        # Item-wide, regardless of the location the order was fulfilled from.
        remaining_total = self._ledger.available_total(db, line.item_id)
        if remaining_total < self._low_stock_threshold:
            self._notifier.stage(
                db,
                AppEventType.STOCK_LOW,
                {"itemId": line.item_id, "remaining": remaining_total},
            )
