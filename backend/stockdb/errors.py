from __future__ import annotations

from typing import Any, Dict


class StockDBError(Exception):
    """Base class for domain errors raised by the stockdb services."""

    code = "error"
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": self.detail}


class NotFoundError(StockDBError):
    code = "not_found"
    status_code = 404


class InvalidStateError(StockDBError):
    code = "invalid_state"
    status_code = 409


class DuplicateKeyError(StockDBError):
    code = "duplicate_key"
    status_code = 409


class InvariantViolationError(StockDBError):
    """Raised by the ledger when a write would break a stored invariant.

    A correct caller never triggers this; seeing it means a logic bug upstream.
    """

    code = "invariant_violation"
    status_code = 500


class InsufficientStockError(StockDBError):
    code = "insufficient_stock"
    status_code = 409

    def __init__(self, item_id: int, needed: int, available: int) -> None:
        super().__init__(f"Insufficient stock for item {item_id}. Needed {needed}, available {available}")
        self.item_id = item_id
        self.needed = needed
        self.available = available

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"itemId": self.item_id, "needed": self.needed, "available": self.available})
        return payload
