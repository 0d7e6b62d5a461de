from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from stockdb.apps.events.broker import AppEventType, event_log
from stockdb.apps.inventory import models as inventory_models
from stockdb.apps.inventory import services as inventory_services
from stockdb.errors import DuplicateKeyError, InvariantViolationError, NotFoundError


def _create_item(db, sku: str = "SKU-100") -> inventory_models.InventoryItem:
    item = inventory_services.create_item(db, name="Hex bolt", sku=sku, item_type="PART", unit="EA")
    db.commit()
    return item


def _add_entry(db, item_id: int, location: str, quantity: int, created_at: datetime) -> inventory_models.InventoryStock:
    entry = inventory_models.InventoryStock(
        item_id=item_id,
        location=location,
        quantity=quantity,
        created_at=created_at,
    )
    db.add(entry)
    db.commit()
    return entry


def test_create_item_rejects_duplicate_sku(db_session):
    _create_item(db_session, sku="SKU-DUP")

    with pytest.raises(DuplicateKeyError) as excinfo:
        inventory_services.create_item(db_session, name="Other", sku="SKU-DUP", item_type="PART", unit="EA")
    assert excinfo.value.detail == "SKU already exists"


def test_create_item_records_event_after_commit(db_session):
    item = inventory_services.create_item(db_session, name="Washer", sku="SKU-W", item_type="PART", unit="EA")
    assert event_log.list() == []

    db_session.commit()

    events = event_log.list()
    assert [event.type for event in events] == [AppEventType.ITEM_CREATED]
    assert events[0].details == {"itemId": item.id, "sku": "SKU-W"}


def test_receive_increments_existing_location_and_creates_new_one(db_session):
    item = _create_item(db_session)

    first = inventory_services.receive_stock(db_session, item_id=item.id, location="A1", quantity=5)
    again = inventory_services.receive_stock(db_session, item_id=item.id, location="A1", quantity=7)
    other = inventory_services.receive_stock(db_session, item_id=item.id, location="B2", quantity=3)
    db_session.commit()

    assert again.id == first.id
    assert again.quantity == 12
    assert other.id != first.id
    assert db_session.query(inventory_models.InventoryStock).count() == 2

    added = [event for event in event_log.list() if event.type == AppEventType.STOCK_ADDED]
    assert [event.details["quantity"] for event in reversed(added)] == [5, 7, 3]


def test_receive_unknown_item_raises_not_found(db_session):
    with pytest.raises(NotFoundError):
        inventory_services.receive_stock(db_session, item_id=999, location="A1", quantity=5)


def test_available_total_scopes_by_location_and_defaults_to_zero(db_session):
    item = _create_item(db_session)
    assert inventory_services.available_total(db_session, item.id) == 0

    inventory_services.receive_stock(db_session, item_id=item.id, location="A1", quantity=4)
    inventory_services.receive_stock(db_session, item_id=item.id, location="B2", quantity=6)
    db_session.commit()

    assert inventory_services.available_total(db_session, item.id) == 10
    assert inventory_services.available_total(db_session, item.id, "A1") == 4
    assert inventory_services.available_total(db_session, item.id, "Z9") == 0


def test_list_oldest_first_breaks_created_at_ties_by_id(db_session):
    item = _create_item(db_session)
    t0 = datetime(2024, 1, 1, 8, 0, 0)
    newest = _add_entry(db_session, item.id, "C3", 1, t0 + timedelta(hours=2))
    tie_a = _add_entry(db_session, item.id, "A1", 1, t0)
    tie_b = _add_entry(db_session, item.id, "B2", 1, t0)

    entries = inventory_services.list_oldest_first(db_session, item.id)
    assert [entry.id for entry in entries] == [tie_a.id, tie_b.id, newest.id]

    scoped = inventory_services.list_oldest_first(db_session, item.id, "B2")
    assert [entry.id for entry in scoped] == [tie_b.id]


def test_decrement_refuses_to_go_negative(db_session):
    item = _create_item(db_session)
    entry = _add_entry(db_session, item.id, "A1", 3, datetime(2024, 1, 1))

    inventory_services.decrement(db_session, entry.id, 3)
    assert entry.quantity == 0

    with pytest.raises(InvariantViolationError):
        inventory_services.decrement(db_session, entry.id, 1)
    assert entry.quantity == 0


def test_decrement_unknown_entry_raises_not_found(db_session):
    with pytest.raises(NotFoundError):
        inventory_services.decrement(db_session, 12345, 1)


def test_lock_entries_orders_rows_by_item_then_age(db_session):
    first = _create_item(db_session, sku="SKU-1")
    second = _create_item(db_session, sku="SKU-2")
    t0 = datetime(2024, 1, 1)
    late = _add_entry(db_session, second.id, "A1", 1, t0 + timedelta(days=1))
    early = _add_entry(db_session, second.id, "B2", 1, t0)
    only = _add_entry(db_session, first.id, "A1", 1, t0 + timedelta(days=5))

    locked = inventory_services.lock_entries(db_session, [second.id, first.id, second.id])
    assert [entry.id for entry in locked] == [only.id, early.id, late.id]
    assert inventory_services.lock_entries(db_session, []) == []


def test_list_stock_requires_existing_item(db_session):
    with pytest.raises(NotFoundError):
        inventory_services.list_stock(db_session, 42)


def _first_call_misses(lookup):
    calls = []

    def _lookup(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return lookup(*args, **kwargs)

    return _lookup


def test_racing_first_receipt_is_added_to_the_existing_entry(db_session, monkeypatch):
    item = _create_item(db_session)
    existing = _add_entry(db_session, item.id, "A1", 5, datetime(2024, 1, 1))
    # The existence check misses a row another transaction just committed.
    monkeypatch.setattr(inventory_services, "_locked_entry", _first_call_misses(inventory_services._locked_entry))

    entry = inventory_services.receive_stock(db_session, item_id=item.id, location="A1", quantity=3)
    db_session.commit()

    assert entry.id == existing.id
    stock = inventory_services.list_stock(db_session, item.id)
    assert [(row.location, row.quantity) for row in stock] == [("A1", 8)]
    added = [event.details for event in event_log.list() if event.type == AppEventType.STOCK_ADDED]
    assert added == [{"itemId": item.id, "location": "A1", "quantity": 3}]


def test_racing_duplicate_sku_raises_duplicate_key(db_session, monkeypatch):
    _create_item(db_session, sku="SKU-RACE")
    monkeypatch.setattr(inventory_services, "get_item_by_sku", _first_call_misses(inventory_services.get_item_by_sku))

    with pytest.raises(DuplicateKeyError) as excinfo:
        inventory_services.create_item(db_session, name="Other", sku="SKU-RACE", item_type="PART", unit="EA")
    assert excinfo.value.detail == "SKU already exists"

    # The failed insert is undone without poisoning the session.
    db_session.commit()
    assert [item.sku for item in inventory_services.list_items(db_session)] == ["SKU-RACE"]
    assert [event.type for event in event_log.list()] == [AppEventType.ITEM_CREATED]
