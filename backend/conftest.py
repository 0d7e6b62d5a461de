from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"

from stockdb.database import Base, configure_sqlite_engine  # noqa: E402
from stockdb.apps.events.broker import event_log  # noqa: E402
from stockdb.apps.inventory import models as inventory_models  # noqa: E402
from stockdb.apps.orders import models as order_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = configure_sqlite_engine(create_engine("sqlite+pysqlite:///:memory:"))
    Base.metadata.create_all(
        bind=engine,
        tables=[
            inventory_models.InventoryItem.__table__,
            inventory_models.InventoryStock.__table__,
            order_models.Order.__table__,
            order_models.OrderItem.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(autouse=True)
def clean_event_log():
    event_log.clear()
    yield
    event_log.clear()
