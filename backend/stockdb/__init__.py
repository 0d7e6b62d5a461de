# backend/stockdb/__init__.py
"""
Import ORM models from each app so that Base.metadata.create_all() sees all
tables. The model classes live in stockdb/apps/*/models.py.
"""

from .apps.inventory import models as inventory_models    # items + stock ledger
from .apps.orders import models as orders_models          # orders + order lines

__all__ = [
    "inventory_models",
    "orders_models",
]
