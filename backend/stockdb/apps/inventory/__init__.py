"""
Inventory module.

Item registry and the per-location stock ledger.
"""

from . import models, router  # noqa: F401
