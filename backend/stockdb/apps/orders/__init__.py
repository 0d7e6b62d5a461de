"""
Orders module.

Sales orders and the stock-reserving fulfillment engine.
"""

from . import models, router  # noqa: F401
