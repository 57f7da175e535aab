"""Runtime settings for the Ordering domain.

Values are read from the environment once, at import time. Tests that need a
different policy monkeypatch the module attributes.
"""

import os

# Delivery fee policy: free at or above the threshold, flat fee below it
FREE_DELIVERY_THRESHOLD = float(os.getenv("FREE_DELIVERY_THRESHOLD", "50000"))
DEFAULT_DELIVERY_FEE = float(os.getenv("DEFAULT_DELIVERY_FEE", "3000"))

ORDER_NUMBER_PREFIX = os.getenv("ORDER_NUMBER_PREFIX", "ORD")

# Collaborator adapters (see ordering.catalogue / ordering.identity)
CATALOG_ADAPTER = os.getenv("CATALOG_ADAPTER", "memory")
USER_DIRECTORY_ADAPTER = os.getenv("USER_DIRECTORY_ADAPTER", "memory")


def delivery_fee_for(amount: float) -> float:
    """Return the delivery fee charged for an order or cart worth `amount`."""
    if amount >= FREE_DELIVERY_THRESHOLD:
        return 0.0
    return DEFAULT_DELIVERY_FEE
