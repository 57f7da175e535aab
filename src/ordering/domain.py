"""Ordering bounded context — Shopping Cart and Order consistency engine.

Holds the cart (pre-purchase staging) and order (committed purchase)
aggregates, their status state machines, and the checkout flow that turns
validated cart lines into priced order lines.
"""

import structlog
from protean.domain import Domain

from ordering.utils.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
