"""Ordering bounded context — Shopping Cart, Checkout and Orders.

Handles the cart store (merge-by-variant line items), the checkout record
lifecycle (open, pay, finalize) and the orders created from finalized
checkouts, plus the administrative order status transitions.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
