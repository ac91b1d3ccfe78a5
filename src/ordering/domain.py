"""Ordering bounded context — the Order Service.

Owns the authoritative Order record created at checkout, the server-side
order and payment status state machines, and the read side consumed by the
receipt and order-history views.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
