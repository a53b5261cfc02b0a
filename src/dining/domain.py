"""Dining bounded context — Carts, Orders and Table Reservations.

Turns a diner's mutable cart into an immutable, priced order and, for dine-in
orders, holds a table for a time-slot-bounded reservation whose lifecycle is
managed by the reservation state machine on the Order aggregate.
"""

from protean.domain import Domain

from dining.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
dining = Domain(name="dining")
