"""Dining domain API package."""

from dining.api.errors import register_exception_handlers
from dining.api.routes import (
    address_router,
    cart_router,
    order_router,
    reservation_router,
    table_router,
    time_slot_router,
)

__all__ = [
    "address_router",
    "cart_router",
    "order_router",
    "reservation_router",
    "table_router",
    "time_slot_router",
    "register_exception_handlers",
]
