"""Order commit coordinator — command and handler.

Commits the actor's open cart into an order as one unit of work:

1. lock the open cart row and re-read it (``EmptyCart`` if it has no lines),
2. for dine-in, lock the table row and re-check it (``TableUnavailable``),
3. build the order header, snapshotting the delivery address,
4. freeze every cart line through the pricing engine and verify the totals,
5. mark the cart CheckedOut and persist both aggregates.

Any exception rolls the whole unit of work back, so a failed commit leaves no
order behind and the cart untouched.
"""

import secrets
import string
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from dining.address.address import owned_address
from dining.cart.cart import Cart, CartStatus
from dining.domain import dining
from dining.order.order import DeliverySnapshot, Order, ServiceMethod
from dining.order.pricing import snapshot_line_item, snapshot_package_item, verify_totals
from dining.shared.actor import ActorContext
from dining.shared.clock import format_clock
from dining.shared.errors import EmptyCart, TableUnavailable, TransactionFailed
from dining.shared.settings import setting
from dining.table.availability import check_table
from dining.table.table import DiningTable
from dining.timeslot.catalog import resolve_time_slot
from dining.utils.db import lock_row, serialized_writes

logger = structlog.get_logger(__name__)

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number(now=None) -> str:
    """``ORD-<unix seconds><6 random uppercase alphanumerics>``."""
    timestamp = int((now or datetime.now(UTC)).timestamp())
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"ORD-{timestamp}{suffix}"


@dining.command(part_of="Order")
class PlaceOrder:
    """Commit the actor's open cart into an order."""

    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)
    service_method = String(required=True, choices=ServiceMethod)
    payment_method = String(required=True, max_length=50)
    address_id = Identifier()  # delivery
    table_id = Identifier()  # dine-in
    guests_count = Integer(min_value=1)
    dining_date = Date()
    time_slot_id = Identifier()
    pickup_time = String(max_length=5)  # pickup
    subtotal = Float(required=True, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(required=True, min_value=0.0)
    promo_code = String(max_length=50)
    special_instructions = Text()


def validate_request(command):
    """Field-level checks that depend on the service method."""
    method = ServiceMethod(command.service_method)
    errors = {}

    if method == ServiceMethod.DELIVERY and not command.address_id:
        errors["address_id"] = ["A delivery order needs an address"]

    if method == ServiceMethod.DINE_IN:
        for field in ("table_id", "guests_count", "dining_date", "time_slot_id"):
            if not getattr(command, field):
                errors[field] = [f"{field} is required for dine-in orders"]

    if command.pickup_time:
        try:
            format_clock(command.pickup_time)
        except ValueError:
            errors["pickup_time"] = ["Pickup time must be HH:MM"]

    if errors:
        raise ValidationError(errors)


def _delivery_snapshot(actor, address_id) -> DeliverySnapshot:
    address = owned_address(actor, address_id)
    return DeliverySnapshot(
        name=address.name,
        phone=address.phone,
        address=address.address,
        building=address.building,
        floor=address.floor,
        latitude=address.latitude,
        longitude=address.longitude,
    )


def _lock_open_cart(actor_id) -> Cart:
    repo = current_domain.repository_for(Cart)
    cart = repo.open_cart_for(actor_id)
    if cart is None:
        raise EmptyCart({"cart": ["Your cart is empty"]})

    lock_row(Cart, cart.id)
    cart = repo.get(cart.id)  # re-read under the lock
    if cart.status != CartStatus.ACTIVE.value or cart.is_empty:
        raise EmptyCart({"cart": ["Your cart is empty"]})
    return cart


def _reserve_table(command) -> dict:
    lock_row(DiningTable, command.table_id)
    availability = check_table(command.table_id, command.dining_date, command.time_slot_id, command.guests_count)
    if availability is None:
        raise TableUnavailable({"table_id": ["Table cannot seat this many guests"]})
    if availability.is_under_maintenance:
        raise TableUnavailable({"table_id": ["Table is under maintenance"]})
    if availability.has_conflict:
        raise TableUnavailable({"table_id": ["Table is already booked for this time slot"]})

    start, end = resolve_time_slot(command.time_slot_id)
    return {
        "table_id": availability.table_id,
        "table_code": availability.table_code,
        "guests_count": command.guests_count,
        "dining_date": command.dining_date,
        "checkin_time": format_clock(start),
        "checkout_time": format_clock(end),
    }


def _unique_order_number() -> str:
    repo = current_domain.repository_for(Order)
    attempts = setting("ORDER_NUMBER_ATTEMPTS")
    for attempt in range(1, attempts + 1):
        order_number = generate_order_number()
        if repo.find_by_number(order_number) is None:
            return order_number
        logger.warning("Order number collision", order_number=order_number, attempt=attempt)

    logger.error("Order number allocation exhausted", attempts=attempts)
    raise TransactionFailed(f"Could not allocate a unique order number after {attempts} attempts")


@dining.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        actor = ActorContext(actor_id=str(command.actor_id), is_admin=bool(command.is_admin))
        validate_request(command)

        delivery = None
        if command.service_method == ServiceMethod.DELIVERY.value:
            delivery = _delivery_snapshot(actor, command.address_id)

        cart = _lock_open_cart(actor.actor_id)

        reservation = None
        if command.service_method == ServiceMethod.DINE_IN.value:
            reservation = _reserve_table(command)

        items = [snapshot_line_item(item) for item in cart.items]
        package_items = [snapshot_package_item(item) for item in cart.package_items]
        totals = verify_totals(
            command.subtotal,
            command.delivery_fee,
            command.discount_amount,
            command.total_amount,
            items,
            package_items,
        )

        order = Order.place(
            actor_id=actor.actor_id,
            order_number=_unique_order_number(),
            service_method=command.service_method,
            payment_method=command.payment_method,
            totals=totals,
            items=items,
            package_items=package_items,
            promo_code=command.promo_code,
            special_instructions=command.special_instructions,
            pickup_time=format_clock(command.pickup_time) if command.pickup_time else None,
            delivery=delivery,
            reservation=reservation,
        )
        cart.check_out(order.order_number)

        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            actor_id=actor.actor_id,
            service_method=order.service_method,
            table_id=reservation["table_id"] if reservation else None,
            total_amount=totals.total_amount,
        )
        return str(order.id)


def commit_cart(command: PlaceOrder) -> str:
    """Process ``PlaceOrder`` and return the new order's id.

    On providers that cannot lock rows the whole unit of work runs under the
    provider's writer lock, so a second commit for the same cart reads the
    cart only after the first one has checked it out.
    """
    with serialized_writes(Cart):
        return current_domain.process(command, asynchronous=False)
