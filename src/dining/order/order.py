"""Order aggregate (CQRS) — the immutable result of committing a cart.

An order is created once by the checkout coordinator and never repriced. Its
line items are frozen snapshots of the cart lines. Dine-in orders also carry a
table reservation, modeled as fields on the order itself:

    Pending → Completed   (check-out)
    Pending → Cancelled   (cancellation)
    Pending → Pending     (auto-extension, at most twice, 30 minutes each)

The reservation window is ``[dining_date@checkin_time,
dining_date@checkout_time + total_extended_minutes)``. Reservation timestamps
are restaurant-local wall-clock values.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from dining.cart.snapshots import load_options, load_package_dishes
from dining.domain import dining
from dining.order.events import (
    OrderPlaced,
    ReservationCancelled,
    ReservationCheckedIn,
    ReservationCompleted,
    ReservationExtended,
    ReservationFlaggedOverdue,
)
from dining.shared.clock import at, local_now
from dining.shared.errors import ExtensionLimitReached

MAX_AUTO_EXTENSIONS = 2
EXTENSION_MINUTES = 30


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class ServiceMethod(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"
    DINE_IN = "dine-in"


class ReservationStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OverdueReason(Enum):
    EXTENSION_LIMIT = "extension_limit"
    NEXT_BOOKING = "next_booking"


_VALID_TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED},
    ReservationStatus.COMPLETED: set(),  # Terminal
    ReservationStatus.CANCELLED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@dining.value_object(part_of="Order")
class OrderTotals:
    """Monetary summary supplied at checkout and verified against the lines."""

    subtotal = Float(default=0.0, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)


@dining.value_object(part_of="Order")
class DeliverySnapshot:
    """Where a delivery order goes, copied from the address at commit time."""

    name = String(max_length=255)
    phone = String(max_length=30)
    address = Text()
    building = String(max_length=255)
    floor = String(max_length=50)
    latitude = Float()
    longitude = Float()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dining.entity(part_of="Order")
class OrderItem:
    dish_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    image_url = String(max_length=500)
    category_name = String(max_length=255)
    base_price = Float(min_value=0.0)
    promotional_price = Float(min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    addons = Text()  # JSON array of OptionSnapshot
    variants = Text()  # JSON array of OptionSnapshot
    unit_price = Float(required=True, min_value=0.0)
    item_total = Float(required=True, min_value=0.0)

    @property
    def addon_snapshots(self):
        return load_options(self.addons)

    @property
    def variant_snapshots(self):
        return load_options(self.variants)


@dining.entity(part_of="Order")
class OrderPackageItem:
    package_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    image = String(max_length=500)
    category_name = String(max_length=255)
    package_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    dishes = Text()  # JSON array of PackageDish
    unit_price = Float(required=True, min_value=0.0)
    item_total = Float(required=True, min_value=0.0)

    @property
    def dish_snapshots(self):
        return load_package_dishes(self.dishes)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@dining.aggregate
class Order:
    actor_id = Identifier(required=True)
    order_number = String(required=True, max_length=50, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    service_method = String(required=True, choices=ServiceMethod)
    payment_method = String(required=True, max_length=50)
    totals = ValueObject(OrderTotals)
    promo_code = String(max_length=50)
    special_instructions = Text()
    pickup_time = String(max_length=5)
    delivery = ValueObject(DeliverySnapshot)
    items = HasMany(OrderItem)
    package_items = HasMany(OrderPackageItem)

    # Table reservation (dine-in only)
    requires_table = Boolean(default=False)
    table_id = Identifier()
    table_code = String(max_length=10)
    guests_count = Integer(min_value=1)
    dining_date = Date()
    checkin_time = String(max_length=5)  # HH:MM
    checkout_time = String(max_length=5)  # HH:MM
    reservation_status = String(choices=ReservationStatus)
    auto_extend_count = Integer(default=0, min_value=0)
    total_extended_minutes = Integer(default=0, min_value=0)
    checked_in_at = DateTime()
    checked_out_at = DateTime()
    overdue_flagged_at = DateTime()
    overdue_reason = String(choices=OverdueReason)

    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def auto_extensions_are_bounded(self):
        if (self.auto_extend_count or 0) > MAX_AUTO_EXTENSIONS:
            raise ValidationError(
                {"auto_extend_count": [f"A reservation can be extended at most {MAX_AUTO_EXTENSIONS} times"]}
            )

    @invariant.post
    def reservation_needs_a_table(self):
        if self.requires_table and not (self.table_id and self.dining_date and self.checkin_time):
            raise ValidationError({"table_id": ["A dine-in reservation needs a table, date and time slot"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        actor_id,
        order_number,
        service_method,
        payment_method,
        totals,
        items=None,
        package_items=None,
        promo_code=None,
        special_instructions=None,
        pickup_time=None,
        delivery=None,
        reservation=None,
    ):
        """Create a pending, unpaid order.

        ``reservation`` is a dict with ``table_id``, ``table_code``,
        ``guests_count``, ``dining_date``, ``checkin_time`` and
        ``checkout_time``; it makes the order hold a table.
        """
        now = datetime.now(UTC)
        reservation_fields = {}
        if reservation:
            reservation_fields = dict(
                requires_table=True,
                reservation_status=ReservationStatus.PENDING.value,
                auto_extend_count=0,
                total_extended_minutes=0,
                **reservation,
            )

        order = cls(
            actor_id=actor_id,
            order_number=order_number,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.UNPAID.value,
            service_method=service_method,
            payment_method=payment_method,
            totals=totals,
            items=items or [],
            package_items=package_items or [],
            promo_code=promo_code,
            special_instructions=special_instructions,
            pickup_time=pickup_time,
            delivery=delivery,
            created_at=now,
            updated_at=now,
            **reservation_fields,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                actor_id=str(actor_id),
                service_method=service_method,
                total_amount=totals.total_amount,
                item_count=len(order.items),
                package_count=len(order.package_items),
                table_id=str(order.table_id) if order.table_id else None,
                dining_date=order.dining_date,
                checkin_time=order.checkin_time,
                checkout_time=order.checkout_time,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Reservation window
    # -------------------------------------------------------------------
    @property
    def reserved_from(self) -> datetime | None:
        if not self.requires_table:
            return None
        return at(self.dining_date, self.checkin_time)

    @property
    def reserved_until(self) -> datetime | None:
        """Scheduled check-out plus every extension granted so far."""
        if not self.requires_table:
            return None
        return at(self.dining_date, self.checkout_time) + timedelta(minutes=self.total_extended_minutes or 0)

    @property
    def is_flagged_overdue(self) -> bool:
        return self.overdue_flagged_at is not None

    @property
    def can_auto_extend(self) -> bool:
        return (self.auto_extend_count or 0) < MAX_AUTO_EXTENSIONS

    def is_overdue(self, as_of=None) -> bool:
        if not self.requires_table or self.reservation_status != ReservationStatus.PENDING.value:
            return False
        return local_now(as_of) > self.reserved_until

    # -------------------------------------------------------------------
    # Reservation transitions
    # -------------------------------------------------------------------
    def _assert_pending_reservation(self, action):
        if not self.requires_table:
            raise ValidationError({"requires_table": ["This order does not require a table"]})
        if self.reservation_status != ReservationStatus.PENDING.value:
            raise ValidationError(
                {"reservation_status": [f"Cannot {action} a reservation that is {self.reservation_status}"]}
            )

    def _assert_can_transition(self, target):
        current = ReservationStatus(self.reservation_status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError(
                {"reservation_status": [f"Cannot transition reservation from {current.value} to {target.value}"]}
            )

    def check_in(self, as_of=None):
        """Record when the guests were actually seated."""
        self._assert_pending_reservation("check in")
        if self.checked_in_at is not None:
            raise ValidationError({"checked_in_at": ["Guests are already checked in"]})

        self.checked_in_at = local_now(as_of)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReservationCheckedIn(
                order_id=str(self.id),
                table_id=str(self.table_id),
                checked_in_at=self.checked_in_at,
            )
        )

    def check_out(self, as_of=None):
        self._assert_pending_reservation("check out")
        self._assert_can_transition(ReservationStatus.COMPLETED)

        self.reservation_status = ReservationStatus.COMPLETED.value
        self.checked_out_at = local_now(as_of)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReservationCompleted(
                order_id=str(self.id),
                table_id=str(self.table_id),
                checked_out_at=self.checked_out_at,
            )
        )

    def cancel_reservation(self, as_of=None):
        self._assert_pending_reservation("cancel")
        self._assert_can_transition(ReservationStatus.CANCELLED)

        self.reservation_status = ReservationStatus.CANCELLED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReservationCancelled(
                order_id=str(self.id),
                table_id=str(self.table_id),
                cancelled_at=local_now(as_of),
            )
        )

    def extend_reservation(self, minutes=EXTENSION_MINUTES):
        self._assert_pending_reservation("extend")
        if not self.can_auto_extend:
            raise ExtensionLimitReached(
                {"auto_extend_count": [f"Reservation was already extended {MAX_AUTO_EXTENSIONS} times"]}
            )

        self.auto_extend_count = (self.auto_extend_count or 0) + 1
        self.total_extended_minutes = (self.total_extended_minutes or 0) + minutes
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReservationExtended(
                order_id=str(self.id),
                table_id=str(self.table_id),
                extended_by_minutes=minutes,
                auto_extend_count=self.auto_extend_count,
                total_extended_minutes=self.total_extended_minutes,
            )
        )

    def flag_overdue(self, reason, as_of=None):
        """Hand an overrunning reservation over to staff."""
        self._assert_pending_reservation("flag")
        if self.is_flagged_overdue:
            raise ValidationError({"overdue_flagged_at": ["Reservation is already flagged as overdue"]})

        self.overdue_flagged_at = local_now(as_of)
        self.overdue_reason = OverdueReason(reason).value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReservationFlaggedOverdue(
                order_id=str(self.id),
                table_id=str(self.table_id),
                reason=self.overdue_reason,
                flagged_at=self.overdue_flagged_at,
            )
        )


@dining.repository(part_of=Order)
class OrderRepository:
    def placed_by(self, actor_id) -> list[Order]:
        """Orders of one actor, newest first."""
        return self._dao.query.filter(actor_id=str(actor_id)).order_by("-created_at").all().items

    def find_by_number(self, order_number) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def pending_reservations_for(self, table_id, dining_date) -> list[Order]:
        """Pending reservations holding one table on one date, by check-in time."""
        return (
            self._dao.query.filter(
                table_id=str(table_id),
                reservation_status=ReservationStatus.PENDING.value,
                dining_date=dining_date,
            )
            .order_by("checkin_time")
            .all()
            .items
        )

    def pending_reservations(self) -> list[Order]:
        return (
            self._dao.query.filter(
                requires_table=True,
                reservation_status=ReservationStatus.PENDING.value,
            )
            .all()
            .items
        )
