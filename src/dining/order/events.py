"""Domain events for the Order aggregate and its table reservation."""

from protean.fields import Date, DateTime, Float, Identifier, Integer, String

from dining.domain import dining


@dining.event(part_of="Order")
class OrderPlaced:
    """A cart was committed into an immutable order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    actor_id = Identifier(required=True)
    service_method = String(required=True)
    total_amount = Float(required=True)
    item_count = Integer(required=True)
    package_count = Integer(required=True)
    table_id = Identifier()
    dining_date = Date()
    checkin_time = String()
    checkout_time = String()
    placed_at = DateTime(required=True)


@dining.event(part_of="Order")
class ReservationCheckedIn:
    """Guests were seated at the reserved table."""

    __version__ = 1

    order_id = Identifier(required=True)
    table_id = Identifier(required=True)
    checked_in_at = DateTime(required=True)


@dining.event(part_of="Order")
class ReservationExtended:
    """A pending reservation was given more time at its table."""

    __version__ = 1

    order_id = Identifier(required=True)
    table_id = Identifier(required=True)
    extended_by_minutes = Integer(required=True)
    auto_extend_count = Integer(required=True)
    total_extended_minutes = Integer(required=True)


@dining.event(part_of="Order")
class ReservationFlaggedOverdue:
    """A reservation overran its window and needs manual resolution."""

    __version__ = 1

    order_id = Identifier(required=True)
    table_id = Identifier(required=True)
    reason = String(required=True)
    flagged_at = DateTime(required=True)


@dining.event(part_of="Order")
class ReservationCompleted:
    """Guests left and the table was released."""

    __version__ = 1

    order_id = Identifier(required=True)
    table_id = Identifier(required=True)
    checked_out_at = DateTime(required=True)


@dining.event(part_of="Order")
class ReservationCancelled:
    """A pending reservation was cancelled and the table released."""

    __version__ = 1

    order_id = Identifier(required=True)
    table_id = Identifier(required=True)
    cancelled_at = DateTime(required=True)
