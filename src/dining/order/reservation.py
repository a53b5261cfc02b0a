"""Manual reservation transitions — commands and handler.

Staff or the guest (owner of the order) check a party in, check it out, or
cancel the reservation. Each transition only applies to a pending reservation.
"""

import structlog
from protean import handle
from protean.fields import Boolean, DateTime, Identifier
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.order.order import Order
from dining.shared.actor import ActorContext
from dining.shared.errors import Unauthorized

logger = structlog.get_logger(__name__)


@dining.command(part_of="Order")
class CheckInReservation:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)
    as_of = DateTime()  # Optional: defaults to now


@dining.command(part_of="Order")
class CheckOutReservation:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)
    as_of = DateTime()


@dining.command(part_of="Order")
class CancelReservation:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)
    as_of = DateTime()


def _load_for(command) -> Order:
    actor = ActorContext(actor_id=str(command.actor_id), is_admin=bool(command.is_admin))
    order = current_domain.repository_for(Order).get(command.order_id)
    if not actor.can_act_for(order.actor_id):
        raise Unauthorized({"order_id": ["Order does not belong to you"]})
    return order


@dining.command_handler(part_of=Order)
class ManageReservationHandler:
    @handle(CheckInReservation)
    def check_in(self, command):
        order = _load_for(command)
        order.check_in(command.as_of)
        current_domain.repository_for(Order).add(order)
        logger.info("Reservation checked in", order_id=str(order.id), table_id=str(order.table_id))
        return str(order.id)

    @handle(CheckOutReservation)
    def check_out(self, command):
        order = _load_for(command)
        order.check_out(command.as_of)
        current_domain.repository_for(Order).add(order)
        logger.info("Reservation completed", order_id=str(order.id), table_id=str(order.table_id))
        return str(order.id)

    @handle(CancelReservation)
    def cancel(self, command):
        order = _load_for(command)
        order.cancel_reservation(command.as_of)
        current_domain.repository_for(Order).add(order)
        logger.info("Reservation cancelled", order_id=str(order.id), table_id=str(order.table_id))
        return str(order.id)
