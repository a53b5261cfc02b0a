"""Read side for orders, scoped to the acting user."""

from protean.utils.globals import current_domain

from dining.order.order import Order
from dining.shared.errors import Unauthorized


def list_orders(actor) -> list[Order]:
    """The actor's orders, newest first."""
    return current_domain.repository_for(Order).placed_by(actor.actor_id)


def get_order(actor, order_id) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if not actor.can_act_for(order.actor_id):
        raise Unauthorized({"order_id": ["Order does not belong to you"]})
    return order
