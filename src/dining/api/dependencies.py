"""Request-scoped dependencies: who is calling."""

from fastapi import Depends, Header

from dining.shared.actor import ActorContext
from dining.shared.errors import Unauthenticated, Unauthorized

ADMIN_ROLE = "admin"


def current_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> ActorContext:
    """Identity established upstream by the authentication layer."""
    if not x_actor_id:
        raise Unauthenticated("Missing X-Actor-Id header")
    return ActorContext(actor_id=x_actor_id, is_admin=(x_actor_role or "").lower() == ADMIN_ROLE)


def admin_actor(actor: ActorContext = Depends(current_actor)) -> ActorContext:
    if not actor.is_admin:
        raise Unauthorized({"actor": ["Administrator role required"]})
    return actor
