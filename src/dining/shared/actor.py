"""Explicit caller identity threaded through every dining operation."""

from pydantic import BaseModel


class ActorContext(BaseModel):
    actor_id: str
    is_admin: bool = False

    model_config = {"frozen": True}

    def can_act_for(self, owner_id) -> bool:
        return self.is_admin or str(owner_id) == self.actor_id
