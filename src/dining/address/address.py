"""Address aggregate — a delivery address owned by one actor.

Orders never point at an address; they copy it into a ``DeliverySnapshot`` so
later edits leave historical orders untouched.
"""

from datetime import UTC, datetime

from protean import handle
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.shared.errors import Unauthorized


@dining.aggregate
class Address:
    actor_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    phone = String(required=True, max_length=30)
    address = Text(required=True)
    building = String(max_length=255)
    floor = String(max_length=50)
    latitude = Float()
    longitude = Float()
    created_at = DateTime()

    @classmethod
    def register(cls, actor_id, name, phone, address, building=None, floor=None, latitude=None, longitude=None):
        return cls(
            actor_id=actor_id,
            name=name,
            phone=phone,
            address=address,
            building=building,
            floor=floor,
            latitude=latitude,
            longitude=longitude,
            created_at=datetime.now(UTC),
        )


def owned_address(actor, address_id) -> Address:
    """Load an address the actor is allowed to deliver to."""
    address = current_domain.repository_for(Address).get(address_id)
    if not actor.can_act_for(address.actor_id):
        raise Unauthorized({"address_id": ["Address does not belong to you"]})
    return address


@dining.command(part_of="Address")
class RegisterAddress:
    actor_id: Identifier(required=True)
    name: String(required=True, max_length=255)
    phone: String(required=True, max_length=30)
    address: Text(required=True)
    building: String(max_length=255)
    floor: String(max_length=50)
    latitude: Float()
    longitude: Float()


@dining.command_handler(part_of=Address)
class RegisterAddressHandler:
    @handle(RegisterAddress)
    def register_address(self, command):
        address = Address.register(
            actor_id=command.actor_id,
            name=command.name,
            phone=command.phone,
            address=command.address,
            building=command.building,
            floor=command.floor,
            latitude=command.latitude,
            longitude=command.longitude,
        )
        current_domain.repository_for(Address).add(address)
        return str(address.id)
