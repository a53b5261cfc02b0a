"""Cart maintenance — commands and handler.

The cart is created lazily: the first dish or package an actor adds opens it.
Option and package contents travel as JSON text, as captured from the catalog.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from dining.cart.cart import Cart
from dining.domain import dining


@dining.command(part_of="Cart")
class AddDishToCart:
    actor_id = Identifier(required=True)
    dish_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    category_name = String(max_length=255)
    image_url = String(max_length=500)
    base_price = Float(required=True, min_value=0.0)
    promotional_price = Float(min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    addons = Text()  # JSON: list of {option_id, name, price}
    variants = Text()  # JSON: list of {option_id, name, price}


@dining.command(part_of="Cart")
class AddPackageToCart:
    actor_id = Identifier(required=True)
    package_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    category_name = String(max_length=255)
    image = String(max_length=500)
    package_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    dishes = Text()  # JSON: list of package dishes with their addons and variants


@dining.command(part_of="Cart")
class ClearCart:
    actor_id = Identifier(required=True)


def _loads(raw):
    if not raw:
        return []
    return json.loads(raw) if isinstance(raw, str) else raw


def current_cart(actor_id) -> Cart | None:
    return current_domain.repository_for(Cart).open_cart_for(actor_id)


@dining.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(AddDishToCart)
    def add_dish_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.open_cart_for(command.actor_id) or Cart.open(command.actor_id)
        cart.add_dish(
            dish_id=command.dish_id,
            name=command.name,
            description=command.description,
            category_name=command.category_name,
            image_url=command.image_url,
            base_price=command.base_price,
            promotional_price=command.promotional_price,
            quantity=command.quantity,
            addons=_loads(command.addons),
            variants=_loads(command.variants),
        )
        repo.add(cart)
        return str(cart.id)

    @handle(AddPackageToCart)
    def add_package_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.open_cart_for(command.actor_id) or Cart.open(command.actor_id)
        cart.add_package(
            package_id=command.package_id,
            name=command.name,
            description=command.description,
            category_name=command.category_name,
            image=command.image,
            package_price=command.package_price,
            quantity=command.quantity,
            dishes=_loads(command.dishes),
        )
        repo.add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.open_cart_for(command.actor_id)
        if cart is None:
            return None
        cart.clear()
        repo.add(cart)
        return str(cart.id)
