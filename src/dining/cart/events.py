"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, String

from dining.domain import dining


@dining.event(part_of="Cart")
class CartDishAdded:
    """A dish with its selected options was added to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    dish_id = Identifier(required=True)
    quantity = Integer(required=True)


@dining.event(part_of="Cart")
class CartPackageAdded:
    """A package and its dishes were added to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    package_id = Identifier(required=True)
    quantity = Integer(required=True)


@dining.event(part_of="Cart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)


@dining.event(part_of="Cart")
class CartCheckedOut:
    """The cart was committed into an order and can no longer change."""

    __version__ = 1

    cart_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    order_number = String(required=True)
