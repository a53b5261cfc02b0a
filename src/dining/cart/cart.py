"""Cart aggregate (CQRS) — the mutable pre-checkout container of one actor.

Each actor has at most one Active cart. Lines carry denormalized catalog values
(name, prices, selected options) captured when they were added; checkout reads
those values as they are and never goes back to the catalog. A committed cart
is marked CheckedOut and is never reopened.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from dining.cart.events import CartCheckedOut, CartCleared, CartDishAdded, CartPackageAdded
from dining.cart.snapshots import dump_options, dump_package_dishes, load_options, load_package_dishes
from dining.domain import dining
from dining.shared.errors import EmptyCart


class CartStatus(Enum):
    ACTIVE = "Active"
    CHECKED_OUT = "CheckedOut"


@dining.entity(part_of="Cart")
class CartItem:
    dish_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    category_name = String(max_length=255)
    image_url = String(max_length=500)
    base_price = Float(min_value=0.0)
    promotional_price = Float(min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    addons = Text()  # JSON array of OptionSnapshot
    variants = Text()  # JSON array of OptionSnapshot
    added_at = DateTime()

    @property
    def addon_snapshots(self):
        return load_options(self.addons)

    @property
    def variant_snapshots(self):
        return load_options(self.variants)


@dining.entity(part_of="Cart")
class CartPackageItem:
    package_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    category_name = String(max_length=255)
    image = String(max_length=500)
    package_price = Float(min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    dishes = Text()  # JSON array of PackageDish
    added_at = DateTime()

    @property
    def dish_snapshots(self):
        return load_package_dishes(self.dishes)


@dining.aggregate
class Cart:
    actor_id = Identifier(required=True)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    items = HasMany(CartItem)
    package_items = HasMany(CartPackageItem)
    created_at = DateTime()
    updated_at = DateTime()
    checked_out_at = DateTime()

    @invariant.post
    def checked_out_cart_must_have_lines(self):
        if self.status == CartStatus.CHECKED_OUT.value and self.is_empty:
            raise ValidationError({"cart": ["An empty cart cannot be checked out"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, actor_id):
        now = datetime.now(UTC)
        return cls(
            actor_id=actor_id,
            status=CartStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_empty(self) -> bool:
        return not self.items and not self.package_items

    def _assert_active(self):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": ["A checked out cart cannot be changed"]})

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_dish(
        self,
        dish_id,
        name,
        quantity,
        base_price,
        promotional_price=None,
        description=None,
        category_name=None,
        image_url=None,
        addons=None,
        variants=None,
    ):
        """Add a dish line with the options the buyer picked."""
        self._assert_active()

        now = datetime.now(UTC)
        item = CartItem(
            dish_id=dish_id,
            name=name,
            description=description,
            category_name=category_name,
            image_url=image_url,
            base_price=base_price,
            promotional_price=promotional_price,
            quantity=quantity,
            addons=dump_options(addons),
            variants=dump_options(variants),
            added_at=now,
        )
        self.add_items(item)
        self.updated_at = now

        self.raise_(
            CartDishAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                dish_id=str(dish_id),
                quantity=quantity,
            )
        )
        return item

    def add_package(
        self,
        package_id,
        name,
        quantity,
        package_price,
        dishes=None,
        description=None,
        category_name=None,
        image=None,
    ):
        self._assert_active()

        now = datetime.now(UTC)
        item = CartPackageItem(
            package_id=package_id,
            name=name,
            description=description,
            category_name=category_name,
            image=image,
            package_price=package_price,
            quantity=quantity,
            dishes=dump_package_dishes(dishes),
            added_at=now,
        )
        self.add_package_items(item)
        self.updated_at = now

        self.raise_(
            CartPackageAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                package_id=str(package_id),
                quantity=quantity,
            )
        )
        return item

    def clear(self):
        self._assert_active()

        for item in list(self.items):
            self.remove_items(item)
        for item in list(self.package_items):
            self.remove_package_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id)))

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def check_out(self, order_number):
        """Mark the cart as consumed by the order ``order_number``."""
        if CartStatus(self.status) != CartStatus.ACTIVE or self.is_empty:
            raise EmptyCart({"cart": ["Your cart is empty"]})

        now = datetime.now(UTC)
        self.status = CartStatus.CHECKED_OUT.value
        self.checked_out_at = now
        self.updated_at = now

        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                actor_id=str(self.actor_id),
                order_number=order_number,
            )
        )


@dining.repository(part_of=Cart)
class CartRepository:
    def open_cart_for(self, actor_id) -> Cart | None:
        """The actor's Active cart, if any."""
        return self._dao.query.filter(actor_id=str(actor_id), status=CartStatus.ACTIVE.value).all().first
