"""Pricing snapshot engine.

Turns cart lines into frozen order lines using only the values already
denormalized on the cart:

    unit price = (promotional price, else base price) + addons + variants
    line total = unit price x quantity

A package is priced at its package price plus every addon and variant of every
dish inside it, times the package quantity. Dish prices inside a package are
informational only.
"""

from protean.exceptions import ValidationError

from dining.cart.snapshots import dump_options, dump_package_dishes
from dining.order.order import OrderItem, OrderPackageItem, OrderTotals
from dining.shared.errors import InvalidCartState

TOLERANCE = 0.01


def _money(value) -> float:
    return round(float(value), 2)


def _options_total(options, line_label) -> float:
    total = 0.0
    for option in options:
        if option.price is None:
            raise InvalidCartState({"price": [f"Option '{option.name}' on {line_label} has no price"]})
        total += option.price
    return total


def dish_unit_price(base_price, promotional_price, addons, variants, line_label="a cart line") -> float:
    effective = promotional_price if promotional_price is not None else base_price
    if effective is None:
        raise InvalidCartState({"base_price": [f"{line_label} has no price"]})
    return _money(effective + _options_total(addons, line_label) + _options_total(variants, line_label))


def snapshot_line_item(cart_item) -> OrderItem:
    """Freeze one cart dish line into an order line."""
    label = f"'{cart_item.name}'"
    addons = cart_item.addon_snapshots
    variants = cart_item.variant_snapshots
    unit_price = dish_unit_price(cart_item.base_price, cart_item.promotional_price, addons, variants, label)

    return OrderItem(
        dish_id=cart_item.dish_id,
        name=cart_item.name,
        description=cart_item.description,
        image_url=cart_item.image_url,
        category_name=cart_item.category_name,
        base_price=cart_item.base_price,
        promotional_price=cart_item.promotional_price,
        quantity=cart_item.quantity,
        addons=dump_options(addons),
        variants=dump_options(variants),
        unit_price=unit_price,
        item_total=_money(unit_price * cart_item.quantity),
    )


def snapshot_package_item(cart_package_item) -> OrderPackageItem:
    """Freeze one cart package line, with its dishes, into an order line."""
    label = f"package '{cart_package_item.name}'"
    if cart_package_item.package_price is None:
        raise InvalidCartState({"package_price": [f"{label} has no price"]})

    dishes = cart_package_item.dish_snapshots
    extras = sum(
        _options_total(dish.addon_snapshots, label) + _options_total(dish.variant_snapshots, label) for dish in dishes
    )
    unit_price = _money(cart_package_item.package_price + extras)

    return OrderPackageItem(
        package_id=cart_package_item.package_id,
        name=cart_package_item.name,
        description=cart_package_item.description,
        image=cart_package_item.image,
        category_name=cart_package_item.category_name,
        package_price=cart_package_item.package_price,
        quantity=cart_package_item.quantity,
        dishes=dump_package_dishes(dishes),
        unit_price=unit_price,
        item_total=_money(unit_price * cart_package_item.quantity),
    )


def lines_total(items, package_items) -> float:
    return _money(sum(line.item_total for line in items) + sum(line.item_total for line in package_items))


def verify_totals(subtotal, delivery_fee, discount_amount, total_amount, items, package_items) -> OrderTotals:
    """Check caller-supplied totals against the snapshot lines.

    The amounts are kept as supplied when they agree with the lines within a
    cent; otherwise the offending field is rejected.
    """
    delivery_fee = delivery_fee or 0.0
    discount_amount = discount_amount or 0.0

    expected_subtotal = lines_total(items, package_items)
    if round(abs(subtotal - expected_subtotal), 2) > TOLERANCE:
        raise ValidationError(
            {"subtotal": [f"Subtotal {subtotal:.2f} does not match the cart lines ({expected_subtotal:.2f})"]}
        )

    expected_total = _money(subtotal + delivery_fee - discount_amount)
    if round(abs(total_amount - expected_total), 2) > TOLERANCE:
        message = f"Total {total_amount:.2f} does not equal subtotal + fee - discount ({expected_total:.2f})"
        raise ValidationError({"total_amount": [message]})

    return OrderTotals(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        discount_amount=discount_amount,
        total_amount=total_amount,
    )
