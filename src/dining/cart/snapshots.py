"""By-value snapshots of catalog options and package contents.

Addons, variants and the dishes inside a package are copied from the catalog
when they are put in the cart and copied again, unchanged, onto the order.
They are stored as JSON text on the owning line so that later catalog edits
can never reach them.
"""

import json

from protean.fields import Float, Identifier, Integer, String, Text

from dining.domain import dining


@dining.value_object(part_of="Cart")
class OptionSnapshot:
    """An addon or a variant as the buyer saw it: id, name and price."""

    option_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float()


@dining.value_object(part_of="Cart")
class PackageDish:
    """One dish inside a package, with its own selected options."""

    dish_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    base_price = Float()
    promotional_price = Float()
    quantity = Integer(default=1, min_value=1)
    addons = Text()  # JSON array of OptionSnapshot
    variants = Text()  # JSON array of OptionSnapshot

    @property
    def addon_snapshots(self) -> list[OptionSnapshot]:
        return load_options(self.addons)

    @property
    def variant_snapshots(self) -> list[OptionSnapshot]:
        return load_options(self.variants)


def dump_options(options) -> str:
    return json.dumps([_as_dict(option) for option in options or []])


def load_options(raw) -> list[OptionSnapshot]:
    if not raw:
        return []
    return [OptionSnapshot(**option) for option in json.loads(raw)]


def dump_package_dishes(dishes) -> str:
    payload = []
    for dish in dishes or []:
        data = _as_dict(dish)
        # Nested options arrive either as lists or as already-dumped JSON
        for key in ("addons", "variants"):
            value = data.get(key)
            data[key] = value if isinstance(value, str) else dump_options(value)
        payload.append(data)
    return json.dumps(payload)


def load_package_dishes(raw) -> list[PackageDish]:
    if not raw:
        return []
    return [PackageDish(**dish) for dish in json.loads(raw)]


def _as_dict(value) -> dict:
    if isinstance(value, dict):
        return dict(value)
    return value.to_dict()
