"""Catalogue reference data read by the pricing engine.

Products either carry a fixed price (drinks, combos) or are priced by size
through their category's price table (pizzas). Addons are always priced per
size. Catalogue maintenance lives outside this service; these aggregates are
the read model the order flow resolves prices against.
"""

from protean.fields import Boolean, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.aggregate
class Category:
    name = String(required=True, max_length=100)
    description = Text()


@ordering.aggregate
class Size:
    name = String(required=True, max_length=50)


@ordering.aggregate
class Product:
    name = String(required=True, max_length=150)
    description = Text()
    category_id = Identifier(required=True)
    price = Float(min_value=0.0)  # None means "priced by size"
    is_available = Boolean(default=True)

    @property
    def has_fixed_price(self) -> bool:
        return self.price is not None


@ordering.aggregate
class Addon:
    name = String(required=True, max_length=100)


@ordering.aggregate
class CategoryPrice:
    """Price of every product in ``category_id`` when ordered in ``size_id``."""

    category_id = Identifier(required=True)
    size_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)


@ordering.aggregate
class AddonPrice:
    """Price of an addon on a line ordered in ``size_id``."""

    addon_id = Identifier(required=True)
    size_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)
