"""Repository-backed catalogue reader used by order placement."""

from decimal import Decimal

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalogue.catalogue import Addon, AddonPrice, CategoryPrice, Product
from ordering.pricing.engine import CatalogueReader
from ordering.utils.money import to_decimal


class RepositoryCatalogue(CatalogueReader):
    def product(self, product_id: str):
        try:
            return current_domain.repository_for(Product).get(product_id)
        except ObjectNotFoundError:
            return None

    def category_price(self, category_id: str, size_id: str) -> Decimal | None:
        rows = (
            current_domain.repository_for(CategoryPrice)
            ._dao.query.filter(category_id=category_id, size_id=size_id)
            .all()
            .items
        )
        return to_decimal(rows[0].price) if rows else None

    def addon(self, addon_id: str):
        try:
            return current_domain.repository_for(Addon).get(addon_id)
        except ObjectNotFoundError:
            return None

    def addon_price(self, addon_id: str, size_id: str) -> Decimal | None:
        rows = current_domain.repository_for(AddonPrice)._dao.query.filter(addon_id=addon_id, size_id=size_id).all().items
        return to_decimal(rows[0].price) if rows else None
