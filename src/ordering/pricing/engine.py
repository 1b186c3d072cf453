"""Pricing engine: server-side unit price resolution for order lines.

Clients send product, size, quantity and addon ids; prices are never taken
from the request. A line resolves to::

    unit price = base price + sum(addon prices for the line's size)

where the base price is the product's fixed price, or the (category, size)
price when the product has none. Any unresolvable line aborts the whole quote
with a ``ValidationError`` that names the failing line, so nothing is ever
persisted for a partially priced order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal

from protean.exceptions import ValidationError

from ordering.utils.money import to_decimal


# ---------------------------------------------------------------------------
# Requests and quotes
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class LineRequest:
    product_id: str
    quantity: int
    size_id: str | None = None
    addon_ids: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, position: int, payload: dict) -> "LineRequest":
        """Build a request from one entry of the ``products`` array.

        ``position`` is 1-based and only used for error messages.
        """
        if not isinstance(payload, dict):
            raise _line_error(position, "must be an object")

        product_id = payload.get("product_id")
        if product_id in (None, ""):
            raise _line_error(position, "product_id is required")

        quantity = payload.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise _line_error(position, "quantity must be a positive integer")

        size_id = payload.get("size_id")
        addon_ids = payload.get("addon_ids") or []
        if not isinstance(addon_ids, list):
            raise _line_error(position, "addon_ids must be a list")

        return cls(
            product_id=str(product_id),
            quantity=quantity,
            size_id=str(size_id) if size_id not in (None, "") else None,
            addon_ids=tuple(str(addon_id) for addon_id in addon_ids),
        )


@dataclass(frozen=True)
class AddonQuote:
    addon_id: str
    price: Decimal


@dataclass(frozen=True)
class LineQuote:
    product_id: str
    size_id: str | None
    quantity: int
    base_price: Decimal
    addons: tuple[AddonQuote, ...] = field(default_factory=tuple)

    @property
    def unit_price(self) -> Decimal:
        return self.base_price + sum((addon.price for addon in self.addons), Decimal("0.00"))

    @property
    def extended_price(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PriceQuote:
    lines: tuple[LineQuote, ...]

    @property
    def subtotal(self) -> Decimal:
        return sum((line.extended_price for line in self.lines), Decimal("0.00"))


# ---------------------------------------------------------------------------
# Catalogue port
# ---------------------------------------------------------------------------
class CatalogueReader(ABC):
    """Read access to the catalogue rows the engine needs.

    Every method returns ``None`` when the row does not exist.
    """

    @abstractmethod
    def product(self, product_id: str): ...

    @abstractmethod
    def category_price(self, category_id: str, size_id: str) -> Decimal | None: ...

    @abstractmethod
    def addon(self, addon_id: str): ...

    @abstractmethod
    def addon_price(self, addon_id: str, size_id: str) -> Decimal | None: ...


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
class PricingEngine:
    def __init__(self, catalogue: CatalogueReader):
        self.catalogue = catalogue

    def quote(self, requests: list[LineRequest]) -> PriceQuote:
        if not requests:
            raise ValidationError({"products": ["At least one product is required"]})
        return PriceQuote(lines=tuple(self.quote_line(pos, req) for pos, req in enumerate(requests, start=1)))

    def quote_line(self, position: int, request: LineRequest) -> LineQuote:
        if request.quantity <= 0:
            raise _line_error(position, "quantity must be a positive integer")

        product = self.catalogue.product(request.product_id)
        if product is None or not product.is_available:
            raise _line_error(position, f"product {request.product_id} not found or not available")

        if product.has_fixed_price:
            base_price = to_decimal(product.price)
        else:
            if request.size_id is None:
                raise _line_error(position, f"product {product.name} requires a size_id")
            base_price = self.catalogue.category_price(str(product.category_id), request.size_id)
            if base_price is None:
                raise _line_error(position, f"no price for product {product.name} in size {request.size_id}")

        addons = []
        for addon_id in request.addon_ids:
            addon = self.catalogue.addon(addon_id)
            if addon is None:
                raise _line_error(position, f"addon {addon_id} not found")
            if request.size_id is None:
                raise _line_error(position, f"addon {addon.name} requires the line to have a size_id")
            price = self.catalogue.addon_price(addon_id, request.size_id)
            if price is None:
                raise _line_error(position, f"no price for addon {addon.name} in size {request.size_id}")
            addons.append(AddonQuote(addon_id=addon_id, price=price))

        return LineQuote(
            product_id=request.product_id,
            size_id=request.size_id,
            quantity=request.quantity,
            base_price=base_price,
            addons=tuple(addons),
        )


def _line_error(position: int, message: str) -> ValidationError:
    return ValidationError({"products": [f"Line {position}: {message}"]})
