# services/cart_service.py

from decimal import Decimal
from typing import List, Optional

from domain.models import CartLineItem, Product


class CartError(ValueError):
    """Rejected cart mutation. Raised before anything changes."""


def same_product(
        product: Product,
        model_name: str,
        battery_name: str,
        product_id: Optional[str] = None,
) -> bool:
    """
    The one identity rule for cart lines: when both sides carry a persisted id
    they must match by id, otherwise by (model name, battery name).
    """
    if product.id and product_id:
        return product.id == product_id
    return product.model.name == model_name and product.battery.name == battery_name


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise CartError(f"Quantity must be a whole number, got {quantity!r}")
    if quantity <= 0:
        raise CartError(f"Quantity must be positive, got {quantity}")
    return quantity


class Cart:
    """
    Ordered (product, quantity) lines. Lines keep insertion order; `total`
    is recomputed inside every mutator so it never lags behind `items`.
    """

    def __init__(self):
        self.items: List[CartLineItem] = []
        self.total = Decimal("0")

    def _recompute(self) -> None:
        self.total = sum((item.product.rate * item.quantity for item in self.items), Decimal("0"))

    def _find(self, model_name: str, battery_name: str, product_id: Optional[str]) -> List[CartLineItem]:
        return [
            item for item in self.items
            if same_product(item.product, model_name, battery_name, product_id)
        ]

    def add_to_cart(self, product: Product, quantity: int = 1) -> CartLineItem:
        quantity = _check_quantity(quantity)
        model_name, battery_name = product.composite_key

        matches = self._find(model_name, battery_name, product.id)
        if matches:
            line = matches[0]
            line.quantity += quantity
        else:
            line = CartLineItem(product=product, quantity=quantity)
            self.items.append(line)

        self._recompute()
        return line

    def remove_from_cart(self, model_name: str, battery_name: str, product_id: Optional[str] = None) -> int:
        """Drop every matching line. Returns how many lines went away."""
        before = len(self.items)
        self.items = [
            item for item in self.items
            if not same_product(item.product, model_name, battery_name, product_id)
        ]
        self._recompute()
        return before - len(self.items)

    def update_quantity(
            self,
            model_name: str,
            battery_name: str,
            quantity: int,
            product_id: Optional[str] = None,
    ) -> bool:
        """Set the first matching line's quantity. Returns False when nothing matched."""
        quantity = _check_quantity(quantity)

        matches = self._find(model_name, battery_name, product_id)
        if matches:
            matches[0].quantity = quantity

        self._recompute()
        return bool(matches)

    def clear(self) -> None:
        self.items = []
        self.total = Decimal("0")

    @property
    def unit_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def snapshot(self) -> List[CartLineItem]:
        """Copy of the lines, safe to hand to the invoice calculator."""
        return [CartLineItem(product=item.product, quantity=item.quantity) for item in self.items]
