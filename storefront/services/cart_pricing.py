"""
Cart validation and total computation shared by checkout

All money values are integers in the currency's minor unit.
"""
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from storefront.models.product import Product
from storefront.schemas.checkout import CartItem
from storefront.services.errors import (
    CartValidationError,
    InsufficientStockError,
    ProductsNotFoundError,
)


@dataclass(frozen=True)
class PricedLine:
    """A cart line resolved against a product, with its price snapshot"""
    product: Product
    quantity: int
    unit_price_in_cents: int
    
    @property
    def subtotal_in_cents(self) -> int:
        return self.unit_price_in_cents * self.quantity


def validate_cart(cart_items: Sequence[CartItem]) -> None:
    """Reject empty carts and non-positive quantities"""
    if not cart_items:
        raise CartValidationError("Cart must contain at least one item")
    for item in cart_items:
        if not item.product_id:
            raise CartValidationError("Product ID is required")
        if item.quantity <= 0:
            raise CartValidationError("Quantity must be positive")


def find_missing_ids(cart_items: Sequence[CartItem], products: Iterable[Product]) -> List[str]:
    """Ids in the cart with no matching product, first occurrence order, no duplicates"""
    found = {p.id for p in products}
    missing = OrderedDict()
    for item in cart_items:
        if item.product_id not in found:
            missing[item.product_id] = None
    return list(missing)


def requested_quantities(cart_items: Sequence[CartItem]) -> Dict[str, int]:
    """Total requested quantity per product id"""
    totals: Dict[str, int] = {}
    for item in cart_items:
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return totals


def price_cart(cart_items: Sequence[CartItem], products: Iterable[Product]) -> List[PricedLine]:
    """
    Resolve cart lines against inventory
    
    Raises:
        ProductsNotFoundError: If any product id is unknown
        InsufficientStockError: If any product's stock cannot cover the cart
    """
    products = list(products)
    missing = find_missing_ids(cart_items, products)
    if missing:
        raise ProductsNotFoundError(missing)
    
    by_id = {p.id: p for p in products}
    for product_id, requested in requested_quantities(cart_items).items():
        product = by_id[product_id]
        if requested > product.stock:
            raise InsufficientStockError(product.name, product.stock, requested)
    
    return [
        PricedLine(
            product=by_id[item.product_id],
            quantity=item.quantity,
            unit_price_in_cents=by_id[item.product_id].price_in_cents,
        )
        for item in cart_items
    ]


def order_total(lines: Iterable[PricedLine]) -> int:
    """Sum of unit price times quantity over all lines"""
    return sum(line.subtotal_in_cents for line in lines)
