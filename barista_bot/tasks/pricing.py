"""
Pricing Engine for Orders.

Derives the itemized price and loyalty stars of an order from the catalog.
Pricing is a pure function of (order, catalog): it can be called on partial
orders to show a running total, and calling it twice on the same order gives
the same breakdown.

Price rules:
- Beverage: the price of the selected size; with no size chosen yet, the
  default size (or the first size); products without sizes use base_price.
- Modifiers: one line per selected option, priced for the effective size.
  Zero-priced options are itemized too.
- Food: the product's base_price (first size price when it only has sizes).
- Amounts: every line price is a Decimal rounded half-up to cents, and the
  total is their exact sum.
- Loyalty: 1 star per LOYALTY_PREMIUM_DIVISOR pesos with a premium payment
  method, 1 per LOYALTY_STANDARD_DIVISOR otherwise.

A size, product or option id that the catalog does not declare is a broken
invariant and raises InvalidOrderState.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..config import (
    LOYALTY_PREMIUM_DIVISOR,
    LOYALTY_STANDARD_DIVISOR,
    get_premium_payment_methods,
)
from .catalog import Catalog, Product
from .errors import InvalidOrderState
from .models import LineItem, Order
from .parsers.normalizer import normalize

logger = logging.getLogger(__name__)


CENTS = Decimal("0.01")


def to_money(amount: float | Decimal) -> Decimal:
    """Exact currency amount, rounded half-up to cents."""
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class PriceBreakdown:
    """Itemized price of an order."""

    line_items: list[LineItem] = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    loyalty_points: int = 0

    @property
    def subtotal_by_kind(self) -> dict[str, Decimal]:
        """Totals per line kind (beverage, modifier, food)."""
        totals: dict[str, Decimal] = {}
        for item in self.line_items:
            totals[item.kind] = totals.get(item.kind, Decimal("0.00")) + item.price
        return totals


@dataclass
class DiscountResult:
    """Outcome of applying a percentage discount to a total."""

    original: float
    discount: float
    total: float
    percent: float


def is_premium_method(payment_method: str | None, premium_methods: Iterable[str] | None = None) -> bool:
    """
    Whether a payment method earns the premium loyalty rate.

    The method qualifies when it names one of the premium methods
    (case and accent insensitive).
    """
    if not payment_method:
        return False
    if premium_methods is None:
        premium_methods = get_premium_payment_methods()
    method = normalize(payment_method)
    return any(normalize(premium) and normalize(premium) in method for premium in premium_methods)


def calculate_loyalty_points(
    total: float | Decimal,
    payment_method: str | None,
    premium_methods: Iterable[str] | None = None,
) -> int:
    """
    Stars earned for an order total.

    Returns 0 when no payment method is declared or the total is not positive.
    """
    if not payment_method or total <= 0:
        return 0
    divisor = (
        LOYALTY_PREMIUM_DIVISOR
        if is_premium_method(payment_method, premium_methods)
        else LOYALTY_STANDARD_DIVISOR
    )
    return math.floor(total / divisor)


def apply_discount(total: float, percent: float) -> DiscountResult:
    """
    Apply a percentage discount, rounding half-up to 2 decimals.

    A percent outside 0-100 leaves the total unchanged.
    """
    if percent < 0 or percent > 100:
        return DiscountResult(original=total, discount=0.0, total=total, percent=0.0)

    amount = Decimal(str(total))
    discount = to_money(amount * Decimal(str(percent)) / Decimal(100))
    final = to_money(amount - discount)
    return DiscountResult(
        original=total,
        discount=float(discount),
        total=float(final),
        percent=percent,
    )


def _resolve_product(catalog: Catalog, product_id: str, kind: str) -> Product:
    product = catalog.find(product_id)
    if product is None:
        raise InvalidOrderState(f"{kind} '{product_id}' is not in the catalog")
    return product


def _food_price(product: Product) -> float:
    if product.sizes and not product.base_price:
        size = product.effective_size(None)
        return size.price if size else 0.0
    return product.base_price


def price_order(
    order: Order,
    catalog: Catalog,
    premium_methods: Iterable[str] | None = None,
) -> PriceBreakdown:
    """
    Compute the itemized price of an order.

    Args:
        order: Complete or partial order
        catalog: Catalog the order refers to
        premium_methods: Names of premium payment methods (defaults to config)

    Returns:
        PriceBreakdown whose cent-rounded line item prices sum exactly to the total

    Raises:
        InvalidOrderState: The order references an id the catalog does not declare
    """
    items: list[LineItem] = []
    effective_size_id: str | None = None

    if order.beverage is not None:
        product = _resolve_product(catalog, order.beverage.id, "Beverage")

        if product.sizes:
            size = product.effective_size(order.size)
            if size is None:
                raise InvalidOrderState(
                    f"Size '{order.size}' is not offered for '{product.name}'"
                )
            effective_size_id = size.id
            items.append(LineItem(kind="beverage", name=product.name, price=to_money(size.price), size=size.label))
        else:
            if order.size is not None:
                raise InvalidOrderState(f"'{product.name}' has no sizes but size '{order.size}' is set")
            items.append(LineItem(kind="beverage", name=product.name, price=to_money(product.base_price)))

        for selection in order.selected_modifiers:
            group = product.get_group(selection.group_id)
            if group is None:
                raise InvalidOrderState(
                    f"Modifier group '{selection.group_id}' is not declared for '{product.name}'"
                )
            option = group.get_option(selection.option_id)
            if option is None:
                raise InvalidOrderState(
                    f"Option '{selection.option_id}' is not in group '{group.id}'"
                )
            items.append(LineItem(
                kind="modifier",
                name=option.name,
                price=to_money(option.price_for(effective_size_id)),
                group_id=group.id,
            ))

    if order.has_food:
        food = _resolve_product(catalog, order.food.id, "Food")
        items.append(LineItem(kind="food", name=food.name, price=to_money(_food_price(food))))

    total = sum((item.price for item in items), Decimal("0.00"))
    points = calculate_loyalty_points(total, order.payment_method, premium_methods)

    logger.debug("Priced order: %d lines, total %.2f, %d stars", len(items), total, points)
    return PriceBreakdown(line_items=items, total=total, loyalty_points=points)
