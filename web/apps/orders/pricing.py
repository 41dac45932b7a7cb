"""Order pricing: pure functions over ``Decimal`` amounts.

``price_order`` combines the reserved line prices with three pluggable
policies (discount, shipping, tax). Nothing here rounds: amounts keep full
``Decimal`` precision until ``to_minor_units`` converts the grand total for
the payment gateway.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Mapping, Sequence

ZERO = Decimal("0")

DiscountPolicy = Callable[[Decimal], Decimal]
ShippingPolicy = Callable[[Mapping], Decimal]
TaxPolicy = Callable[[Decimal], Decimal]


def no_discount(subtotal: Decimal) -> Decimal:
    return ZERO


@dataclass(frozen=True)
class PercentOff:
    """Discount of ``percent`` percent of the subtotal."""

    percent: Decimal

    def __call__(self, subtotal: Decimal) -> Decimal:
        return subtotal * self.percent / Decimal(100)


@dataclass(frozen=True)
class FlatShipping:
    """Same shipping cost for every address."""

    amount: Decimal = Decimal("10.00")

    def __call__(self, address: Mapping) -> Decimal:
        return self.amount


@dataclass(frozen=True)
class FlatRateTax:
    rate: Decimal = Decimal("0.10")

    def __call__(self, taxable: Decimal) -> Decimal:
        return taxable * self.rate


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount_amount: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    grand_total: Decimal


@dataclass(frozen=True)
class PricingPolicies:
    """The policies the order workflow prices with.

    ``coupons`` maps upper-cased coupon codes to discount policies; unknown
    or missing codes get ``no_discount``.
    """

    shipping: ShippingPolicy = field(default_factory=FlatShipping)
    tax: TaxPolicy = field(default_factory=FlatRateTax)
    coupons: Mapping[str, DiscountPolicy] = field(default_factory=dict)

    def discount_for(self, coupon_code: str | None) -> DiscountPolicy:
        if not coupon_code:
            return no_discount
        return self.coupons.get(coupon_code.strip().upper(), no_discount)


def price_order(
    lines: Sequence[tuple[Decimal, int]],
    shipping_address: Mapping,
    discount: DiscountPolicy = no_discount,
    shipping: ShippingPolicy = FlatShipping(),
    tax: TaxPolicy = FlatRateTax(),
) -> Totals:
    """Compute order totals from ``(unit_price, quantity)`` pairs.

    The discount is clamped to ``[0, subtotal]`` and tax applies to the
    discounted subtotal:

        grand_total = subtotal - discount + shipping + tax

    Raises:
        ValueError: If ``lines`` is empty.
    """
    if not lines:
        raise ValueError("cannot price an order without lines")

    subtotal = sum((Decimal(price) * qty for price, qty in lines), ZERO)
    discount_amount = min(max(discount(subtotal), ZERO), subtotal)
    shipping_cost = shipping(shipping_address)
    tax_amount = tax(subtotal - discount_amount)
    grand_total = subtotal - discount_amount + shipping_cost + tax_amount
    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        grand_total=grand_total,
    )


def to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to integer cents, rounding half up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
