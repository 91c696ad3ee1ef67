"""Pricing model — sale price / markup arithmetic at 2-decimal precision."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, float, int, str]

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_money(value: Optional[Number]) -> Decimal:
    """Round half away from zero to 2 decimals. ``None`` counts as zero."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_from_markup(cost: Number, markup_percent: Number) -> Decimal:
    """Sale price = cost * (1 + markup / 100), rounded to cents."""
    cost = to_money(cost)
    markup = to_money(markup_percent)
    return to_money(cost * (1 + markup / HUNDRED))


def compute_markup_from_sale(cost: Number, sale_price: Number) -> Decimal:
    """Markup percent implied by a sale price; zero when cost is not positive."""
    cost = to_money(cost)
    sale = to_money(sale_price)
    if cost <= 0:
        return Decimal("0.00")
    return to_money((sale - cost) / cost * HUNDRED)


def normalize_currency(value: Optional[str], default: str) -> str:
    code = (value or "").strip()
    return (code or default).upper()


def apply_pricing(product, *, sale_price_explicit: bool, inputs_changed: bool, default_currency: str) -> None:
    """Make cost/markup/sale consistent on ``product`` in place.

    An explicitly set sale price drives the markup. Otherwise a changed cost,
    markup or currency (or a new product) drives the sale price. With no
    changed input the stored values are only re-rounded.
    """
    product.cost_price = to_money(product.cost_price)
    product.currency = normalize_currency(product.currency, default_currency)

    if sale_price_explicit:
        product.sale_price = to_money(product.sale_price)
        product.markup_percent = compute_markup_from_sale(product.cost_price, product.sale_price)
    elif inputs_changed:
        product.markup_percent = to_money(product.markup_percent)
        product.sale_price = compute_from_markup(product.cost_price, product.markup_percent)
    else:
        product.markup_percent = to_money(product.markup_percent)
        product.sale_price = to_money(product.sale_price)
