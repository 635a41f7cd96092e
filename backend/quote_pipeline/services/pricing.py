from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from ..schemas.quote import DiscountRule, DiscountType, LineItem, QuoteTotals
from ..utils.errors import ValidationError

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")
_ZERO = Decimal("0")
DEFAULT_GST_RATE = Decimal("10")


@dataclass
class PricingResult:
    line_items: list[LineItem]
    totals: QuoteTotals


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price: Decimal, markup_percent: Decimal) -> Decimal:
    """quantity x unit price x (1 + markup/100), rounded to cents."""
    return _money(Decimal(quantity) * unit_price * (1 + markup_percent / _HUNDRED))


def _validate(line_items: Sequence[LineItem], discount: Decimal) -> None:
    problems: list[str] = []
    for index, item in enumerate(line_items):
        label = item.id or f"#{index}"
        if item.quantity <= 0:
            problems.append(f"line item {label}: quantity must be greater than 0")
        if item.unit_price < 0:
            problems.append(f"line item {label}: unitPrice must not be negative")
        if item.base_unit_price is not None and item.base_unit_price < 0:
            problems.append(f"line item {label}: baseUnitPrice must not be negative")
        if item.markup_percent < 0:
            problems.append(f"line item {label}: markupPercent must not be negative")
    if discount < 0:
        problems.append("discount must not be negative")
    if problems:
        raise ValidationError("; ".join(problems))


def category_quantities(line_items: Iterable[LineItem]) -> dict[str, int]:
    totals: dict[str, int] = defaultdict(int)
    for item in line_items:
        totals[item.category] += item.quantity
    return dict(totals)


def select_rule(
    category: str, category_quantity: int, rules: Sequence[DiscountRule]
) -> Optional[DiscountRule]:
    """Return the qualifying rule with the highest discount percentage.

    A rule qualifies when it lists ``category`` and the category's aggregate
    quantity reaches its minimum. On equal percentages the rule listed first
    wins.
    """
    qualifying = [
        rule
        for rule in rules
        if category in rule.applicable_categories and category_quantity >= rule.minimum_quantity
    ]
    if not qualifying:
        return None
    # max() keeps the first of equal keys, so configuration order breaks ties
    return max(qualifying, key=lambda rule: rule.discount_percentage)


def list_price(item: LineItem) -> Decimal:
    """Return the price a volume discount should be taken off.

    ``base_unit_price`` is only trusted while ``unit_price`` still matches
    what the calculator derived from it. Once the caller edits the price it
    becomes the new list price.
    """
    base = item.base_unit_price
    if base is None:
        return item.unit_price
    derived = base * (1 - (item.volume_discount_percent or _ZERO) / _HUNDRED)
    if _money(item.unit_price) == _money(derived):
        return base
    return item.unit_price


def compute_totals(
    line_items: Sequence[LineItem],
    discount: Decimal,
    discount_type: DiscountType,
    gst_rate: Decimal,
) -> QuoteTotals:
    subtotal = sum((item.total_price or _ZERO for item in line_items), _ZERO)
    if discount_type == "percentage":
        discount_amount = _money(subtotal * discount / _HUNDRED)
    else:
        discount_amount = _money(discount)
    discounted_subtotal = subtotal - discount_amount
    gst = _money(discounted_subtotal * gst_rate / _HUNDRED)
    return QuoteTotals(
        subtotal=_money(subtotal),
        discount=discount_amount,
        discount_type=discount_type,
        gst=gst,
        total=_money(discounted_subtotal + gst),
        gst_rate=gst_rate,
    )


class PricingCalculator:
    """Price a batch of line items against volume-discount rules and GST.

    Volume discounts are taken off the list price (see ``list_price``).
    Items coming back from a previous run carry ``base_unit_price``, so
    pricing the calculator's own output again gives the same figures, while a
    ``unit_price`` edited since that run becomes the new list price. Callers
    that drop ``base_unit_price`` and resubmit a discounted ``unit_price``
    will compound the discount.
    """

    def __init__(self, rules: Sequence[DiscountRule] = (), gst_rate: Optional[Decimal] = None) -> None:
        self.rules = list(rules)
        self.gst_rate = DEFAULT_GST_RATE if gst_rate is None else Decimal(gst_rate)

    def calculate(
        self,
        line_items: Sequence[LineItem],
        discount: Decimal = _ZERO,
        discount_type: DiscountType = "percentage",
    ) -> PricingResult:
        discount = Decimal(discount)
        _validate(line_items, discount)

        quantities = category_quantities(line_items)
        priced: list[LineItem] = []
        for item in line_items:
            base_price = list_price(item)
            rule = select_rule(item.category, quantities[item.category], self.rules)
            if rule is None:
                unit_price = base_price
                applied = None
            else:
                unit_price = base_price * (1 - rule.discount_percentage / _HUNDRED)
                applied = rule.discount_percentage
            priced.append(
                item.model_copy(
                    update={
                        "unit_price": unit_price,
                        "base_unit_price": base_price,
                        "volume_discount_percent": applied,
                        "total_price": line_total(item.quantity, unit_price, item.markup_percent),
                    }
                )
            )

        totals = compute_totals(priced, discount, discount_type, self.gst_rate)
        logger.info(
            "Priced %d line items; subtotal=%s discount=%s gst=%s total=%s",
            len(priced),
            totals.subtotal,
            totals.discount,
            totals.gst,
            totals.total,
        )
        return PricingResult(line_items=priced, totals=totals)
