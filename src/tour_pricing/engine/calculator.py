"""
Price Calculator - per-traveler aggregation for one product line and tier.

Pure functions: no I/O, no shared state. Division rules come from each
category's Split:
- hotels: double-occupancy total halved, single supplement from single rooms
- transport, fly, guide: divided by the tier's representative headcount
- railway, meal, sightseeing, show: flat per traveler
- additional costs: totalled per currency, never part of the base price
"""
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

from .models import (
    AdditionalCostItem,
    Category,
    CommissionTable,
    HotelItem,
    LineItem,
    PriceBreakdown,
    Split,
    Tier,
)
from .validation import parse_percentage


@dataclass
class TierInputs:
    """Item lists feeding one tier calculation."""
    hotels: list[HotelItem] = field(default_factory=list)
    transport: list[LineItem] = field(default_factory=list)
    railway: list[LineItem] = field(default_factory=list)
    fly: list[LineItem] = field(default_factory=list)
    meal: list[LineItem] = field(default_factory=list)
    sightseeing: list[LineItem] = field(default_factory=list)
    guide: list[LineItem] = field(default_factory=list)
    show: list[LineItem] = field(default_factory=list)

    def items_for(self, category: Category) -> list:
        return getattr(self, _INPUT_FIELDS[category])

    def set_items(self, category: Category, items: list) -> None:
        setattr(self, _INPUT_FIELDS[category], items)


_INPUT_FIELDS = {
    Category.HOTELS: 'hotels',
    Category.TRANSPORT: 'transport',
    Category.RAILWAY: 'railway',
    Category.FLY: 'fly',
    Category.MEAL: 'meal',
    Category.SIGHTSEEING: 'sightseeing',
    Category.GUIDE: 'guide',
    Category.SHOW: 'show',
}


def round_price(value: Decimal) -> int:
    """Round half up to a whole currency unit."""
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def format_money(value: Decimal) -> str:
    return f"${value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"


def sum_line_items(items: Iterable[LineItem]) -> Decimal:
    """Σ days × unitPrice, with zero days counted as one."""
    return sum((item.total for item in items), Decimal('0'))


def hotel_per_traveler(items: Iterable[HotelItem]) -> Decimal:
    """Σ days × doubleOccupancyPrice / 2."""
    return sum((item.double_total for item in items), Decimal('0')) / 2


def hotel_single_total(items: Iterable[HotelItem]) -> Decimal:
    """Σ days × singleRoomPrice."""
    return sum((item.single_total for item in items), Decimal('0'))


def single_supplement(items: list[HotelItem]) -> Decimal:
    """What a traveler in a single room pays on top of the shared-room share."""
    return hotel_single_total(items) - hotel_per_traveler(items)


def per_traveler(category: Category, items: list, tier: Tier) -> Decimal:
    """Per-traveler share of a priced category's items for a tier."""
    split = category.split_rule
    if split == Split.DOUBLE_OCCUPANCY:
        return hotel_per_traveler(items)
    if split == Split.HEADCOUNT:
        return sum_line_items(items) / tier.headcount
    if split == Split.FLAT:
        return sum_line_items(items)
    raise ValueError(f"{category.value} is not part of the tier price")


def calculate(
    inputs: TierInputs,
    tier: Union[Tier, str],
    commission: Optional[Union[CommissionTable, Decimal]] = None,
) -> PriceBreakdown:
    """
    Calculate the per-traveler sell price for a tier with full traceability.

    Args:
        inputs: Item lists for every priced category (transport, railway and
            fly must already be the lists of this tier)
        tier: Group-size tier
        commission: Commission table or a bare percentage; defaults to 0%

    Returns:
        PriceBreakdown with per-category figures, base and final price
    """
    tier = Tier.parse(tier)
    if isinstance(commission, CommissionTable):
        percentage = commission.percentage(tier)
    else:
        percentage = parse_percentage(commission if commission is not None else 0)

    result = PriceBreakdown(tier=tier)
    result.add_trace("Tier", f"{tier.label}, divided by {tier.headcount} travelers", tier.value)

    base = Decimal('0')
    for category in Category.priced():
        share = per_traveler(category, inputs.items_for(category), tier)
        result.set_per_traveler(category, share)
        base += share
        result.add_trace(category.value, f"{category.split_rule.value} per traveler", format_money(share))

    result.hotel_single_total = hotel_single_total(inputs.hotels)
    result.single_supplement = result.hotel_single_total - result.hotel_per_traveler
    result.add_trace("Single supplement", "single rooms minus shared-room share", format_money(result.single_supplement))

    result.base_price = base
    result.commission_percentage = percentage
    result.commission_amount = base * (percentage / 100)
    result.final_price = round_price(base + result.commission_amount)

    result.add_trace("Base price", "sum of per-traveler figures", format_money(base))
    result.add_trace("Commission", f"{percentage}% of base price", format_money(result.commission_amount))
    result.add_trace("Final price", "rounded to whole units", f"${result.final_price}")
    return result


def additional_cost_totals(items: Iterable[AdditionalCostItem]) -> dict[str, Decimal]:
    """Σ unitPrice × headcount per currency. No conversion between currencies."""
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal('0'))
    for item in items:
        totals[item.currency] += item.total
    return dict(totals)
