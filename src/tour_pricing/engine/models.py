"""
Data models for the pricing engine.

Uses enums for the fixed vocabularies (product lines, categories, tiers) and
dataclasses for the records an operator edits.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional, Union

from ..errors import ValidationFailed
from .validation import (
    ensure_unique_ids,
    parse_amount,
    parse_currency,
    parse_days,
    parse_headcount,
    parse_item_id,
    parse_percentage,
)


class ProductLine(str, Enum):
    """Tour brands with their own price configuration."""
    ER = "ER"
    CO = "CO"
    KAS = "KAS"
    ZA = "ZA"

    @classmethod
    def parse(cls, value: Union['ProductLine', str]) -> 'ProductLine':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationFailed(f"Unknown product line {value!r}", 'productLine')


class Split(str, Enum):
    """How a category's summed cost is turned into a per-traveler figure."""
    DOUBLE_OCCUPANCY = "double_occupancy"  # halved: two travelers share a room
    HEADCOUNT = "headcount"  # divided by the tier's representative headcount
    FLAT = "flat"  # already per traveler
    SEPARATE = "separate"  # never part of the base price


@dataclass(frozen=True)
class CategoryProfile:
    """Static behaviour of a category."""
    shared_across_tiers: bool
    split: Split
    item_kind: str  # "line", "hotel", "additional" or "commission"


class Category(str, Enum):
    """Cost types. Behaviour lives in CATEGORY_PROFILES, not in the names."""
    HOTELS = "hotels"
    TRANSPORT = "transport"
    RAILWAY = "railway"
    FLY = "fly"
    MEAL = "meal"
    SIGHTSEEING = "sightseeing"
    GUIDE = "guide"
    SHOW = "show"
    ADDITIONAL_COSTS = "additionalCosts"
    COMMISSION = "commission"

    @property
    def profile(self) -> CategoryProfile:
        return CATEGORY_PROFILES[self]

    @property
    def shared_across_tiers(self) -> bool:
        return self.profile.shared_across_tiers

    @property
    def split_rule(self) -> Split:
        return self.profile.split

    @property
    def wire_name(self) -> str:
        """Category name as the remote store expects it."""
        return self.value.upper()

    @classmethod
    def parse(cls, value: Union['Category', str]) -> 'Category':
        """Accept the enum, its value or its wire name, case-insensitively."""
        if isinstance(value, cls):
            return value
        wanted = str(value).strip().lower()
        for category in cls:
            if category.value.lower() == wanted:
                return category
        raise ValidationFailed(f"Unknown category {value!r}", 'category')

    @classmethod
    def tier_specific(cls) -> list['Category']:
        return [c for c in cls if not c.shared_across_tiers]

    @classmethod
    def priced(cls) -> list['Category']:
        """Categories that contribute to the base price, in display order."""
        return [c for c in cls if c.split_rule != Split.SEPARATE]


CATEGORY_PROFILES: dict[Category, CategoryProfile] = {
    Category.HOTELS: CategoryProfile(True, Split.DOUBLE_OCCUPANCY, "hotel"),
    Category.TRANSPORT: CategoryProfile(False, Split.HEADCOUNT, "line"),
    Category.RAILWAY: CategoryProfile(False, Split.FLAT, "line"),
    Category.FLY: CategoryProfile(False, Split.HEADCOUNT, "line"),
    Category.MEAL: CategoryProfile(True, Split.FLAT, "line"),
    Category.SIGHTSEEING: CategoryProfile(True, Split.FLAT, "line"),
    Category.GUIDE: CategoryProfile(True, Split.HEADCOUNT, "line"),
    Category.SHOW: CategoryProfile(True, Split.FLAT, "line"),
    Category.ADDITIONAL_COSTS: CategoryProfile(True, Split.SEPARATE, "additional"),
    Category.COMMISSION: CategoryProfile(True, Split.SEPARATE, "commission"),
}


_HEADCOUNTS = {
    "4": 4, "5": 5, "6-7": 6, "8-9": 8,
    "10-11": 10, "12-13": 12, "14-15": 14, "16": 16,
}


class Tier(str, Enum):
    """Group-size buckets, smallest first."""
    PAX_4 = "4"
    PAX_5 = "5"
    PAX_6_7 = "6-7"
    PAX_8_9 = "8-9"
    PAX_10_11 = "10-11"
    PAX_12_13 = "12-13"
    PAX_14_15 = "14-15"
    PAX_16 = "16"

    @property
    def headcount(self) -> int:
        """Representative number of travelers used for division."""
        return _HEADCOUNTS[self.value]

    @property
    def label(self) -> str:
        return f"{self.value} PAX"

    @classmethod
    def parse(cls, value: Union['Tier', str, int]) -> 'Tier':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            raise ValidationFailed(f"Unknown tier {value!r}", 'tier')

    @classmethod
    def for_group_size(cls, travelers: int) -> 'Tier':
        """
        Bucket for an actual group size.

        Groups of four or fewer use the 4 PAX tier, groups of sixteen or
        more use the 16 PAX tier.
        """
        if travelers <= 4:
            return cls.PAX_4
        for tier in reversed(list(cls)):
            if travelers >= tier.headcount:
                return tier
        return cls.PAX_4


def _number(value: Decimal) -> Union[int, float]:
    """JSON-friendly rendering of a Decimal."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _pick(data: dict, *keys: str) -> Any:
    """First present key wins; supports legacy field names."""
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass
class LineItem:
    """A priced row: transport, railway, fly, meal, sightseeing, guide, show."""
    id: int
    name: str
    days: int = 1
    unit_price: Decimal = Decimal('0')

    @property
    def effective_days(self) -> int:
        # zero or blank days count as one day for non-hotel rows
        return self.days or 1

    @property
    def total(self) -> Decimal:
        return self.effective_days * self.unit_price

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'days': self.days,
            'unitPrice': _number(self.unit_price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LineItem':
        return cls(
            id=parse_item_id(data.get('id')),
            name=str(data.get('name') or ''),
            days=parse_days(data.get('days')),
            unit_price=parse_amount(_pick(data, 'unitPrice', 'price'), 'unitPrice'),
        )


@dataclass
class HotelItem:
    """A hotel row. days=0 excludes the row from every hotel aggregate."""
    id: int
    name: str
    days: int = 1
    double_occupancy_price: Decimal = Decimal('0')
    single_room_price: Decimal = Decimal('0')

    @property
    def double_total(self) -> Decimal:
        return self.days * self.double_occupancy_price

    @property
    def single_total(self) -> Decimal:
        return self.days * self.single_room_price

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'days': self.days,
            'doubleOccupancyPrice': _number(self.double_occupancy_price),
            'singleRoomPrice': _number(self.single_room_price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'HotelItem':
        # older records: city / pricePerDay (double room) / ezZimmer (single room);
        # their stored ezZuschlag is derived and recalculated, so it is not read
        return cls(
            id=parse_item_id(data.get('id')),
            name=str(_pick(data, 'name', 'city') or ''),
            days=parse_days(data.get('days')),
            double_occupancy_price=parse_amount(
                _pick(data, 'doubleOccupancyPrice', 'pricePerDay'),
                'doubleOccupancyPrice',
            ),
            single_room_price=parse_amount(
                _pick(data, 'singleRoomPrice', 'ezZimmer'),
                'singleRoomPrice',
            ),
        )


@dataclass
class AdditionalCostItem:
    """An extra billed on its own, outside the tier price."""
    id: int
    name: str
    unit_price: Decimal = Decimal('0')
    headcount: int = 1
    currency: str = 'USD'

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.headcount

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'unitPrice': _number(self.unit_price),
            'headcount': self.headcount,
            'currency': self.currency,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AdditionalCostItem':
        return cls(
            id=parse_item_id(data.get('id')),
            name=str(data.get('name') or ''),
            unit_price=parse_amount(_pick(data, 'unitPrice', 'price'), 'unitPrice'),
            headcount=parse_headcount(_pick(data, 'headcount', 'pax')),
            currency=parse_currency(data.get('currency')),
        )


Item = Union[LineItem, HotelItem, AdditionalCostItem]


@dataclass
class CommissionTable:
    """Commission percentage per tier. Missing tiers are 0%."""
    percentages: dict[Tier, Decimal] = field(default_factory=dict)

    def percentage(self, tier: Union[Tier, str]) -> Decimal:
        return self.percentages.get(Tier.parse(tier), Decimal('0'))

    def set_percentage(self, tier: Union[Tier, str], value: Any) -> None:
        self.percentages[Tier.parse(tier)] = parse_percentage(value)

    def to_dict(self) -> dict:
        return {tier.value: _number(self.percentage(tier)) for tier in Tier}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'CommissionTable':
        table = cls()
        for tier_id, value in (data or {}).items():
            table.set_percentage(tier_id, value)
        return table


@dataclass
class TotalsSnapshot:
    """Final numbers captured for one product line and tier."""
    product_line: ProductLine
    tier: Tier
    final_price: int
    single_supplement: int
    captured_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'finalPrice': self.final_price,
            'singleSupplement': self.single_supplement,
            'capturedAt': self.captured_at,
        }

    @classmethod
    def from_dict(cls, product_line: ProductLine, tier: Tier, data: dict) -> 'TotalsSnapshot':
        return cls(
            product_line=product_line,
            tier=tier,
            final_price=int(data.get('finalPrice', 0)),
            single_supplement=int(data.get('singleSupplement', 0)),
            captured_at=data.get('capturedAt'),
        )


_ITEM_TYPES = {
    "line": LineItem,
    "hotel": HotelItem,
    "additional": AdditionalCostItem,
}


def decode_items(category: Category, raw: Any) -> Union[list, CommissionTable]:
    """
    Turn stored JSON into typed records for a category.

    Commission records are a tier → percentage mapping, every other category
    is an ordered list of items with unique ids.
    """
    if category.profile.item_kind == "commission":
        if raw is not None and not isinstance(raw, dict):
            raise ValidationFailed("Commission record must be a mapping of tier to percentage", 'items')
        return CommissionTable.from_dict(raw)

    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationFailed(f"{category.value} record must be a list of items", 'items')

    item_type = _ITEM_TYPES[category.profile.item_kind]
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationFailed(f"{category.value} items must be objects", 'items')
        items.append(item_type.from_dict(entry))
    ensure_unique_ids(item.id for item in items)
    return items


def encode_items(category: Category, value: Union[list, CommissionTable]) -> Any:
    """Inverse of decode_items; refuses duplicate ids."""
    if category.profile.item_kind == "commission":
        if not isinstance(value, CommissionTable):
            raise ValidationFailed("Commission records are saved as a CommissionTable", 'items')
        return value.to_dict()

    item_type = _ITEM_TYPES[category.profile.item_kind]
    for item in value:
        if not isinstance(item, item_type):
            raise ValidationFailed(
                f"{category.value} expects {item_type.__name__} rows, got {type(item).__name__}",
                'items',
            )
    ensure_unique_ids(item.id for item in value)
    return [item.to_dict() for item in value]


def next_item_id(items: Iterable[Item]) -> int:
    """Id for a new row: one past the largest existing id."""
    return max((item.id for item in items), default=0) + 1


def find_additional_cost(items: Iterable[AdditionalCostItem], name: str) -> Optional[AdditionalCostItem]:
    """Exact-name lookup of a named extra."""
    for item in items:
        if item.name == name:
            return item
    return None


@dataclass
class TraceStep:
    """A single step in the price calculation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PriceBreakdown:
    """Complete result of a tier price calculation, all figures per traveler."""
    tier: Tier
    hotel_per_traveler: Decimal = Decimal('0')
    hotel_single_total: Decimal = Decimal('0')
    single_supplement: Decimal = Decimal('0')
    transport_per_traveler: Decimal = Decimal('0')
    railway_per_traveler: Decimal = Decimal('0')
    fly_per_traveler: Decimal = Decimal('0')
    meal_per_traveler: Decimal = Decimal('0')
    sightseeing_per_traveler: Decimal = Decimal('0')
    guide_per_traveler: Decimal = Decimal('0')
    show_per_traveler: Decimal = Decimal('0')
    base_price: Decimal = Decimal('0')
    commission_percentage: Decimal = Decimal('0')
    commission_amount: Decimal = Decimal('0')
    final_price: int = 0
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the calculation trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def per_traveler(self, category: Category) -> Decimal:
        return getattr(self, _PER_TRAVELER_FIELDS[category])

    def set_per_traveler(self, category: Category, value: Decimal) -> None:
        setattr(self, _PER_TRAVELER_FIELDS[category], value)

    def to_dict(self) -> dict:
        return {
            'tier': self.tier.value,
            'headcount': self.tier.headcount,
            'perTraveler': {
                category.value: _number(self.per_traveler(category))
                for category in Category.priced()
            },
            'hotelSingleTotal': _number(self.hotel_single_total),
            'singleSupplement': _number(self.single_supplement),
            'basePrice': _number(self.base_price),
            'commissionPercentage': _number(self.commission_percentage),
            'commissionAmount': _number(self.commission_amount),
            'finalPrice': self.final_price,
            'trace': [
                {'step': t.step, 'description': t.description, 'value': t.value}
                for t in self.trace
            ],
        }


_PER_TRAVELER_FIELDS = {
    Category.HOTELS: 'hotel_per_traveler',
    Category.TRANSPORT: 'transport_per_traveler',
    Category.RAILWAY: 'railway_per_traveler',
    Category.FLY: 'fly_per_traveler',
    Category.MEAL: 'meal_per_traveler',
    Category.SIGHTSEEING: 'sightseeing_per_traveler',
    Category.GUIDE: 'guide_per_traveler',
    Category.SHOW: 'show_per_traveler',
}
