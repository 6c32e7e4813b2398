"""Engine subpackage - data model, defaults and price calculation."""
from .calculator import TierInputs, calculate, additional_cost_totals
from .defaults import default_items
from .models import (
    AdditionalCostItem,
    Category,
    CommissionTable,
    HotelItem,
    LineItem,
    PriceBreakdown,
    ProductLine,
    Tier,
    TotalsSnapshot,
)

__all__ = [
    'TierInputs', 'calculate', 'additional_cost_totals', 'default_items',
    'AdditionalCostItem', 'Category', 'CommissionTable', 'HotelItem', 'LineItem',
    'PriceBreakdown', 'ProductLine', 'Tier', 'TotalsSnapshot',
]
