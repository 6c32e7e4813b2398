"""
Fallback item sets used when nothing has been saved for a record yet.

These are the route skeletons operators start from: the Uzbekistan round
trip with its usual nights per city and the standard transfer rates. Every
product line gets the same skeleton.
"""
from decimal import Decimal
from typing import Union

from .models import (
    AdditionalCostItem,
    Category,
    CommissionTable,
    HotelItem,
    LineItem,
)


# (city, nights)
_HOTELS = [
    ("Tashkent", 3),
    ("Samarkand", 3),
    ("Asraf", 1),
    ("Buchara", 3),
    ("Chiwa", 2),
]

# (name, days, price)
_TRANSPORT = [
    ("Taschkent", 1, 220),
    ("Taschkent-Chimgan-Taschkent", 1, 220),
    ("Transfer zum Bahnhof", 1, 60),
    ("Samarkand", 1, 220),
    ("Samarkand-Asraf", 1, 220),
    ("Asraf-Bukhara", 1, 220),
    ("Bukhara", 1, 220),
    ("Bukhara-Khiva", 1, 220),
    ("Khiva-Urgench", 1, 80),
    ("Khiva-Shovot", 1, 100),
    ("Aeroport-Hotel", 1, 60),
    ("Hotel-Aeroport", 1, 60),
]

_RAILWAY = [
    ("Taschkent-Samarkand", 1, 0),
    ("Samarkand-Taschkent", 1, 0),
]

_FLY = [
    ("Istanbul-Taschkent", 1, 0),
    ("Taschkent-Istanbul", 1, 0),
]

_MEAL = [
    ("Breakfast", 1, 0),
    ("Lunch", 1, 0),
    ("Dinner", 1, 0),
]

_SIGHTSEEING = [
    ("Museum Entry", 1, 0),
    ("Guide Service", 1, 0),
]

_GUIDE = [
    ("Main Guide (per day)", 1, 0),
    ("Local Guide (per day)", 1, 0),
]

_SHOW = [
    ("Show", 1, 0),
]

# (name, headcount, currency); named extras the invoices look up
_ADDITIONAL_COSTS = [
    ("Zusatznacht EZ", 1, 'USD'),
    ("Zusatznacht DZ", 1, 'USD'),
    ("Geburtstagsgeschenk", 1, 'USD'),
    ("Extra Transfer in Taschkent", 1, 'USD'),
]

_LINE_DEFAULTS = {
    Category.TRANSPORT: _TRANSPORT,
    Category.RAILWAY: _RAILWAY,
    Category.FLY: _FLY,
    Category.MEAL: _MEAL,
    Category.SIGHTSEEING: _SIGHTSEEING,
    Category.GUIDE: _GUIDE,
    Category.SHOW: _SHOW,
}


def default_items(category: Category) -> Union[list, CommissionTable]:
    """
    Fresh default records for a category.

    Every call builds new objects so callers may mutate the result freely.
    """
    category = Category.parse(category)

    if category == Category.COMMISSION:
        return CommissionTable()

    if category == Category.HOTELS:
        return [
            HotelItem(id=i, name=city, days=nights)
            for i, (city, nights) in enumerate(_HOTELS, start=1)
        ]

    if category == Category.ADDITIONAL_COSTS:
        return [
            AdditionalCostItem(id=i, name=name, unit_price=Decimal('0'), headcount=pax, currency=currency)
            for i, (name, pax, currency) in enumerate(_ADDITIONAL_COSTS, start=1)
        ]

    return [
        LineItem(id=i, name=name, days=days, unit_price=Decimal(price))
        for i, (name, days, price) in enumerate(_LINE_DEFAULTS[category], start=1)
    ]
