"""
Data model tests: category definitions, tiers, item parsing and validation.
"""
from decimal import Decimal

import pytest

from tour_pricing.engine.defaults import default_items
from tour_pricing.engine.models import (
    CATEGORY_PROFILES,
    AdditionalCostItem,
    Category,
    CommissionTable,
    HotelItem,
    LineItem,
    ProductLine,
    Split,
    Tier,
    decode_items,
    encode_items,
    find_additional_cost,
    next_item_id,
)
from tour_pricing.engine.validation import parse_amount
from tour_pricing.errors import ValidationFailed


def test_every_category_has_a_profile():
    assert set(CATEGORY_PROFILES) == set(Category)


def test_sharing_flags():
    shared = {c for c in Category if c.shared_across_tiers}
    assert Category.tier_specific() == [Category.TRANSPORT, Category.RAILWAY, Category.FLY]
    assert {Category.HOTELS, Category.MEAL, Category.SIGHTSEEING, Category.GUIDE,
            Category.SHOW, Category.ADDITIONAL_COSTS}.issubset(shared)


def test_split_rules():
    assert Category.RAILWAY.split_rule == Split.FLAT
    assert Category.TRANSPORT.split_rule == Split.HEADCOUNT
    assert Category.GUIDE.split_rule == Split.HEADCOUNT
    assert Category.HOTELS.split_rule == Split.DOUBLE_OCCUPANCY
    assert Category.ADDITIONAL_COSTS not in Category.priced()


def test_category_wire_name_and_parse():
    assert Category.ADDITIONAL_COSTS.wire_name == "ADDITIONALCOSTS"
    assert Category.parse("HOTELS") == Category.HOTELS
    assert Category.parse("additionalcosts") == Category.ADDITIONAL_COSTS
    with pytest.raises(ValidationFailed):
        Category.parse("spa")


def test_tiers_are_ordered_with_headcounts():
    assert [t.value for t in Tier] == ["4", "5", "6-7", "8-9", "10-11", "12-13", "14-15", "16"]
    assert [t.headcount for t in Tier] == [4, 5, 6, 8, 10, 12, 14, 16]


@pytest.mark.parametrize("travelers,expected", [
    (1, "4"), (4, "4"), (5, "5"), (6, "6-7"), (7, "6-7"), (9, "8-9"),
    (11, "10-11"), (13, "12-13"), (15, "14-15"), (16, "16"), (30, "16"),
])
def test_tier_for_group_size(travelers, expected):
    assert Tier.for_group_size(travelers).value == expected


def test_product_line_parse_is_case_insensitive():
    assert ProductLine.parse("kas") == ProductLine.KAS
    with pytest.raises(ValidationFailed):
        ProductLine.parse("XX")


def test_blank_days_default_to_one_and_zero_is_kept():
    blank = LineItem.from_dict({"id": 1, "name": "Bus", "days": "", "unitPrice": "100"})
    zero = HotelItem.from_dict({"id": 2, "name": "Hotel", "days": 0,
                                "doubleOccupancyPrice": 80, "singleRoomPrice": 120})
    assert blank.days == 1
    assert zero.days == 0
    assert zero.double_total == Decimal('0')


def test_non_numeric_price_rejected():
    with pytest.raises(ValidationFailed) as exc:
        LineItem.from_dict({"id": 1, "name": "Bus", "days": 1, "unitPrice": "abc"})
    assert exc.value.field == "unitPrice"


def test_negative_values_rejected():
    with pytest.raises(ValidationFailed):
        LineItem.from_dict({"id": 1, "name": "Bus", "days": -1, "unitPrice": 10})
    with pytest.raises(ValidationFailed):
        HotelItem.from_dict({"id": 1, "name": "Hotel", "doubleOccupancyPrice": -10})


def test_additional_cost_accepts_legacy_keys():
    item = AdditionalCostItem.from_dict({"id": 7, "name": "Zusatznacht DZ", "price": "45.5", "pax": 2})
    assert item.unit_price == Decimal('45.5')
    assert item.headcount == 2
    assert item.currency == "USD"
    assert item.to_dict() == {"id": 7, "name": "Zusatznacht DZ", "unitPrice": 45.5,
                              "headcount": 2, "currency": "USD"}


def test_additional_cost_rejects_unknown_currency_and_zero_headcount():
    with pytest.raises(ValidationFailed):
        AdditionalCostItem.from_dict({"id": 1, "name": "x", "unitPrice": 1, "currency": "GBP"})
    with pytest.raises(ValidationFailed):
        AdditionalCostItem.from_dict({"id": 1, "name": "x", "unitPrice": 1, "headcount": 0})


def test_duplicate_ids_rejected():
    raw = [{"id": 1, "name": "a", "unitPrice": 1}, {"id": 1, "name": "b", "unitPrice": 2}]
    with pytest.raises(ValidationFailed):
        decode_items(Category.MEAL, raw)
    with pytest.raises(ValidationFailed):
        encode_items(Category.MEAL, [LineItem(id=3, name="a"), LineItem(id=3, name="b")])


def test_encode_refuses_wrong_row_type():
    with pytest.raises(ValidationFailed):
        encode_items(Category.HOTELS, [LineItem(id=1, name="not a hotel")])


def test_commission_table_from_dict_and_defaults():
    table = CommissionTable.from_dict({"4": 10, "16": "125.5"})
    assert table.percentage(Tier.PAX_4) == Decimal('10')
    assert table.percentage("16") == Decimal('125.5')
    assert table.percentage(Tier.PAX_8_9) == Decimal('0')
    assert table.to_dict()["8-9"] == 0


def test_commission_rejects_non_numeric():
    with pytest.raises(ValidationFailed):
        CommissionTable.from_dict({"4": "ten"})


def test_next_item_id_and_lookup():
    items = default_items(Category.ADDITIONAL_COSTS)
    assert next_item_id(items) == len(items) + 1
    assert next_item_id([]) == 1
    assert find_additional_cost(items, "Zusatznacht EZ") is not None
    assert find_additional_cost(items, "zusatznacht ez") is None


def test_defaults_are_fresh_objects():
    first = default_items(Category.HOTELS)
    first[0].days = 99
    assert default_items(Category.HOTELS)[0].days != 99
    assert isinstance(default_items(Category.COMMISSION), CommissionTable)


def test_hotel_rows_in_the_older_record_shape():
    item = HotelItem.from_dict({"id": 1, "city": "Tashkent", "days": 3,
                                "pricePerDay": 100, "ezZimmer": 150, "ezZuschlag": 50})
    assert item.name == "Tashkent"
    assert item.double_occupancy_price == Decimal('100')
    assert item.single_room_price == Decimal('150')
    assert item.to_dict() == {"id": 1, "name": "Tashkent", "days": 3,
                              "doubleOccupancyPrice": 100, "singleRoomPrice": 150}


def test_default_route_skeleton():
    hotels = default_items(Category.HOTELS)
    assert [(h.name, h.days) for h in hotels] == [
        ("Tashkent", 3), ("Samarkand", 3), ("Asraf", 1), ("Buchara", 3), ("Chiwa", 2),
    ]
    transport = default_items(Category.TRANSPORT)
    assert len(transport) == 12
    assert {item.unit_price for item in transport} == {Decimal('220'), Decimal('60'),
                                                       Decimal('80'), Decimal('100')}
    assert all(item.unit_price == 0 for item in default_items(Category.MEAL))


@pytest.mark.parametrize("raw,expected", [
    ("12,50", Decimal('12.50')),
    ("1,5", Decimal('1.5')),
    ("1000", Decimal('1000')),
    (" 99.9 ", Decimal('99.9')),
    ("", Decimal('0')),
])
def test_amount_parsing(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["1,000", "12,500", "1.000,50", "1,000,000", "1,2,3"])
def test_thousands_separators_rejected(raw):
    with pytest.raises(ValidationFailed) as exc:
        parse_amount(raw)
    assert exc.value.field == "unitPrice"
