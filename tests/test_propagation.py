"""
Tier propagation tests.
"""
import asyncio
from decimal import Decimal

import pytest

from tour_pricing.engine.models import Category, LineItem, ProductLine, Tier
from tour_pricing.errors import PropagationError, RemoteReadFailed
from tour_pricing.services.propagation import TierPropagator
from tour_pricing.storage.repository import SaveStatus


def items(price):
    return [
        LineItem(id=1, name="Bus", days=1, unit_price=Decimal(price)),
        LineItem(id=2, name="Minivan", days=3, unit_price=Decimal('90')),
    ]


@pytest.fixture
def propagator(repository):
    return TierPropagator(repository)


def test_targets_for_sources():
    assert TierPropagator.targets_for("4") == (Tier.PAX_5, Tier.PAX_6_7, Tier.PAX_8_9)
    assert TierPropagator.targets_for(Tier.PAX_10_11) == (Tier.PAX_12_13, Tier.PAX_14_15, Tier.PAX_16)
    with pytest.raises(PropagationError):
        TierPropagator.targets_for("5")


def test_requires_confirmation(propagator, repository):
    with pytest.raises(PropagationError):
        asyncio.run(propagator.propagate(ProductLine.ER, Category.TRANSPORT, Tier.PAX_4))
    assert repository.cache.keys() == []


def test_shared_category_cannot_be_propagated(propagator):
    with pytest.raises(PropagationError):
        asyncio.run(propagator.propagate(ProductLine.ER, Category.HOTELS, Tier.PAX_4, confirm=True))


def test_copy_is_not_aliased_to_source(propagator, repository):
    """Targets keep the propagated state after the source is edited again."""
    async def scenario():
        await repository.save(ProductLine.ER, Category.TRANSPORT, Tier.PAX_4, items('400'))
        result = await propagator.propagate(ProductLine.ER, Category.TRANSPORT, Tier.PAX_4, confirm=True)
        await repository.save(ProductLine.ER, Category.TRANSPORT, Tier.PAX_4, items('999'))
        targets = {tier: await repository.load(ProductLine.ER, Category.TRANSPORT, tier)
                   for tier in (Tier.PAX_5, Tier.PAX_6_7, Tier.PAX_8_9)}
        return result, targets

    result, targets = asyncio.run(scenario())

    assert result.status == SaveStatus.OK
    assert result.item_count == 2
    for tier, loaded in targets.items():
        assert loaded == items('400'), f"tier {tier.value} changed with the source"


def test_pending_edits_saved_before_copy(propagator, repository):
    async def scenario():
        await repository.save(ProductLine.CO, Category.FLY, Tier.PAX_10_11, items('100'))
        result = await propagator.propagate(
            ProductLine.CO, Category.FLY, Tier.PAX_10_11, confirm=True, pending_items=items('250'),
        )
        source = await repository.load(ProductLine.CO, Category.FLY, Tier.PAX_10_11)
        target = await repository.load(ProductLine.CO, Category.FLY, Tier.PAX_16)
        return result, source, target

    result, source, target = asyncio.run(scenario())
    assert result.source_status == SaveStatus.OK
    assert source == items('250')
    assert target == items('250')


def test_other_tiers_untouched(propagator, repository):
    async def scenario():
        await repository.save(ProductLine.ER, Category.RAILWAY, Tier.PAX_10_11, items('70'))
        await repository.save(ProductLine.ER, Category.RAILWAY, Tier.PAX_4, items('30'))
        await propagator.propagate(ProductLine.ER, Category.RAILWAY, Tier.PAX_4, confirm=True)
        return await repository.load(ProductLine.ER, Category.RAILWAY, Tier.PAX_10_11)

    assert asyncio.run(scenario()) == items('70')


def test_views_notified_to_reload(propagator, repository):
    notified = []
    propagator.subscribe(lambda pl, cat, tier: notified.append((pl, cat, tier)))

    asyncio.run(propagator.propagate(ProductLine.ER, Category.TRANSPORT, Tier.PAX_10_11, confirm=True))

    assert notified == [
        (ProductLine.ER, Category.TRANSPORT, Tier.PAX_12_13),
        (ProductLine.ER, Category.TRANSPORT, Tier.PAX_14_15),
        (ProductLine.ER, Category.TRANSPORT, Tier.PAX_16),
    ]


def test_unreachable_remote_gives_partial(propagator, repository, remote_server):
    remote_server.down = True
    result = asyncio.run(propagator.propagate(ProductLine.ER, Category.TRANSPORT, Tier.PAX_4,
                                              confirm=True, pending_items=items('10')))
    assert result.status == SaveStatus.PARTIAL
    assert result.reload_tiers == [Tier.PAX_5, Tier.PAX_6_7, Tier.PAX_8_9]
    assert asyncio.run(repository.load(ProductLine.ER, Category.TRANSPORT, Tier.PAX_8_9)) == items('10')


def test_propagate_all_covers_tier_specific_categories(propagator):
    with pytest.raises(PropagationError):
        asyncio.run(propagator.propagate_all(ProductLine.ZA, Tier.PAX_4))

    results = asyncio.run(propagator.propagate_all(ProductLine.ZA, Tier.PAX_4, confirm=True))
    assert [r.category for r in results] == [Category.TRANSPORT, Category.RAILWAY, Category.FLY]
    assert all(r.status == SaveStatus.OK for r in results)


def test_unreadable_source_leaves_targets_alone(propagator, repository, remote_server):
    """Targets keep their data when the source tier cannot be read."""
    bus = [{"id": 1, "name": "Bus", "days": 1, "unitPrice": 900}]
    remote_server.records[("ER", "TRANSPORT", "5")] = bus
    remote_server.fail_reads = True
    notified = []
    propagator.subscribe(lambda pl, cat, tier: notified.append(tier))

    with pytest.raises(RemoteReadFailed):
        asyncio.run(propagator.propagate(ProductLine.ER, Category.TRANSPORT, Tier.PAX_4, confirm=True))

    assert remote_server.records[("ER", "TRANSPORT", "5")] == bus
    assert all(r.method == "GET" for r in remote_server.requests)
    assert repository.cache.keys() == []
    assert notified == []
