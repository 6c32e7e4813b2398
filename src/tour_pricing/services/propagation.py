"""
Tier Propagator - copies a tier's item list onto the tiers above it.

Two operator actions exist:
    4      → 5, 6-7, 8-9
    10-11  → 12-13, 14-15, 16

Only tier-specific categories (transport, railway, fly) can be propagated.
The copy overwrites the targets and cannot be undone, so every call must be
explicitly confirmed.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from ..engine.models import Category, ProductLine, Tier
from ..errors import PropagationError
from ..storage.repository import PriceRepository, SaveStatus

logger = logging.getLogger(__name__)

PROPAGATION_TARGETS: dict[Tier, tuple[Tier, ...]] = {
    Tier.PAX_4: (Tier.PAX_5, Tier.PAX_6_7, Tier.PAX_8_9),
    Tier.PAX_10_11: (Tier.PAX_12_13, Tier.PAX_14_15, Tier.PAX_16),
}

# Called with (product_line, category, tier) for every overwritten tier
ReloadListener = Callable[[ProductLine, Category, Tier], None]


@dataclass
class PropagationResult:
    """Outcome of one propagation."""
    product_line: ProductLine
    category: Category
    source_tier: Tier
    source_status: Optional[SaveStatus] = None  # set when pending edits were saved first
    target_status: dict[Tier, SaveStatus] = field(default_factory=dict)
    item_count: int = 0

    @property
    def status(self) -> SaveStatus:
        """Worst status across every write of the propagation."""
        statuses = list(self.target_status.values())
        if self.source_status is not None:
            statuses.append(self.source_status)
        if SaveStatus.FAILED in statuses:
            return SaveStatus.FAILED
        if SaveStatus.PARTIAL in statuses:
            return SaveStatus.PARTIAL
        return SaveStatus.OK

    @property
    def reload_tiers(self) -> list[Tier]:
        """Tiers whose views must reload from storage."""
        return [tier for tier, status in self.target_status.items() if status != SaveStatus.FAILED]

    def to_dict(self) -> dict:
        return {
            'productLine': self.product_line.value,
            'category': self.category.value,
            'sourceTier': self.source_tier.value,
            'sourceStatus': self.source_status.value if self.source_status else None,
            'targets': {tier.value: status.value for tier, status in self.target_status.items()},
            'itemCount': self.item_count,
            'status': self.status.value,
        }


class TierPropagator:
    """Bulk-duplicates tier-specific item lists."""

    def __init__(self, repository: PriceRepository):
        self.repository = repository
        self._listeners: list[ReloadListener] = []

    def subscribe(self, listener: ReloadListener) -> None:
        """Register a view that must reload when a tier it shows is overwritten."""
        self._listeners.append(listener)

    @staticmethod
    def targets_for(source_tier: Union[Tier, str]) -> tuple[Tier, ...]:
        source_tier = Tier.parse(source_tier)
        if source_tier not in PROPAGATION_TARGETS:
            sources = ", ".join(t.value for t in PROPAGATION_TARGETS)
            raise PropagationError(f"Tier {source_tier.value} cannot be propagated; sources are {sources}")
        return PROPAGATION_TARGETS[source_tier]

    async def propagate(
        self,
        product_line: Union[ProductLine, str],
        category: Union[Category, str],
        source_tier: Union[Tier, str],
        confirm: bool = False,
        pending_items: Optional[list] = None,
    ) -> PropagationResult:
        """
        Copy the source tier's items onto its target tiers.

        Args:
            product_line: Product line to edit
            category: A tier-specific category
            source_tier: 4 or 10-11
            confirm: Must be True; the overwrite is irreversible
            pending_items: Unsaved edits of the source tier, persisted before copying

        Raises:
            PropagationError: unconfirmed, shared category or unknown source tier
            RemoteReadFailed: the source tier could not be read; no target is touched
        """
        product_line = ProductLine.parse(product_line)
        category = Category.parse(category)
        source_tier = Tier.parse(source_tier)

        if category.shared_across_tiers:
            raise PropagationError(f"{category.value} is shared across tiers and cannot be propagated")
        targets = self.targets_for(source_tier)
        if not confirm:
            raise PropagationError(
                f"Propagating {category.value} {source_tier.value} → "
                f"{', '.join(t.value for t in targets)} overwrites those tiers; confirmation required"
            )

        result = PropagationResult(product_line=product_line, category=category, source_tier=source_tier)

        if pending_items is not None:
            result.source_status = await self.repository.save(product_line, category, source_tier, pending_items)
            if result.source_status == SaveStatus.FAILED:
                logger.warning("Propagation of %s %s aborted: source tier could not be saved",
                               category.value, source_tier.value)
                return result

        items = await self.repository.load_for_update(product_line, category, source_tier)
        result.item_count = len(items)

        for target in targets:
            # each save encodes the list, so targets never alias the source
            result.target_status[target] = await self.repository.save(product_line, category, target, items)

        logger.info("Propagated %s %s %s → %s (%d items, %s)",
                    product_line.value, category.value, source_tier.value,
                    ", ".join(t.value for t in targets), result.item_count, result.status.value)

        for tier in result.reload_tiers:
            for listener in list(self._listeners):
                listener(product_line, category, tier)

        return result

    async def propagate_all(
        self,
        product_line: Union[ProductLine, str],
        source_tier: Union[Tier, str],
        confirm: bool = False,
    ) -> list[PropagationResult]:
        """Propagate every tier-specific category from the source tier."""
        self.targets_for(source_tier)
        if not confirm:
            raise PropagationError("Propagating all tier-specific categories requires confirmation")
        return [
            await self.propagate(product_line, category, source_tier, confirm=True)
            for category in Category.tier_specific()
        ]
