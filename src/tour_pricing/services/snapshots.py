"""
Totals Snapshot Store - explicitly captured final prices per tier.

The invoicing side reads prices only from these snapshots. A snapshot is
written by capture() and nothing else: editing items or commissions leaves
the last captured numbers in place until an operator captures again.

All tiers of a product line live in one cache document, e.g. "er_total":

    {"4": {"finalPrice": 1490, "singleSupplement": 260, "capturedAt": "..."}, ...}

so a capture replaces every tier at once or none of them.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

import pandas as pd

from ..engine.calculator import TierInputs, calculate, round_price
from ..engine.models import Category, PriceBreakdown, ProductLine, Tier, TotalsSnapshot
from ..storage.repository import PriceRepository

logger = logging.getLogger(__name__)

SNAPSHOT_COLUMNS = ['tier', 'headcount', 'final_price', 'single_supplement', 'captured_at']


def snapshot_key(product_line: Union[ProductLine, str]) -> str:
    """Cache key of a product line's snapshot document."""
    return f"{ProductLine.parse(product_line).value.lower()}_total"


@dataclass
class SnapshotCapture:
    """Everything written by one capture."""
    product_line: ProductLine
    captured_at: str
    snapshots: dict[Tier, TotalsSnapshot] = field(default_factory=dict)
    breakdowns: dict[Tier, PriceBreakdown] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'productLine': self.product_line.value,
            'capturedAt': self.captured_at,
            'snapshots': {tier.value: snap.to_dict() for tier, snap in self.snapshots.items()},
            'warnings': self.warnings,
        }


class TotalsSnapshotStore:
    """Captures and serves TotalsSnapshots."""

    def __init__(self, repository: PriceRepository):
        self.repository = repository

    async def _tier_inputs(self, product_line: ProductLine, warnings: list[str]) -> dict[Tier, TierInputs]:
        """Load every priced category once per storage record."""
        inputs = {tier: TierInputs() for tier in Tier}

        for category in Category.priced():
            if category.shared_across_tiers:
                loaded = await self.repository.fetch(product_line, category)
                warnings.extend(w for w in loaded.warnings if w not in warnings)
                for tier in Tier:
                    inputs[tier].set_items(category, loaded.items)
            else:
                for tier in Tier:
                    loaded = await self.repository.fetch(product_line, category, tier)
                    warnings.extend(w for w in loaded.warnings if w not in warnings)
                    inputs[tier].set_items(category, loaded.items)

        return inputs

    async def capture(self, product_line: Union[ProductLine, str]) -> SnapshotCapture:
        """
        Calculate every tier and store final price and single supplement.

        Overwrites previous snapshots of the product line. Inputs that could
        only be loaded from defaults are reported in the returned warnings.

        Raises:
            OSError: the cache could not be written; the previous capture
                stays in place for every tier
        """
        product_line = ProductLine.parse(product_line)
        capture = SnapshotCapture(
            product_line=product_line,
            captured_at=datetime.now().isoformat(timespec='seconds'),
        )

        inputs = await self._tier_inputs(product_line, capture.warnings)
        fetched = await self.repository.fetch(product_line, Category.COMMISSION)
        capture.warnings.extend(w for w in fetched.warnings if w not in capture.warnings)
        commission = fetched.items

        for tier in Tier:
            breakdown = calculate(inputs[tier], tier, commission)
            snapshot = TotalsSnapshot(
                product_line=product_line,
                tier=tier,
                final_price=breakdown.final_price,
                single_supplement=round_price(breakdown.single_supplement),
                captured_at=capture.captured_at,
            )
            capture.snapshots[tier] = snapshot
            capture.breakdowns[tier] = breakdown

        document = {tier.value: snap.to_dict() for tier, snap in capture.snapshots.items()}
        self.repository.write_cached(snapshot_key(product_line), document)

        logger.info("Captured totals for %s at %s (%d warnings)",
                    product_line.value, capture.captured_at, len(capture.warnings))
        return capture

    def get(self, product_line: Union[ProductLine, str], tier: Union[Tier, str]) -> Optional[TotalsSnapshot]:
        """Last captured snapshot for a tier, or None if never captured."""
        product_line = ProductLine.parse(product_line)
        tier = Tier.parse(tier)
        document = self.repository.read_cached(snapshot_key(product_line)) or {}
        raw = document.get(tier.value)
        if raw is None:
            return None
        return TotalsSnapshot.from_dict(product_line, tier, raw)

    def get_all(self, product_line: Union[ProductLine, str]) -> dict[Tier, TotalsSnapshot]:
        snapshots = {}
        for tier in Tier:
            snapshot = self.get(product_line, tier)
            if snapshot is not None:
                snapshots[tier] = snapshot
        return snapshots

    def for_group_size(self, product_line: Union[ProductLine, str], travelers: int) -> Optional[TotalsSnapshot]:
        """Snapshot of the tier an actual group size falls into."""
        return self.get(product_line, Tier.for_group_size(travelers))

    def to_frame(self, product_line: Union[ProductLine, str]) -> pd.DataFrame:
        """Captured snapshots as a table, one row per captured tier."""
        rows = [
            {
                'tier': snap.tier.value,
                'headcount': snap.tier.headcount,
                'final_price': snap.final_price,
                'single_supplement': snap.single_supplement,
                'captured_at': snap.captured_at,
            }
            for snap in self.get_all(product_line).values()
        ]
        return pd.DataFrame(rows, columns=SNAPSHOT_COLUMNS)
