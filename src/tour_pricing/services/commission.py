"""
Commission Store - per-tier commission percentages for each product line.

Stored through the repository as the shared "commission" record, so one
table serves every tier of a product line.
"""
import logging
from decimal import Decimal
from typing import Any, Union

from ..engine.models import Category, CommissionTable, ProductLine, Tier
from ..engine.validation import parse_percentage
from ..storage.repository import PriceRepository, SaveStatus

logger = logging.getLogger(__name__)


class CommissionStore:
    """Service for reading and updating commission tables."""

    def __init__(self, repository: PriceRepository):
        self.repository = repository

    async def get_table(self, product_line: Union[ProductLine, str]) -> CommissionTable:
        """Commission table for a product line; all tiers 0% if nothing is saved."""
        return await self.repository.load(product_line, Category.COMMISSION)

    async def get_percentage(self, product_line: Union[ProductLine, str], tier: Union[Tier, str]) -> Decimal:
        table = await self.get_table(product_line)
        return table.percentage(tier)

    async def set_percentage(
        self,
        product_line: Union[ProductLine, str],
        tier: Union[Tier, str],
        percentage: Any,
    ) -> SaveStatus:
        """
        Update one tier's percentage, leaving the other tiers untouched.

        No upper clamp: markups above 100% are valid.

        Raises:
            ValidationFailed: percentage is blank, non-numeric or negative
            RemoteReadFailed: the stored table could not be read, so the
                other tiers' percentages are unknown
        """
        tier = Tier.parse(tier)
        value = parse_percentage(percentage)

        table = await self.repository.load_for_update(product_line, Category.COMMISSION)
        table.percentages[tier] = value
        status = await self.repository.save(product_line, Category.COMMISSION, None, table)
        logger.info("Commission for %s tier %s set to %s%% (%s)",
                    ProductLine.parse(product_line).value, tier.value, value, status.value)
        return status

    async def save_table(self, product_line: Union[ProductLine, str], table: CommissionTable) -> SaveStatus:
        """Replace the whole table."""
        return await self.repository.save(product_line, Category.COMMISSION, None, table)
