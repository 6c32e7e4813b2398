"""
Price Repository - read-through / write-back persistence over two backends.

Reads:  local cache → remote store → category defaults. Never raises on a miss.
Writes: local cache first, then remote store. The cache write is complete
        and visible to load() before the remote round-trip starts, so
        read-after-write holds even when the remote is slow or down.

Concurrent saves to one key are not queued; the last writer wins.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from ..config.settings import Settings, get_settings
from ..engine.defaults import default_items
from ..engine.models import (
    Category,
    CommissionTable,
    ProductLine,
    Tier,
    decode_items,
    encode_items,
)
from ..errors import NotFound, RemoteReadFailed, RemoteWriteFailed, ValidationFailed
from .cache import LocalCache
from .remote import SHARED_TIER_ID, RemoteStore

logger = logging.getLogger(__name__)

ItemList = Union[list, CommissionTable]


class SaveStatus(str, Enum):
    """Outcome of a save."""
    OK = "ok"  # cache and remote written
    PARTIAL = "partial"  # cache written, remote write failed: edit is not durable yet
    FAILED = "failed"  # nothing written


@dataclass
class LoadResult:
    """Items for a record plus where they came from."""
    items: ItemList
    source: str  # "cache", "remote" or "defaults"
    warnings: list[str] = field(default_factory=list)


def cache_key(product_line: Union[ProductLine, str], category: Union[Category, str], tier: Union[Tier, str, None] = None) -> str:
    """
    Deterministic cache key for a record.

    Shared categories key by product line and category only; tier-specific
    ones are namespaced by tier as well.
    """
    product_line = ProductLine.parse(product_line)
    category = Category.parse(category)
    if tier is not None:
        # shared categories ignore the tier, but an unknown id is still an error
        tier = Tier.parse(tier)
    base = f"{product_line.value.lower()}_{category.value}"
    if category.shared_across_tiers:
        return base
    if tier is None:
        raise ValidationFailed(f"{category.value} is stored per tier; a tier is required", 'tier')
    return f"{base}_{tier.value}"


def remote_tier_id(category: Category, tier: Union[Tier, str, None]) -> str:
    """Tier id sent on the wire."""
    if category.shared_across_tiers:
        return SHARED_TIER_ID
    return Tier.parse(tier).value


class PriceRepository:
    """
    Central persistence for price records.

    All reads and writes of item lists, commission tables and snapshots go
    through one instance, so the cache-before-remote ordering holds everywhere.
    """

    def __init__(
        self,
        cache: Optional[LocalCache] = None,
        remote: Optional[RemoteStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else LocalCache(self.settings.cache_path)
        self.remote = remote if remote is not None else RemoteStore(
            base_url=self.settings.remote_base_url,
            timeout=self.settings.remote_timeout,
            year=self.settings.price_year,
            auth_token=self.settings.auth_token,
        )

    async def fetch(
        self,
        product_line: Union[ProductLine, str],
        category: Union[Category, str],
        tier: Union[Tier, str, None] = None,
    ) -> LoadResult:
        """
        Load a record with its provenance.

        A successful remote read warms the cache. A remote miss or failure
        falls back to fresh defaults, which are not cached.
        """
        product_line = ProductLine.parse(product_line)
        category = Category.parse(category)
        key = cache_key(product_line, category, tier)
        warnings = []

        cached = self.cache.get(key)
        if cached is not None:
            try:
                logger.debug("Cache hit for %s", key)
                return LoadResult(items=decode_items(category, cached), source="cache")
            except ValidationFailed as e:
                logger.warning("Discarding malformed cache entry %s: %s", key, e)
                warnings.append(f"Cached data for {key} was unreadable and was ignored")

        logger.debug("Cache miss for %s", key)
        try:
            raw = await self.remote.fetch(
                product_line.value, category.wire_name, remote_tier_id(category, tier)
            )
            items = decode_items(category, raw)
        except NotFound:
            logger.debug("No remote record for %s, using defaults", key)
        except (RemoteReadFailed, ValidationFailed) as e:
            logger.warning("Remote read failed for %s, using defaults: %s", key, e)
            warnings.append(f"Remote store unavailable for {key}; showing default values")
        else:
            try:
                self.cache.set(key, encode_items(category, items))
            except OSError as e:
                logger.warning("Could not warm cache for %s: %s", key, e)
            return LoadResult(items=items, source="remote", warnings=warnings)

        return LoadResult(
            items=default_items(category),
            source="defaults",
            warnings=warnings,
        )

    async def load_for_update(
        self,
        product_line: Union[ProductLine, str],
        category: Union[Category, str],
        tier: Union[Tier, str, None] = None,
    ) -> ItemList:
        """
        Items to modify and save back.

        Unlike load(), a degraded read is an error here: writing defaults
        back would overwrite a record the remote store may still hold.

        Raises:
            RemoteReadFailed: the stored record could not be read
        """
        result = await self.fetch(product_line, category, tier)
        if result.source == "defaults" and result.warnings:
            key = cache_key(product_line, category, tier)
            logger.warning("Refusing to modify %s: current data could not be read", key)
            raise RemoteReadFailed(
                f"Current data for {key} could not be read; try again when the remote store is reachable"
            )
        return result.items

    async def load(
        self,
        product_line: Union[ProductLine, str],
        category: Union[Category, str],
        tier: Union[Tier, str, None] = None,
    ) -> ItemList:
        """Items for a record: cache, then remote, then defaults."""
        result = await self.fetch(product_line, category, tier)
        return result.items

    async def save(
        self,
        product_line: Union[ProductLine, str],
        category: Union[Category, str],
        tier: Union[Tier, str, None],
        items: ItemList,
    ) -> SaveStatus:
        """
        Write a record to the cache, then to the remote store.

        Raises:
            ValidationFailed: items are malformed (wrong row type, duplicate ids)
        """
        product_line = ProductLine.parse(product_line)
        category = Category.parse(category)
        key = cache_key(product_line, category, tier)
        encoded = encode_items(category, items)

        try:
            self.cache.set(key, encoded)
        except OSError as e:
            logger.warning("Cache write failed for %s, remote write skipped: %s", key, e)
            return SaveStatus.FAILED

        try:
            await self.remote.push(
                product_line.value, category.wire_name, remote_tier_id(category, tier), encoded
            )
        except RemoteWriteFailed as e:
            logger.warning("Saved %s locally only, remote write failed: %s", key, e)
            return SaveStatus.PARTIAL

        logger.debug("Saved %s", key)
        return SaveStatus.OK

    async def remove_item(
        self,
        product_line: Union[ProductLine, str],
        category: Union[Category, str],
        tier: Union[Tier, str, None],
        item_id: int,
    ) -> SaveStatus:
        """
        Delete one row by id and save the rest of the record.

        Raises:
            ValidationFailed: no row with that id
            RemoteReadFailed: the record could not be read
        """
        category = Category.parse(category)
        if category == Category.COMMISSION:
            raise ValidationFailed("Commission tables have no rows to remove", 'category')

        items = await self.load_for_update(product_line, category, tier)
        remaining = [item for item in items if item.id != item_id]
        if len(remaining) == len(items):
            raise ValidationFailed(f"Item {item_id} not found in {category.value}", 'id')
        return await self.save(product_line, category, tier, remaining)

    def read_cached(self, key: str) -> Optional[Any]:
        """Raw cache entry, for records the remote store never sees."""
        return self.cache.get(key)

    def write_cached(self, key: str, value: Any) -> None:
        """Cache-only write. Raises OSError if the cache cannot be written."""
        self.cache.set(key, value)
