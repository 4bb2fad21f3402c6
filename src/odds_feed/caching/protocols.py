from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from odds_feed.common.urn import Urn
from odds_feed.markets.descriptions import MarketDescription


class MarketCacheProvider(Protocol):
    """
    Name generation depends on this, not on a concrete cache.

    Implementations own fetching, merging across locales and invalidation.
    """

    async def get_market_description(
        self,
        market_id: int,
        specifiers: Mapping[str, str] | None,
        locales: Sequence[str],
        fetch_variant_descriptions: bool,
    ) -> MarketDescription | None:
        """
        Raises CacheItemNotFoundError when the descriptor is not cached and
        could not be loaded.
        """
        ...

    async def reload_market_description(
        self, market_id: int, specifiers: Mapping[str, str] | None
    ) -> bool:
        """Invalidate and refetch the descriptor; returns whether a reload happened."""
        ...


class ProfileCache(Protocol):
    """
    Resolves player/competitor ids to localized display names.

    With `fetch_if_missing=False` only already cached data is used and the call
    never blocks on the network.
    """

    async def get_player_name(
        self, player_id: Urn, locale: str, fetch_if_missing: bool
    ) -> str | None: ...

    async def get_competitor_name(
        self, competitor_id: Urn, locale: str, fetch_if_missing: bool
    ) -> str | None: ...

    async def preload_competitor_profiles(
        self, competitor_ids: Sequence[Urn], locales: Sequence[str]
    ) -> None:
        """Load full competitor profiles (including their players)."""
        ...

    async def preload_competitor_names(
        self, competitor_ids: Sequence[Urn], locales: Sequence[str]
    ) -> None: ...
