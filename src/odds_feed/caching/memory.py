from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from odds_feed.common.errors import CacheItemNotFoundError
from odds_feed.common.urn import Urn
from odds_feed.core.log import get_logger
from odds_feed.core.text import localized, normalize_locale
from odds_feed.entities.sport_event import Competitor
from odds_feed.markets.descriptions import VARIANT_SPECIFIER, MarketDescription

logger = get_logger(__name__)

MarketKey = tuple[int, str | None]


def _market_key(market_id: int, specifiers: Mapping[str, str] | None) -> MarketKey:
    variant = (specifiers or {}).get(VARIANT_SPECIFIER)
    return market_id, variant


@dataclass
class InMemoryMarketCacheProvider:
    """
    Market cache backed by dictionaries.

    Variant markets are stored under `(market_id, variant)`; lookups fall back to
    the invariant entry `(market_id, None)`. A descriptor registered with
    `stage_reload` replaces the cached one only when a reload is requested, which
    is how an out-of-date cache entry gets healed.
    """

    descriptions: dict[MarketKey, MarketDescription] = field(default_factory=dict)
    reloads: list[MarketKey] = field(default_factory=list)
    _staged: dict[MarketKey, MarketDescription] = field(default_factory=dict, repr=False)

    def add(self, description: MarketDescription) -> None:
        self.descriptions[(description.id, description.variant)] = description

    def stage_reload(self, description: MarketDescription) -> None:
        self._staged[(description.id, description.variant)] = description

    def _lookup(self, key: MarketKey) -> MarketDescription | None:
        found = self.descriptions.get(key)
        if found is None and key[1] is not None:
            found = self.descriptions.get((key[0], None))
        return found

    async def get_market_description(
        self,
        market_id: int,
        specifiers: Mapping[str, str] | None,
        locales: Sequence[str],
        fetch_variant_descriptions: bool,
    ) -> MarketDescription | None:
        # Variant descriptions are always held in memory, so `fetch_variant_descriptions`
        # changes nothing here.
        key = _market_key(market_id, specifiers)
        found = self._lookup(key)
        if found is None:
            raise CacheItemNotFoundError(f"Market description not found: market_id={market_id} variant={key[1]}")
        return found

    async def reload_market_description(
        self, market_id: int, specifiers: Mapping[str, str] | None
    ) -> bool:
        key = _market_key(market_id, specifiers)
        self.reloads.append(key)
        staged = self._staged.pop(key, None)
        if staged is None and key[1] is not None:
            key = (market_id, None)
            staged = self._staged.pop(key, None)
        if staged is None:
            logger.debug("Nothing to reload for market_id=%s", market_id)
            return False
        self.descriptions[key] = staged
        return True


@dataclass
class InMemoryProfileCache:
    """
    Profile cache that distinguishes cached names from names that are only
    available after a forced fetch (or a bulk preload).
    """

    competitors: dict[Urn, Competitor] = field(default_factory=dict)
    players: dict[Urn, Mapping[str, str]] = field(default_factory=dict)
    fetched: list[Urn] = field(default_factory=list)
    preloads: list[tuple[str, tuple[Urn, ...]]] = field(default_factory=list)
    _player_names: dict[tuple[Urn, str], str] = field(default_factory=dict, repr=False)
    _competitor_names: dict[tuple[Urn, str], str] = field(default_factory=dict, repr=False)

    def add_competitor(self, competitor: Competitor, *, cached: bool = False) -> None:
        self.competitors[competitor.id] = competitor
        if cached:
            for locale in competitor.names:
                self._cache_competitor(competitor.id, locale)

    def add_player(self, player_id: Urn, names: Mapping[str, str], *, cached: bool = False) -> None:
        self.players[player_id] = names
        if cached:
            for locale in names:
                self._cache_player(player_id, locale)

    def _cache_competitor(self, competitor_id: Urn, locale: str) -> str | None:
        competitor = self.competitors.get(competitor_id)
        name = competitor.get_name(locale) if competitor is not None else None
        if name:
            self._competitor_names[(competitor_id, normalize_locale(locale))] = name
        return name

    def _cache_player(self, player_id: Urn, locale: str) -> str | None:
        name = localized(self.players.get(player_id, {}), locale)
        if name:
            self._player_names[(player_id, normalize_locale(locale))] = name
        return name

    async def get_player_name(
        self, player_id: Urn, locale: str, fetch_if_missing: bool
    ) -> str | None:
        cached = self._player_names.get((player_id, normalize_locale(locale)))
        if cached or not fetch_if_missing:
            return cached
        self.fetched.append(player_id)
        if player_id not in self.players:
            raise CacheItemNotFoundError(f"Player profile not found: {player_id}")
        return self._cache_player(player_id, locale)

    async def get_competitor_name(
        self, competitor_id: Urn, locale: str, fetch_if_missing: bool
    ) -> str | None:
        cached = self._competitor_names.get((competitor_id, normalize_locale(locale)))
        if cached or not fetch_if_missing:
            return cached
        self.fetched.append(competitor_id)
        if competitor_id not in self.competitors:
            raise CacheItemNotFoundError(f"Competitor profile not found: {competitor_id}")
        return self._cache_competitor(competitor_id, locale)

    async def preload_competitor_profiles(
        self, competitor_ids: Sequence[Urn], locales: Sequence[str]
    ) -> None:
        self.preloads.append(("profiles", tuple(competitor_ids)))
        for competitor_id in competitor_ids:
            competitor = self.competitors.get(competitor_id)
            if competitor is None:
                continue
            for locale in locales:
                self._cache_competitor(competitor_id, locale)
                for player_id in competitor.player_ids:
                    self._cache_player(player_id, locale)

    async def preload_competitor_names(
        self, competitor_ids: Sequence[Urn], locales: Sequence[str]
    ) -> None:
        self.preloads.append(("names", tuple(competitor_ids)))
        for competitor_id in competitor_ids:
            for locale in locales:
                self._cache_competitor(competitor_id, locale)
