from __future__ import annotations

import asyncio

import pytest

from odds_feed.caching.memory import InMemoryMarketCacheProvider, InMemoryProfileCache
from odds_feed.common.enums import ExceptionHandlingStrategy
from odds_feed.common.urn import Urn
from odds_feed.entities.sport_event import Competitor, Match
from odds_feed.markets.descriptions import MarketDescription
from odds_feed.markets.name_provider import NameProviderFactory

SPECIFIERS = {"inningnr": "5", "runnr": "2", "hcp": "-1.5", "total": "2.5"}


def _match() -> Match:
    return Match(
        id=Urn.parse("sr:match:100"),
        competitors=(
            Competitor(Urn.parse("sr:competitor:1"), {"en": "Home FC"}),
            Competitor(Urn.parse("sr:competitor:2"), {"en": "Away United"}),
        ),
    )


def _market_name(descriptor: str, specifiers: dict[str, str] | None = None) -> str | None:
    market_cache = InMemoryMarketCacheProvider()
    market_cache.add(MarketDescription(id=1, names={"en": descriptor}))
    factory = NameProviderFactory(
        market_cache, InMemoryProfileCache(), exception_strategy=ExceptionHandlingStrategy.THROW
    )
    provider = factory.build_name_provider(_match(), 1, SPECIFIERS if specifiers is None else specifiers)
    return asyncio.run(provider.get_market_name("en"))


@pytest.mark.parametrize(
    ("descriptor", "expected"),
    [
        ("Winner", "Winner"),
        ("{!inningnr} inning - {!runnr} run", "5th inning - 2nd run"),
        ("{!(inningnr+1)} inning", "6th inning"),
        ("{!(inningnr-1)} inning", "4th inning"),
        ("Run {runnr}", "Run 2"),
        ("Run {(4-runnr)}", "Run 2"),
        ("Run {(runnr+1)}", "Run 3"),
        ("Handicap {+runnr}", "Handicap +2"),
        ("Handicap {-runnr}", "Handicap -2"),
        ("Handicap {+hcp}", "Handicap -1.5"),
        ("Handicap {-hcp}", "Handicap +1.5"),
        ("Total {total}", "Total 2.5"),
        ("{$competitor1} vs {$competitor2}", "Home FC vs Away United"),
        ("{$event} - total {total}", "Home FC vs Away United - total 2.5"),
        ("{$competitor1} ({+hcp}) / {$competitor1} ({-hcp})", "Home FC (-1.5) / Home FC (+1.5)"),
    ],
)
def test_market_names(descriptor: str, expected: str) -> None:
    assert _market_name(descriptor) == expected


def test_market_name_uses_locale_fallback() -> None:
    market_cache = InMemoryMarketCacheProvider()
    market_cache.add(MarketDescription(id=1, names={"en": "Total {total}", "de": "Gesamt {total}"}))
    factory = NameProviderFactory(market_cache, InMemoryProfileCache())
    provider = factory.build_name_provider(_match(), 1, {"total": "2.5"})

    assert asyncio.run(provider.get_market_name("de-AT")) == "Gesamt 2.5"
    assert asyncio.run(provider.get_market_name("en")) == "Total 2.5"


def test_variant_market_falls_back_to_invariant_description() -> None:
    market_cache = InMemoryMarketCacheProvider()
    market_cache.add(MarketDescription(id=1, names={"en": "Winner"}))
    market_cache.add(MarketDescription(id=1, names={"en": "Winner (variant)"}, variant="sr:exact_goals:4+"))
    factory = NameProviderFactory(market_cache, InMemoryProfileCache())

    variant = factory.build_name_provider(_match(), 1, {"variant": "sr:exact_goals:4+"})
    other = factory.build_name_provider(_match(), 1, {"variant": "sr:exact_goals:6+"})

    assert asyncio.run(variant.get_market_name("en")) == "Winner (variant)"
    assert asyncio.run(other.get_market_name("en")) == "Winner"


def test_provider_exposes_read_only_specifiers() -> None:
    specifiers = {"total": "2.5"}
    factory = NameProviderFactory(InMemoryMarketCacheProvider(), InMemoryProfileCache())
    provider = factory.build_name_provider(_match(), 18, specifiers)
    specifiers["total"] = "3.5"

    assert provider.market_id == 18
    assert provider.specifiers == {"total": "2.5"}
    with pytest.raises(TypeError):
        provider.specifiers["total"] = "4.5"  # type: ignore[index]


def test_factory_defaults_to_configured_strategy() -> None:
    factory = NameProviderFactory(InMemoryMarketCacheProvider(), InMemoryProfileCache())
    provider = factory.build_name_provider(_match(), 1, None)

    assert provider.exception_strategy is ExceptionHandlingStrategy.CATCH
    assert provider.specifiers == {}


PLAYER1 = Urn.parse("sr:player:1")
PLAYER2 = Urn.parse("sr:player:2")


class _HandOffProfileCache(InMemoryProfileCache):
    """The first player's lookup only finishes after the second player's lookup ran."""

    released: asyncio.Event
    completed: list[Urn]

    async def get_player_name(self, player_id: Urn, locale: str, fetch_if_missing: bool) -> str | None:
        if player_id == PLAYER1:
            await self.released.wait()
        name = await super().get_player_name(player_id, locale, fetch_if_missing)
        if player_id == PLAYER2:
            self.released.set()
        self.completed.append(player_id)
        return name


def test_placeholders_are_evaluated_concurrently_and_reassembled_by_position() -> None:
    profile_cache = _HandOffProfileCache()
    profile_cache.add_player(PLAYER1, {"en": "Name1"})
    profile_cache.add_player(PLAYER2, {"en": "Name2"})
    profile_cache.completed = []
    market_cache = InMemoryMarketCacheProvider()
    market_cache.add(MarketDescription(id=1, names={"en": "{%player1} to score before {%player2}"}))
    factory = NameProviderFactory(
        market_cache, profile_cache, exception_strategy=ExceptionHandlingStrategy.THROW
    )
    provider = factory.build_name_provider(
        _match(), 1, {"player1": "sr:player:1", "player2": "sr:player:2"}
    )

    async def run() -> str | None:
        profile_cache.released = asyncio.Event()
        # Sequential evaluation would wait on the first lookup forever.
        return await asyncio.wait_for(provider.get_market_name("en"), timeout=5)

    assert asyncio.run(run()) == "Name1 to score before Name2"
    assert profile_cache.completed == [PLAYER2, PLAYER1]
