from __future__ import annotations

import asyncio
import logging

import pytest

from odds_feed.caching.memory import InMemoryMarketCacheProvider, InMemoryProfileCache
from odds_feed.common.enums import ExceptionHandlingStrategy
from odds_feed.common.errors import (
    CacheItemNotFoundError,
    NameDescriptorFormatError,
    NameExpressionError,
    NameGenerationError,
)
from odds_feed.common.urn import Urn
from odds_feed.entities.sport_event import Competitor, Match
from odds_feed.markets.descriptions import MarketAttribute, MarketDescription, OutcomeDescription
from odds_feed.markets.name_provider import NameProvider, NameProviderFactory


def _match() -> Match:
    return Match(
        id=Urn.parse("sr:match:100"),
        competitors=(
            Competitor(Urn.parse("sr:competitor:1"), {"en": "Home FC"}),
            Competitor(Urn.parse("sr:competitor:2"), {"en": "Away United"}),
        ),
    )


def _provider(
    market_cache: InMemoryMarketCacheProvider,
    strategy: ExceptionHandlingStrategy,
    specifiers: dict[str, str] | None = None,
) -> NameProvider:
    factory = NameProviderFactory(market_cache, InMemoryProfileCache(), exception_strategy=strategy)
    return factory.build_name_provider(_match(), 16, specifiers if specifiers is not None else {"hcp": "1.5"})


def _cache_with(descriptor: str, outcomes: tuple[OutcomeDescription, ...] | None = ()) -> InMemoryMarketCacheProvider:
    cache = InMemoryMarketCacheProvider()
    cache.add(MarketDescription(id=16, names={"en": descriptor}, outcomes=outcomes))
    return cache


def test_catch_mode_returns_none_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    provider = _provider(InMemoryMarketCacheProvider(), ExceptionHandlingStrategy.CATCH)

    with caplog.at_level(logging.WARNING, logger="odds_feed"):
        assert asyncio.run(provider.get_market_name("en")) is None

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "MarketId=16" in errors[0].getMessage()
    assert "Specifiers=[hcp=1.5]" in errors[0].getMessage()
    assert isinstance(errors[0].exc_info[1], CacheItemNotFoundError)


def test_throw_mode_chains_the_cause() -> None:
    provider = _provider(InMemoryMarketCacheProvider(), ExceptionHandlingStrategy.THROW)

    with pytest.raises(NameGenerationError) as exc_info:
        asyncio.run(provider.get_market_name("en"))

    error = exc_info.value
    assert isinstance(error.__cause__, CacheItemNotFoundError)
    assert error.market_id == 16
    assert error.locale == "en"
    assert error.context["specifiers"] == {"hcp": "1.5"}


def test_missing_locale_is_reported() -> None:
    provider = _provider(_cache_with("Handicap {hcp}"), ExceptionHandlingStrategy.THROW)

    with pytest.raises(NameGenerationError) as exc_info:
        asyncio.run(provider.get_market_name("fr"))
    assert exc_info.value.__cause__ is None


@pytest.mark.parametrize("descriptor", ["Handicap {hcp", "Handicap hcp}", "{{hcp}}", "{(hcp}"])
def test_malformed_descriptor_is_reported(descriptor: str) -> None:
    provider = _provider(_cache_with(descriptor), ExceptionHandlingStrategy.THROW)

    with pytest.raises(NameGenerationError) as exc_info:
        asyncio.run(provider.get_market_name("en"))
    assert isinstance(exc_info.value.__cause__, NameDescriptorFormatError)
    assert exc_info.value.name_descriptor == descriptor


def test_missing_specifier_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    provider = _provider(_cache_with("Total {total}"), ExceptionHandlingStrategy.CATCH)

    with caplog.at_level(logging.WARNING, logger="odds_feed"):
        assert asyncio.run(provider.get_market_name("en")) is None
    assert any(isinstance(r.exc_info[1], NameExpressionError) for r in caplog.records if r.exc_info)


def test_first_failing_placeholder_wins() -> None:
    provider = _provider(_cache_with("{$venue} {total}"), ExceptionHandlingStrategy.THROW)

    with pytest.raises(NameGenerationError) as exc_info:
        asyncio.run(provider.get_market_name("en"))
    assert "venue" in str(exc_info.value.__cause__)


def test_missing_outcome_after_reload_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    market_cache = _cache_with("Handicap {hcp}", (OutcomeDescription("1714", {"en": "Home"}),))
    provider = _provider(market_cache, ExceptionHandlingStrategy.CATCH)

    with caplog.at_level(logging.WARNING, logger="odds_feed"):
        assert asyncio.run(provider.get_outcome_name("9999", "en")) is None

    assert market_cache.reloads == [(16, None)]
    levels = [r.levelno for r in caplog.records if r.name.startswith("odds_feed.markets")]
    assert levels == [logging.WARNING, logging.ERROR]


def test_missing_outcome_reloads_once_in_throw_mode() -> None:
    market_cache = _cache_with("Handicap {hcp}", None)
    provider = _provider(market_cache, ExceptionHandlingStrategy.THROW)

    with pytest.raises(NameGenerationError) as exc_info:
        asyncio.run(provider.get_outcome_name("1714", "en"))
    assert len(market_cache.reloads) == 1
    assert exc_info.value.outcome_id == "1714"


def test_invalid_flex_score_is_reported() -> None:
    market_cache = InMemoryMarketCacheProvider()
    market_cache.add(
        MarketDescription(
            id=16,
            names={"en": "Correct score"},
            outcomes=(OutcomeDescription("110", {"en": "1:0"}),),
            attributes=(MarketAttribute("is_flex_score"),),
        )
    )
    provider = _provider(market_cache, ExceptionHandlingStrategy.THROW, specifiers={})

    with pytest.raises(NameGenerationError) as exc_info:
        asyncio.run(provider.get_outcome_name("110", "en"))
    assert isinstance(exc_info.value.__cause__, NameExpressionError)


def test_unknown_profile_outcome_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    provider = _provider(InMemoryMarketCacheProvider(), ExceptionHandlingStrategy.CATCH)

    with caplog.at_level(logging.WARNING, logger="odds_feed"):
        assert asyncio.run(provider.get_outcome_name("sr:player:404", "en")) is None
        assert asyncio.run(provider.get_outcome_name("sr:player:x", "en")) is None

    assert len([r for r in caplog.records if r.levelno == logging.ERROR]) == 2


def test_empty_locale_is_rejected() -> None:
    provider = _provider(_cache_with("Winner"), ExceptionHandlingStrategy.CATCH)

    with pytest.raises(ValueError):
        asyncio.run(provider.get_market_name(""))


def test_large_specifier_is_rendered_in_catch_mode() -> None:
    provider = _provider(_cache_with("Total {+total} / {total}"), ExceptionHandlingStrategy.CATCH, {"total": "1e30"})

    assert asyncio.run(provider.get_market_name("en")) == "Total +1" + "0" * 30 + " / 1e30"


@pytest.mark.parametrize("descriptor", ["Total {+total}", "Total {-total}", "Total {(total+1)}", "{!total} run"])
def test_out_of_range_specifier_is_reported_in_catch_mode(
    descriptor: str, caplog: pytest.LogCaptureFixture
) -> None:
    provider = _provider(_cache_with(descriptor), ExceptionHandlingStrategy.CATCH, {"total": "1e999999999"})

    with caplog.at_level(logging.WARNING, logger="odds_feed"):
        assert asyncio.run(provider.get_market_name("en")) is None
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert isinstance(errors[0].exc_info[1], NameExpressionError)
