from __future__ import annotations

import asyncio

import typer

from odds_feed.caching.memory import InMemoryMarketCacheProvider, InMemoryProfileCache
from odds_feed.common.enums import ExceptionHandlingStrategy
from odds_feed.common.errors import NameDescriptorFormatError, NameGenerationError
from odds_feed.common.urn import Urn
from odds_feed.core.config import settings
from odds_feed.core.log import configure_logging
from odds_feed.entities.sport_event import Competitor, Match
from odds_feed.markets.descriptions import MarketDescription
from odds_feed.markets.name_provider import NameProviderFactory
from odds_feed.markets.parsing import parse_descriptor, parse_expression

app = typer.Typer(help="Inspect and render market name descriptors.")


def _parse_specifiers(values: list[str]) -> dict[str, str]:
    specifiers: dict[str, str] = {}
    for value in values:
        key, sep, raw = value.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Specifier must look like name=value, got '{value}'")
        specifiers[key.strip()] = raw.strip()
    return specifiers


@app.command("parse")
def parse_cmd(
    descriptor: str = typer.Argument(..., help="Name descriptor, e.g. '{$competitor1} ({+hcp})'."),
) -> None:
    """Show the format string and the placeholders of a descriptor."""

    try:
        parsed = parse_descriptor(descriptor)
        expressions = [parse_expression(p) for p in parsed.placeholders]
    except NameDescriptorFormatError as e:
        typer.echo(f"Invalid descriptor: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo(f"format={parsed.format}")
    for index, (placeholder, (operator, operand)) in enumerate(zip(parsed.placeholders, expressions)):
        op = operator.value if operator is not None else "-"
        typer.echo(f"{index}: {placeholder} operator={op} operand={operand}")


@app.command("render")
def render_cmd(
    descriptor: str = typer.Argument(..., help="Market name descriptor to render."),
    specifier: list[str] = typer.Option(
        [], "--specifier", "-s", help="Market specifier as name=value (repeatable)."
    ),
    home: str = typer.Option("Home", "--home", help="Name of the home competitor."),
    away: str = typer.Option("Away", "--away", help="Name of the away competitor."),
    market_id: int = typer.Option(1, "--market-id", help="Market id used in log output."),
    locale: str | None = typer.Option(None, "--locale", help="Locale of the descriptor (defaults to settings)."),
    strict: bool = typer.Option(False, "--strict", help="Raise instead of logging name generation errors."),
) -> None:
    """Render a descriptor as the market name of a two-competitor match."""

    configure_logging()
    locale = locale or settings.default_locale
    specifiers = _parse_specifiers(specifier)

    competitors = [
        Competitor(id=Urn("sr", "competitor", 1), names={locale: home}),
        Competitor(id=Urn("sr", "competitor", 2), names={locale: away}),
    ]
    match = Match(id=Urn("sr", "match", 1), competitors=competitors)

    market_cache = InMemoryMarketCacheProvider()
    market_cache.add(MarketDescription(id=market_id, names={locale: descriptor}))
    profile_cache = InMemoryProfileCache()
    for competitor in competitors:
        profile_cache.add_competitor(competitor)

    strategy = ExceptionHandlingStrategy.THROW if strict else ExceptionHandlingStrategy.CATCH
    factory = NameProviderFactory(market_cache, profile_cache, exception_strategy=strategy)
    provider = factory.build_name_provider(match, market_id, specifiers)

    try:
        name = asyncio.run(provider.get_market_name(locale))
    except NameGenerationError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e

    if name is None:
        typer.echo("Name could not be generated (see log output).", err=True)
        raise typer.Exit(code=1)
    typer.echo(name)
