from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from odds_feed.caching.protocols import MarketCacheProvider, ProfileCache
from odds_feed.common.enums import ExceptionHandlingStrategy
from odds_feed.common.errors import (
    CacheItemNotFoundError,
    CommunicationError,
    NameDescriptorFormatError,
    NameExpressionError,
    NameGenerationError,
)
from odds_feed.common.urn import Urn
from odds_feed.core.config import settings
from odds_feed.core.log import get_logger
from odds_feed.core.text import specifiers_to_string
from odds_feed.entities.sport_event import Competition, SportEvent, TournamentBase
from odds_feed.markets.descriptions import MarketDescription, OutcomeDescription
from odds_feed.markets.expressions import NameExpression, NameExpressionFactory
from odds_feed.markets.flex import get_flex_score_name
from odds_feed.markets.parsing import ParsedDescriptor, parse_descriptor, parse_expression

PLAYER_OUTCOME_PREFIX = "sr:player:"
COMPETITOR_OUTCOME_PREFIX = "sr:competitor"
COMPOSITE_ID_SEPARATOR = ","

# Reloads of the market description allowed per outcome lookup.
MAX_DESCRIPTION_RELOADS = 1

PRELOAD_PROFILES = "profiles"
PRELOAD_NAMES = "names"

_UPSTREAM_ERRORS = (CacheItemNotFoundError, CommunicationError)

logger = get_logger(__name__)


def is_profile_outcome(outcome_id: str) -> bool:
    lowered = outcome_id.lower()
    return lowered.startswith(PLAYER_OUTCOME_PREFIX) or lowered.startswith(COMPETITOR_OUTCOME_PREFIX)


class _PreloadMemo:
    """Bulk preloads already issued for the sport event, keyed by (locale, kind)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done: set[tuple[str, str]] = set()

    def covers(self, locale: str, kind: str) -> bool:
        # Full profiles include the competitor names.
        with self._lock:
            return (locale, kind) in self._done or (locale, PRELOAD_PROFILES) in self._done

    def add(self, locale: str, kind: str) -> None:
        with self._lock:
            self._done.add((locale, kind))


class NameProvider:
    """
    Generates market and outcome names for one market of one sport event.

    Every call fetches the descriptor for the requested locale, parses it and
    evaluates its placeholders concurrently. Failures are logged and then either
    swallowed (the call returns None) or raised as NameGenerationError, depending
    on `exception_strategy`.
    """

    def __init__(
        self,
        *,
        market_cache: MarketCacheProvider,
        profile_cache: ProfileCache,
        expression_factory: NameExpressionFactory,
        sport_event: SportEvent,
        market_id: int,
        specifiers: Mapping[str, str] | None,
        exception_strategy: ExceptionHandlingStrategy,
        execution_log: logging.Logger | None = None,
    ) -> None:
        self._market_cache = market_cache
        self._profile_cache = profile_cache
        self._expression_factory = expression_factory
        self._sport_event = sport_event
        self._market_id = market_id
        self._specifiers: Mapping[str, str] = MappingProxyType(dict(specifiers or {}))
        self._exception_strategy = ExceptionHandlingStrategy(exception_strategy)
        self._log = execution_log or logger
        self._preloads = _PreloadMemo()

    @property
    def market_id(self) -> int:
        return self._market_id

    @property
    def specifiers(self) -> Mapping[str, str]:
        return self._specifiers

    @property
    def exception_strategy(self) -> ExceptionHandlingStrategy:
        return self._exception_strategy

    @property
    def sport_event(self) -> SportEvent:
        return self._sport_event

    # -----------------------------
    # Market names
    # -----------------------------

    async def get_market_name(self, locale: str) -> str | None:
        try:
            description = await self._get_market_description(locale)
        except _UPSTREAM_ERRORS as e:
            self._handle_error_condition("Failed to retrieve market name descriptor", None, None, locale, e)
            return None

        if description is None:
            self._handle_error_condition("Missing market descriptor", None, None, locale, None)
            return None

        name_descriptor = description.get_name(locale)
        if not name_descriptor:
            self._handle_error_condition(
                "Retrieved market descriptor does not contain name descriptor in the specified language",
                None,
                None,
                locale,
                None,
            )
            return None

        return await self._build_name(name_descriptor, None, locale)

    # -----------------------------
    # Outcome names
    # -----------------------------

    async def get_outcome_name(self, outcome_id: str, locale: str) -> str | None:
        if is_profile_outcome(outcome_id):
            try:
                return await self._get_outcome_name_from_profiles(outcome_id, locale)
            except NameExpressionError as e:
                self._handle_error_condition(
                    "Failed to generate outcome name from profile", outcome_id, None, locale, e
                )
                return None

        found = await self._get_outcome_description(outcome_id, locale)
        if found is None:
            return None
        description, outcome = found

        name_descriptor = outcome.get_name(locale)
        if not name_descriptor:
            self._handle_error_condition(
                "Retrieved market descriptor does not contain name descriptor for associated outcome "
                "in the specified language",
                outcome_id,
                None,
                locale,
                None,
            )
            return None

        if description.is_flex_score:
            try:
                return get_flex_score_name(name_descriptor, self._specifiers)
            except NameExpressionError as e:
                self._handle_error_condition(
                    "The generation of name for flex score market outcome failed",
                    outcome_id,
                    name_descriptor,
                    locale,
                    e,
                )
                return None

        return await self._build_name(name_descriptor, outcome_id, locale)

    async def _get_outcome_description(
        self, outcome_id: str, locale: str
    ) -> tuple[MarketDescription, OutcomeDescription] | None:
        problem = ""
        for attempt in range(MAX_DESCRIPTION_RELOADS + 1):
            try:
                description = await self._get_market_description(locale)
            except _UPSTREAM_ERRORS as e:
                self._handle_error_condition(
                    "Failed to retrieve market name descriptor", outcome_id, None, locale, e
                )
                return None

            if description is None:
                self._handle_error_condition("Failed to retrieve market descriptor", outcome_id, None, locale, None)
                return None

            if description.outcomes is None:
                problem = "Retrieved market descriptor does not contain outcomes"
            else:
                outcome = description.find_outcome(outcome_id)
                if outcome is not None:
                    return description, outcome
                problem = "Retrieved market descriptor does not contain outcome"

            if attempt < MAX_DESCRIPTION_RELOADS:
                self._log.warning(
                    "%s: MarketId=%s, Specifiers=[%s], OutcomeId=%s, Lang=%s. Reloading market description",
                    problem,
                    self._market_id,
                    specifiers_to_string(self._specifiers),
                    outcome_id,
                    locale,
                )
                try:
                    await self._market_cache.reload_market_description(self._market_id, self._specifiers)
                except _UPSTREAM_ERRORS as e:
                    self._handle_error_condition(
                        "Reloading market description failed", outcome_id, None, locale, e
                    )
                    return None

        self._handle_error_condition(problem, outcome_id, None, locale, None)
        return None

    async def _get_outcome_name_from_profiles(self, outcome_id: str, locale: str) -> str:
        """
        Outcome ids like `sr:player:1` or `sr:player:1,sr:player:2` name the
        outcome after the referenced profiles, joined in id order.
        """

        names: list[str] = []
        for part in outcome_id.split(COMPOSITE_ID_SEPARATOR):
            if not part:
                continue
            profile_id = Urn.try_parse(part)
            if profile_id is None:
                raise NameExpressionError(f"OutcomeId={part} is not a valid urn")

            lowered = part.lower()
            if lowered.startswith(PLAYER_OUTCOME_PREFIX):
                is_player = True
            elif lowered.startswith(COMPETITOR_OUTCOME_PREFIX):
                is_player = False
            else:
                raise NameExpressionError(
                    f"OutcomeId={part} must start with '{PLAYER_OUTCOME_PREFIX}' "
                    f"or '{COMPETITOR_OUTCOME_PREFIX}'"
                )

            try:
                name = await self._resolve_profile_name(profile_id, locale, is_player)
            except _UPSTREAM_ERRORS as e:
                raise NameExpressionError("Error occurred while evaluating name expression") from e
            if not name:
                raise NameExpressionError(f"Profile {profile_id} has no name for locale {locale}")
            names.append(name)

        return COMPOSITE_ID_SEPARATOR.join(names)

    async def _resolve_profile_name(self, profile_id: Urn, locale: str, is_player: bool) -> str | None:
        resolve = (
            self._profile_cache.get_player_name if is_player else self._profile_cache.get_competitor_name
        )
        cached = await resolve(profile_id, locale, False)
        if cached:
            return cached

        kind = self._preload_kind(is_player)
        if not self._preloads.covers(locale, kind):
            await self._preload_event_profiles(locale, kind)
        return await resolve(profile_id, locale, True)

    def _preload_kind(self, is_player: bool) -> str:
        # Only competitions carry the players of their competitors.
        if is_player and isinstance(self._sport_event, Competition):
            return PRELOAD_PROFILES
        return PRELOAD_NAMES

    async def _preload_event_profiles(self, locale: str, kind: str) -> None:
        """Best-effort bulk load of every competitor (and player) of the sport event."""

        event = self._sport_event
        try:
            if isinstance(event, (Competition, TournamentBase)):
                competitor_ids = await event.get_competitor_ids(locale)
                if competitor_ids:
                    if kind == PRELOAD_PROFILES:
                        await self._profile_cache.preload_competitor_profiles(competitor_ids, [locale])
                    else:
                        await self._profile_cache.preload_competitor_names(competitor_ids, [locale])
        except _UPSTREAM_ERRORS as e:
            self._log.debug("Error fetching all competitor profiles for %s", event.id, exc_info=e)
            return
        self._preloads.add(locale, kind)

    # -----------------------------
    # Shared pipeline
    # -----------------------------

    def _build_expressions(self, parsed: ParsedDescriptor) -> list[NameExpression]:
        expressions: list[NameExpression] = []
        for placeholder in parsed.placeholders:
            operator, operand = parse_expression(placeholder)
            expressions.append(
                self._expression_factory.build_expression(self._sport_event, self._specifiers, operator, operand)
            )
        return expressions

    async def _build_name(self, name_descriptor: str, outcome_id: str | None, locale: str) -> str | None:
        try:
            parsed = parse_descriptor(name_descriptor)
            expressions = self._build_expressions(parsed)
        except NameDescriptorFormatError as e:
            self._handle_error_condition("The name description parsing failed", outcome_id, name_descriptor, locale, e)
            return None

        if not expressions:
            return name_descriptor

        # Wait for every placeholder, then surface the first failure by position.
        results = await asyncio.gather(*(e.build_name(locale) for e in expressions), return_exceptions=True)
        values: list[str] = []
        for result in results:
            if isinstance(result, NameExpressionError):
                self._handle_error_condition(
                    "Error occurred while evaluating the name expression", outcome_id, name_descriptor, locale, result
                )
                return None
            if isinstance(result, BaseException):
                raise result
            values.append(result)
        return parsed.render(values)

    async def _get_market_description(self, locale: str) -> MarketDescription | None:
        if not locale:
            raise ValueError("locale must not be empty")
        return await self._market_cache.get_market_description(self._market_id, self._specifiers, [locale], True)

    def _handle_error_condition(
        self,
        message: str,
        outcome_id: str | None,
        name_descriptor: str | None,
        locale: str,
        cause: BaseException | None,
    ) -> None:
        """Log the failure and, in throw mode, raise NameGenerationError chained to `cause`."""

        self._log.error(
            "An error occurred while generating the name for item=[MarketId=%s, Specifiers=[%s], OutcomeId=%s], "
            "Lang=%s, Retrieved nameDescriptor=[%s], AdditionalMessage=%s",
            self._market_id,
            specifiers_to_string(self._specifiers),
            outcome_id,
            locale,
            name_descriptor,
            message,
            exc_info=cause,
        )

        if self._exception_strategy is ExceptionHandlingStrategy.THROW:
            raise NameGenerationError(
                message,
                market_id=self._market_id,
                specifiers=self._specifiers,
                outcome_id=outcome_id,
                name_descriptor=name_descriptor,
                locale=locale,
            ) from cause


@dataclass(frozen=True)
class NameProviderFactory:
    market_cache: MarketCacheProvider
    profile_cache: ProfileCache
    exception_strategy: ExceptionHandlingStrategy = field(
        default_factory=lambda: settings.exception_handling_strategy
    )

    def build_name_provider(
        self, sport_event: SportEvent, market_id: int, specifiers: Mapping[str, str] | None
    ) -> NameProvider:
        return NameProvider(
            market_cache=self.market_cache,
            profile_cache=self.profile_cache,
            expression_factory=NameExpressionFactory(self.profile_cache),
            sport_event=sport_event,
            market_id=market_id,
            specifiers=specifiers,
            exception_strategy=self.exception_strategy,
        )
