from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import assert_never

from odds_feed.caching.protocols import ProfileCache
from odds_feed.common.enums import ExpressionOperator
from odds_feed.common.errors import (
    CacheItemNotFoundError,
    CommunicationError,
    NameExpressionError,
    UnsupportedOperandError,
)
from odds_feed.common.urn import Urn
from odds_feed.core.text import decimal_with_sign, ordinal
from odds_feed.entities.sport_event import Competition, Match, SportEvent
from odds_feed.markets.operands import Operand, build_operand

COMPETITOR1 = "competitor1"
COMPETITOR2 = "competitor2"
EVENT = "event"


@dataclass(frozen=True)
class CardinalExpression:
    """`{name}` / `{(name+1)}`: the operand value as is."""

    operand: Operand

    async def build_name(self, locale: str) -> str:
        return self.operand.get_string_value()


@dataclass(frozen=True)
class PlusExpression:
    """`{+name}`: the value with an explicit sign (`+1.5`, `-1.5`, `0`)."""

    operand: Operand

    async def build_name(self, locale: str) -> str:
        return decimal_with_sign(self.operand.get_decimal_value())


@dataclass(frozen=True)
class MinusExpression:
    """`{-name}`: the negated value with an explicit sign."""

    operand: Operand

    async def build_name(self, locale: str) -> str:
        return decimal_with_sign(-self.operand.get_decimal_value())


@dataclass(frozen=True)
class OrdinalExpression:
    """`{!name}`: the integer value as an ordinal (`1st`, `2nd`, ...)."""

    operand: Operand

    async def build_name(self, locale: str) -> str:
        return ordinal(self.operand.get_int_value())


@dataclass(frozen=True)
class EntityExpression:
    """`{$competitor1}`, `{$competitor2}` or `{$event}`."""

    property_name: str
    sport_event: SportEvent
    profile_cache: ProfileCache

    async def build_name(self, locale: str) -> str:
        if self.property_name == COMPETITOR1:
            return await self._competitor_name(0, locale)
        if self.property_name == COMPETITOR2:
            return await self._competitor_name(1, locale)
        if self.property_name == EVENT:
            return await self._event_name(locale)
        raise UnsupportedOperandError(
            f"Operand {self.property_name} is not supported. "
            f"Supported operands are: {COMPETITOR1}, {COMPETITOR2}, {EVENT}"
        )

    async def _event_name(self, locale: str) -> str:
        if isinstance(self.sport_event, Match):
            home = await self._competitor_name(0, locale)
            away = await self._competitor_name(1, locale)
            return f"{home} vs {away}"
        name = await self.sport_event.get_name(locale)
        if not name:
            raise NameExpressionError(
                f"Sport event {self.sport_event.id} has no name for locale {locale}"
            )
        return name

    async def _competitor_name(self, index: int, locale: str) -> str:
        if not isinstance(self.sport_event, Competition):
            raise NameExpressionError(
                f"Operand {self.property_name} requires a sport event with competitors, "
                f"got {type(self.sport_event).__name__}"
            )
        competitor_ids = await self.sport_event.get_competitor_ids(locale)
        if len(competitor_ids) < 2:
            raise NameExpressionError(
                f"Sport event {self.sport_event.id} must have two competitors, "
                f"found {len(competitor_ids)}"
            )

        try:
            name = await self.profile_cache.get_competitor_name(competitor_ids[index], locale, False)
        except (CacheItemNotFoundError, CommunicationError) as e:
            raise NameExpressionError(f"Error resolving name of {competitor_ids[index]}") from e
        if name:
            return name

        # Profile not cached yet; use what the sport event itself knows.
        for competitor in await self.sport_event.get_competitors():
            if competitor.id == competitor_ids[index]:
                name = competitor.get_name(locale)
                break
        if not name:
            raise NameExpressionError(
                f"Name of competitor {competitor_ids[index]} is not available for locale {locale}"
            )
        return name


@dataclass(frozen=True)
class PlayerProfileExpression:
    """`{%player}`: the specifier holds a player/competitor URN."""

    profile_cache: ProfileCache
    operand: Operand

    async def build_name(self, locale: str) -> str:
        raw = self.operand.get_string_value()
        urn = Urn.try_parse(raw)
        if urn is None:
            raise NameExpressionError(f"Value '{raw}' of operand is not a valid URN")

        try:
            if urn.is_player:
                name = await self.profile_cache.get_player_name(urn, locale, True)
            elif urn.is_competitor:
                name = await self.profile_cache.get_competitor_name(urn, locale, True)
            else:
                raise UnsupportedOperandError(
                    f"Operand {urn} is neither a player nor a competitor identifier"
                )
        except (CacheItemNotFoundError, CommunicationError) as e:
            raise NameExpressionError(f"Error resolving profile name of {urn}") from e

        if not name:
            raise NameExpressionError(f"Profile {urn} has no name for locale {locale}")
        return name


NameExpression = (
    CardinalExpression
    | PlusExpression
    | MinusExpression
    | OrdinalExpression
    | EntityExpression
    | PlayerProfileExpression
)


@dataclass(frozen=True)
class NameExpressionFactory:
    profile_cache: ProfileCache

    def build_expression(
        self,
        sport_event: SportEvent,
        specifiers: Mapping[str, str],
        operator: ExpressionOperator | None,
        operand: str,
    ) -> NameExpression:
        """
        Raises NameDescriptorFormatError for malformed operands. Entity operands
        are names of sport event properties, not specifier lookups.
        """

        if operator is None:
            return CardinalExpression(build_operand(specifiers, operand))

        match operator:
            case ExpressionOperator.PLUS:
                return PlusExpression(build_operand(specifiers, operand))
            case ExpressionOperator.MINUS:
                return MinusExpression(build_operand(specifiers, operand))
            case ExpressionOperator.ORDINAL:
                return OrdinalExpression(build_operand(specifiers, operand))
            case ExpressionOperator.ENTITY:
                return EntityExpression(operand, sport_event, self.profile_cache)
            case ExpressionOperator.PLAYER_PROFILE:
                return PlayerProfileExpression(self.profile_cache, build_operand(specifiers, operand))
            case _:
                assert_never(operator)
