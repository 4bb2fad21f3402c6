from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from odds_feed.core.text import localized

FLEX_SCORE_ATTRIBUTE = "is_flex_score"
VARIANT_SPECIFIER = "variant"


@dataclass(frozen=True)
class OutcomeDescription:
    id: str
    names: Mapping[str, str] = field(default_factory=dict)

    def get_name(self, locale: str) -> str | None:
        return localized(self.names, locale)


@dataclass(frozen=True)
class MarketAttribute:
    name: str
    description: str | None = None


@dataclass(frozen=True)
class MarketDescription:
    """
    Market descriptor as served by the market cache.

    `outcomes` is None when the cache item was built without outcomes, which is
    different from a market that legitimately has an empty outcome list.
    `variant` is set on descriptions of variant markets; caches key them by it.
    """

    id: int
    names: Mapping[str, str] = field(default_factory=dict)
    outcomes: tuple[OutcomeDescription, ...] | None = ()
    attributes: tuple[MarketAttribute, ...] = ()
    variant: str | None = None

    def get_name(self, locale: str) -> str | None:
        return localized(self.names, locale)

    def find_outcome(self, outcome_id: str) -> OutcomeDescription | None:
        for outcome in self.outcomes or ():
            if outcome.id == outcome_id:
                return outcome
        return None

    @property
    def is_flex_score(self) -> bool:
        return any(a.name == FLEX_SCORE_ATTRIBUTE for a in self.attributes)
