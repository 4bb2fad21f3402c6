from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from odds_feed.common.urn import Urn
from odds_feed.core.text import localized


@dataclass(frozen=True)
class Competitor:
    id: Urn
    names: Mapping[str, str] = field(default_factory=dict)
    player_ids: tuple[Urn, ...] = ()

    def get_name(self, locale: str) -> str | None:
        return localized(self.names, locale)


@dataclass
class SportEvent:
    """
    Read-only view of a sport event used by name generation.

    Accessors are async so hosts can subclass with lazily loaded data; the
    defaults simply return what the instance was built with.
    """

    id: Urn
    names: Mapping[str, str] = field(default_factory=dict)

    async def get_name(self, locale: str) -> str | None:
        return localized(self.names, locale)


@dataclass
class _HasCompetitors(SportEvent):
    competitors: Sequence[Competitor] = ()

    async def get_competitors(self) -> list[Competitor]:
        return list(self.competitors)

    async def get_competitor_ids(self, locale: str | None = None) -> list[Urn]:
        return [c.id for c in await self.get_competitors()]


@dataclass
class Competition(_HasCompetitors):
    """Sport event with competitors taking part in it (matches, stages)."""


@dataclass
class Match(Competition):
    """Two-competitor event; the first competitor is home, the second away."""


@dataclass
class Stage(Competition):
    pass


@dataclass
class TournamentBase(_HasCompetitors):
    """Long-running events (tournaments, seasons) that list their competitors."""


@dataclass
class Tournament(TournamentBase):
    pass


@dataclass
class BasicTournament(TournamentBase):
    pass


@dataclass
class Season(TournamentBase):
    pass
