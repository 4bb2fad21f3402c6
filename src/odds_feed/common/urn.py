from __future__ import annotations

import re
from dataclasses import dataclass

from odds_feed.common.enums import ResourceTypeGroup

_urn_re = re.compile(r"\A(?P<prefix>[a-zA-Z]+):(?P<type>[a-zA-Z_]+):(?P<id>-?\d+)\Z")

_TYPE_GROUPS: dict[str, ResourceTypeGroup] = {
    "sport_event": ResourceTypeGroup.MATCH,
    "match": ResourceTypeGroup.MATCH,
    "race_event": ResourceTypeGroup.STAGE,
    "race_tournament": ResourceTypeGroup.STAGE,
    "stage": ResourceTypeGroup.STAGE,
    "competition_group": ResourceTypeGroup.STAGE,
    "season": ResourceTypeGroup.SEASON,
    "tournament": ResourceTypeGroup.TOURNAMENT,
    "h2h_tournament": ResourceTypeGroup.TOURNAMENT,
    "outright": ResourceTypeGroup.TOURNAMENT,
    "simple_tournament": ResourceTypeGroup.BASIC_TOURNAMENT,
    "lottery": ResourceTypeGroup.LOTTERY,
    "draw": ResourceTypeGroup.DRAW,
    "sport": ResourceTypeGroup.OTHER,
    "category": ResourceTypeGroup.OTHER,
    "team": ResourceTypeGroup.OTHER,
    "competitor": ResourceTypeGroup.OTHER,
    "simpleteam": ResourceTypeGroup.OTHER,
    "simple_team": ResourceTypeGroup.OTHER,
    "venue": ResourceTypeGroup.OTHER,
    "player": ResourceTypeGroup.OTHER,
    "referee": ResourceTypeGroup.OTHER,
    "market": ResourceTypeGroup.OTHER,
    "group": ResourceTypeGroup.OTHER,
}

PLAYER_TYPE = "player"
COMPETITOR_TYPES = frozenset({"competitor", "simpleteam", "simple_team"})


@dataclass(frozen=True)
class Urn:
    """Identifier of a feed resource, e.g. ``sr:player:123``."""

    prefix: str
    type: str
    id: int

    @classmethod
    def parse(cls, value: str) -> Urn:
        m = _urn_re.match(value.strip()) if isinstance(value, str) else None
        if m is None:
            raise ValueError(f"Value '{value}' is not a valid URN")
        return cls(prefix=m.group("prefix"), type=m.group("type"), id=int(m.group("id")))

    @classmethod
    def try_parse(cls, value: str) -> Urn | None:
        try:
            return cls.parse(value)
        except ValueError:
            return None

    @property
    def type_group(self) -> ResourceTypeGroup:
        return _TYPE_GROUPS.get(self.type, ResourceTypeGroup.UNKNOWN)

    @property
    def is_player(self) -> bool:
        return self.type == PLAYER_TYPE

    @property
    def is_competitor(self) -> bool:
        return self.type in COMPETITOR_TYPES

    def __str__(self) -> str:
        return f"{self.prefix}:{self.type}:{self.id}"
