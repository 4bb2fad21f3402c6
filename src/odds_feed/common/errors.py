from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


class OddsFeedError(RuntimeError):
    """Base exception for SDK failures."""


class CacheItemNotFoundError(OddsFeedError):
    """The requested item was not found in the cache and could not be loaded."""


class CommunicationError(OddsFeedError):
    """Transport failure while a cache was loading data (timeouts, non-2xx, etc.)."""


class NameDescriptorFormatError(OddsFeedError, ValueError):
    """A name descriptor, placeholder or operand has an incorrect format."""


class NameExpressionError(OddsFeedError):
    """A name expression could not be evaluated."""


class UnsupportedOperandError(NameExpressionError):
    """The operator/operand combination is not supported."""


@dataclass(eq=False)
class NameGenerationError(OddsFeedError):
    """Raised by name providers running in throw mode, whatever the root cause.

    The root cause (if any) is chained as ``__cause__``.
    """

    message: str
    market_id: int
    specifiers: Mapping[str, str] | None = None
    outcome_id: str | None = None
    name_descriptor: str | None = None
    locale: str | None = None
    context: dict[str, object] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__(self.message)
        self.context = {
            "market_id": self.market_id,
            "specifiers": dict(self.specifiers) if self.specifiers is not None else None,
            "outcome_id": self.outcome_id,
            "name_descriptor": self.name_descriptor,
            "locale": self.locale,
        }

    def __str__(self) -> str:
        return f"{self.message} | context={self.context}"
