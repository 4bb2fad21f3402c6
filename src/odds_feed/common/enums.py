from __future__ import annotations

from enum import Enum, StrEnum


class ExceptionHandlingStrategy(StrEnum):
    CATCH = "catch"
    THROW = "throw"


class ResourceTypeGroup(str, Enum):
    MATCH = "MATCH"
    STAGE = "STAGE"
    TOURNAMENT = "TOURNAMENT"
    BASIC_TOURNAMENT = "BASIC_TOURNAMENT"
    SEASON = "SEASON"
    LOTTERY = "LOTTERY"
    DRAW = "DRAW"
    OTHER = "OTHER"
    UNKNOWN = "UNKNOWN"


class ExpressionOperator(StrEnum):
    """Operators allowed right after the opening brace of a placeholder."""

    PLUS = "+"
    MINUS = "-"
    ENTITY = "$"
    ORDINAL = "!"
    PLAYER_PROFILE = "%"


class SimpleMathOperation(StrEnum):
    ADD = "+"
    SUBTRACT = "-"
