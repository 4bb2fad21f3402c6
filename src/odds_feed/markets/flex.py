from __future__ import annotations

from collections.abc import Mapping

from odds_feed.common.errors import NameExpressionError

SCORE_SPECIFIER = "score"


def _parse_score(value: str, what: str) -> tuple[int, int]:
    parts = value.split(":")
    if len(parts) != 2:
        raise NameExpressionError(f"{what} '{value}' is not a valid score (expected 'home:away')")
    try:
        return int(parts[0].strip()), int(parts[1].strip())
    except ValueError as e:
        raise NameExpressionError(f"{what} '{value}' is not a valid score (expected 'home:away')") from e


def get_flex_score_name(name_descriptor: str, specifiers: Mapping[str, str] | None) -> str:
    """Name of a flex-score outcome.

    Outcome descriptors of flex markets are scores relative to the current score
    (`score` specifier): outcome `1:0` with `score=1:1` is named `2:1`.
    """

    score = (specifiers or {}).get(SCORE_SPECIFIER)
    if score is None:
        raise NameExpressionError(
            f"Flex score market is missing the required '{SCORE_SPECIFIER}' specifier"
        )
    home, away = _parse_score(score, "Specifier")
    outcome_home, outcome_away = _parse_score(name_descriptor, "Outcome descriptor")
    return f"{outcome_home + home}:{outcome_away + away}"
