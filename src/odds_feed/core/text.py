from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

SPECIFIERS_DELIMITER = "|"


def normalize_locale(value: str) -> str:
    """Normalize a locale tag for stable dictionary lookups (``EN-gb`` -> ``en-gb``)."""

    return value.strip().replace("_", "-").lower()


def localized(names: Mapping[str, str], locale: str) -> str | None:
    """Look up a localized value, falling back from ``en-gb`` to ``en``."""

    if not names:
        return None
    wanted = normalize_locale(locale)
    for key, value in names.items():
        if normalize_locale(key) == wanted:
            return value
    language = wanted.split("-", 1)[0]
    for key, value in names.items():
        if normalize_locale(key) == language:
            return value
    return None


def specifiers_to_string(specifiers: Mapping[str, str] | None) -> str:
    if specifiers is None:
        return "null"
    return SPECIFIERS_DELIMITER.join(f"{k}={v}" for k, v in specifiers.items())


def format_decimal(value: Decimal) -> str:
    """Plain (non-scientific) rendering of a decimal without trailing zeros (`2.50` -> `2.5`, `1E+3` -> `1000`)."""

    if value.is_zero():
        return "0"
    return format(value.normalize(), "f")


def decimal_with_sign(value: Decimal) -> str:
    if value > 0:
        return f"+{format_decimal(value)}"
    if value < 0:
        return format_decimal(value)
    return "0"


def ordinal(value: int) -> str:
    """English ordinal rendering: 1st, 2nd, 3rd, 4th, 11th, 21st, ..."""

    if 10 <= abs(value) % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(abs(value) % 10, "th")
    return f"{value}{suffix}"
