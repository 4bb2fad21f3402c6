from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

from odds_feed.common.enums import ExpressionOperator
from odds_feed.common.errors import NameDescriptorFormatError

_OPEN = "{"
_CLOSE = "}"
_OPERATORS = frozenset(op.value for op in ExpressionOperator)


class ParsedDescriptor(NamedTuple):
    placeholders: list[str]
    format: str

    def render(self, values: Sequence[str]) -> str:
        """Substitute `values` by placeholder position."""

        if len(values) != len(self.placeholders):
            raise ValueError(
                f"Expected {len(self.placeholders)} values, got {len(values)}"
            )
        return self.format.format(*values)


class ParsedExpression(NamedTuple):
    operator: ExpressionOperator | None
    operand: str


def parse_descriptor(descriptor: str) -> ParsedDescriptor:
    """Split a name descriptor into its placeholders and a positional format string.

    `"{$competitor1} to {score}"` becomes `["{$competitor1}", "{score}"]` and
    `"{0} to {1}"`. The format string is assembled from slices of the original
    text, so two placeholders with identical text still get distinct markers.

    Raises NameDescriptorFormatError when a `{` is not closed by a later `}`.
    """

    placeholders: list[str] = []
    parts: list[str] = []
    cursor = 0
    while True:
        start = descriptor.find(_OPEN, cursor)
        end = descriptor.find(_CLOSE, cursor)
        if start < 0 and end < 0:
            break
        if start < 0 or end < 0 or end <= start:
            raise NameDescriptorFormatError(
                f"Format of the descriptor '{descriptor}' is incorrect. "
                "Each opening '{' must be closed by corresponding '}'"
            )
        parts.append(descriptor[cursor:start])
        parts.append(f"{{{len(placeholders)}}}")
        placeholders.append(descriptor[start : end + 1])
        cursor = end + 1

    if not placeholders:
        return ParsedDescriptor(placeholders, descriptor)

    parts.append(descriptor[cursor:])
    return ParsedDescriptor(placeholders, "".join(parts))


def parse_expression(expression: str) -> ParsedExpression:
    """Split a raw placeholder such as `{+total}` into operator and operand."""

    if len(expression) < 3:
        raise NameDescriptorFormatError(
            f"Format of the expression '{expression}' is not correct. Minimum required length is 3"
        )
    if expression[0] != _OPEN:
        raise NameDescriptorFormatError(
            f"Format of the expression '{expression}' is not correct. It must start with char '{{'"
        )
    if expression[-1] != _CLOSE:
        raise NameDescriptorFormatError(
            f"Format of the expression '{expression}' is not correct. It must end with char '}}'"
        )

    first = expression[1]
    if first not in _OPERATORS:
        return ParsedExpression(None, expression[1:-1])
    # `{+}` leaves an empty operand; the operand builder rejects it.
    return ParsedExpression(ExpressionOperator(first), expression[2:-1])
