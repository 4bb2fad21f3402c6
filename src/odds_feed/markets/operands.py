from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from odds_feed.common.enums import SimpleMathOperation
from odds_feed.common.errors import NameDescriptorFormatError, NameExpressionError
from odds_feed.core.text import format_decimal

Specifiers = Mapping[str, str]


def _specifier_value(specifiers: Specifiers, name: str) -> str:
    try:
        return specifiers[name]
    except (KeyError, TypeError) as e:
        raise NameExpressionError(f"Specifier with name {name} does not exist") from e


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as e:
        raise NameExpressionError(
            f"Specifier[key={name}, value={raw}] must be a string representation of an int"
        ) from e


def _parse_decimal(name: str, raw: str) -> Decimal:
    try:
        # Unary plus applies the context, so out-of-range exponents fail here.
        value = +Decimal(raw.strip())
    except ArithmeticError as e:
        raise NameExpressionError(
            f"Specifier[key={name}, value={raw}] must be a string representation of a decimal"
        ) from e
    if not value.is_finite():
        raise NameExpressionError(f"Specifier[key={name}, value={raw}] is not a finite number")
    return value


@dataclass(frozen=True)
class SimpleOperand:
    """Looks the operand name up directly in the market specifiers."""

    specifiers: Specifiers
    name: str

    def get_int_value(self) -> int:
        return _parse_int(self.name, _specifier_value(self.specifiers, self.name))

    def get_decimal_value(self) -> Decimal:
        return _parse_decimal(self.name, _specifier_value(self.specifiers, self.name))

    def get_string_value(self) -> str:
        return _specifier_value(self.specifiers, self.name)


@dataclass(frozen=True)
class ExpressionOperand:
    """
    `(name+1)`, `(name-1)`, `(1+name)` or `(1-name)`: one specifier combined with
    an integer literal. `static_value_first` records which side the literal was on,
    which only matters for subtraction.
    """

    specifiers: Specifiers
    name: str
    static_value: int
    operation: SimpleMathOperation
    static_value_first: bool = False

    def _apply(self, value: Decimal) -> Decimal:
        if self.operation is SimpleMathOperation.ADD:
            return value + self.static_value
        if self.static_value_first:
            return self.static_value - value
        return value - self.static_value

    def get_decimal_value(self) -> Decimal:
        value = self.get_specifier_decimal()
        try:
            return self._apply(value)
        except ArithmeticError as e:
            raise NameExpressionError(
                f"Value of operand ({self.name}) is out of range: {self.specifiers[self.name]}"
            ) from e

    def get_int_value(self) -> int:
        value = self.get_decimal_value()
        if value != value.to_integral_value():
            raise NameExpressionError(
                f"Value {format_decimal(value)} of operand ({self.name}) is not an integer"
            )
        return int(value)

    def get_string_value(self) -> str:
        return format_decimal(self.get_decimal_value())

    def get_specifier_decimal(self) -> Decimal:
        return _parse_decimal(self.name, _specifier_value(self.specifiers, self.name))


Operand = SimpleOperand | ExpressionOperand


def _build_expression_operand(specifiers: Specifiers, text: str) -> ExpressionOperand:
    for operation in (SimpleMathOperation.ADD, SimpleMathOperation.SUBTRACT):
        if operation.value in text:
            break
    else:
        raise NameDescriptorFormatError(f"Operand '({text})' does not contain '+' or '-'")

    parts = text.split(operation.value)
    if len(parts) != 2 or not all(p.strip() for p in parts):
        raise NameDescriptorFormatError(
            f"Operand '({text})' must consist of exactly two parts separated by '{operation.value}'"
        )
    left, right = (p.strip() for p in parts)

    left_static = _as_int_literal(left)
    right_static = _as_int_literal(right)
    if (left_static is None) == (right_static is None):
        raise NameDescriptorFormatError(
            f"Operand '({text})' must combine exactly one specifier with one integer literal"
        )

    if left_static is not None:
        return ExpressionOperand(specifiers, right, left_static, operation, static_value_first=True)
    return ExpressionOperand(specifiers, left, int(right), operation)


def _as_int_literal(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def build_operand(specifiers: Specifiers, operand: str) -> Operand:
    """Build the operand for the text between a placeholder's operator and `}`."""

    if not operand:
        raise NameDescriptorFormatError("Operand must not be empty")

    opens = operand.startswith("(")
    closes = operand.endswith(")")
    if opens and closes and len(operand) > 1:
        return _build_expression_operand(specifiers, operand[1:-1])
    if opens or closes:
        raise NameDescriptorFormatError(
            f"Format of operand '{operand}' is not correct. Parentheses must be balanced"
        )
    return SimpleOperand(specifiers, operand)
