"""
Computed cell values.

A cell's computed value is exactly one of:
  TextValue   - plain text passed through unchanged
  NumberValue - result of a formula
  ErrorValue  - a formula raised while evaluating (shown as ERROR)
"""

import math
import re
from dataclasses import dataclass
from typing import Optional, Union

ERROR_MARKER = "ERROR"

# Decimal literal prefix, the way a browser's parseFloat reads text
_DECIMAL_PREFIX = re.compile(
    r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)",
    re.ASCII,
)


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class NumberValue:
    number: float


@dataclass(frozen=True)
class ErrorValue:
    marker: str = ERROR_MARKER


CellValue = Union[TextValue, NumberValue, ErrorValue]


def parse_float_prefix(text: str) -> Optional[float]:
    """
    Read the longest decimal literal at the start of text.

    Leading whitespace is skipped and trailing garbage ignored ("12abc" -> 12.0).
    Returns None when no numeric prefix exists ("abc", "", "-").
    """
    match = _DECIMAL_PREFIX.match(text.lstrip())
    if not match:
        return None
    return float(match.group(0))


def format_number(number: float) -> str:
    """Format a number the way the browser editor displayed it (780, not 780.0)."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    text = repr(number)
    if "e" in text:
        mantissa, exponent = text.split("e")
        power = int(exponent)
        text = f"{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"
    return text


def format_value(value: CellValue) -> str:
    if isinstance(value, TextValue):
        return value.text
    if isinstance(value, NumberValue):
        return format_number(value.number)
    if isinstance(value, ErrorValue):
        return value.marker
    raise TypeError(f"Unexpected cell value: {value!r}")


def value_to_json(value: Optional[CellValue]):
    """JSON-friendly form: text stays text, finite numbers stay numbers, the rest become strings."""
    if value is None:
        return None
    if isinstance(value, NumberValue) and math.isfinite(value.number):
        return value.number
    return format_value(value)
