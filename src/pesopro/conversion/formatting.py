"""Amount parsing and display formatting.

Display rules:
- Computed (non-edited) amounts: thousands grouping, 0-2 fraction digits.
- The actively edited amount: exactly what was typed, with the integer
  part grouped and a just-typed trailing decimal point preserved.
- Editing text for a computed amount (after a side switch): up to 10
  fraction digits with trailing zeros stripped.
"""

import math
import re

from pesopro.exceptions import InvalidInput

_TRAILING_ZEROS = re.compile(r"\.?0+$")


def parse_amount_strict(text: str) -> float:
    """Parse amount text as a finite float.

    Raises:
        InvalidInput: Empty, non-numeric or non-finite text.
    """
    try:
        value = float(text)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"Not a number: {text!r}") from exc
    if not math.isfinite(value):
        raise InvalidInput(f"Not a finite number: {text!r}")
    return value


def parse_amount(text: str) -> float:
    """Parse amount text, treating anything unparseable as zero."""
    try:
        return parse_amount_strict(text)
    except InvalidInput:
        return 0.0


def format_amount(value: float) -> str:
    """Group thousands and show at most two fraction digits (1234.5 -> "1,234.5")."""
    if value == 0:
        return "0"
    text = f"{value:,.2f}"
    return text.rstrip("0").rstrip(".")


def format_input_display(text: str) -> str:
    """Group the integer part of edited text, keeping the fraction as typed."""
    int_part, sep, fraction = text.partition(".")
    try:
        grouped = f"{int(int_part or '0'):,}"
    except ValueError:
        grouped = "0"
    return f"{grouped}{sep}{fraction}"


def format_input_value(value: float) -> str:
    """Editing text for a computed amount: 10 decimals, trailing zeros stripped."""
    if value == 0:
        return "0"
    return _TRAILING_ZEROS.sub("", f"{value:.10f}")


def format_inverse_rate(rate: float) -> str:
    """Label showing what one peso buys, e.g. ``1 MXN ≈ 0.0513 USD``."""
    inverse = 1 / rate if rate else 0.0
    return f"1 MXN ≈ {inverse:.4f} USD"


def quick_table(rate: float, amounts: list[int]) -> list[tuple[int, str]]:
    """Whole-peso equivalents for a list of dollar amounts."""
    return [(amount, f"{amount * rate:.0f}") for amount in amounts]
