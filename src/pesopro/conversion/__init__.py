"""Conversion module: the converter state machine and amount formatting."""

from pesopro.conversion.engine import (
    AppendDigit,
    Clear,
    ConversionEngine,
    ConverterDisplay,
    ConverterState,
    DeleteLast,
    SetRate,
    SwitchSide,
    current_amounts,
    transition,
)
from pesopro.conversion.formatting import (
    format_amount,
    format_input_display,
    format_input_value,
    parse_amount,
    quick_table,
)

__all__ = [
    "AppendDigit",
    "Clear",
    "ConversionEngine",
    "ConverterDisplay",
    "ConverterState",
    "DeleteLast",
    "SetRate",
    "SwitchSide",
    "current_amounts",
    "format_amount",
    "format_input_display",
    "format_input_value",
    "parse_amount",
    "quick_table",
    "transition",
]
