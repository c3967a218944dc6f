"""Bidirectional USD/MXN conversion as an explicit state machine.

The converter state is a frozen ConverterState; every keypad press, side
switch or rate update is an event, and ``transition(state, event)`` returns
the next state. ConversionEngine is the stateful wrapper a session holds.

Only the active side's text is stored. The other side is always derived:
    base active  -> quote = raw * rate
    quote active -> base  = raw / rate
"""

import re
from dataclasses import dataclass, replace

from pesopro.conversion.formatting import (
    format_amount,
    format_input_display,
    format_input_value,
    format_inverse_rate,
    parse_amount,
)
from pesopro.exceptions import InvalidKeyError
from pesopro.models import BASE_CURRENCY, QUOTE_CURRENCY, AmountPair, Currency

DEFAULT_INPUT = "10"
DEFAULT_MAX_INPUT_LENGTH = 10

_DIGITS = frozenset("0123456789")
#: "0.5", "0.50": a computed small value that a fresh digit should replace
_SMALL_DECIMAL = re.compile(r"^0\.\d+$")


@dataclass(frozen=True)
class ConverterState:
    """Snapshot of one converter session."""

    rate: float
    raw_input: str = DEFAULT_INPUT
    active_side: Currency = QUOTE_CURRENCY
    max_input_length: int = DEFAULT_MAX_INPUT_LENGTH

    def __post_init__(self) -> None:
        if not self.rate > 0:
            raise ValueError(f"Conversion requires a positive rate, got {self.rate!r}")


@dataclass(frozen=True)
class AppendDigit:
    key: str


@dataclass(frozen=True)
class DeleteLast:
    pass


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class SwitchSide:
    side: Currency


@dataclass(frozen=True)
class SetRate:
    rate: float


ConverterEvent = AppendDigit | DeleteLast | Clear | SwitchSide | SetRate


def append_key(text: str, key: str, max_length: int = DEFAULT_MAX_INPUT_LENGTH) -> str:
    """Apply one keypad key to the edited text.

    Raises:
        InvalidKeyError: key is neither a digit nor ".".
    """
    if key not in _DIGITS and key != ".":
        raise InvalidKeyError(f"Unsupported key: {key!r}")
    if text == "0" and key != ".":
        return key
    if key != "." and _SMALL_DECIMAL.match(text):
        return key
    if key == "." and "." in text:
        return text
    if len(text) + 1 > max_length:
        return text
    return text + key


def delete_last(text: str) -> str:
    """Drop the last character; an emptied field reads "0"."""
    return text[:-1] or "0"


def current_amounts(state: ConverterState) -> AmountPair:
    """Derive both amounts from the edited text and the rate."""
    raw = parse_amount(state.raw_input)
    if state.active_side == BASE_CURRENCY:
        return AmountPair(base_amount=raw, quote_amount=raw * state.rate, active_side=BASE_CURRENCY)
    return AmountPair(base_amount=raw / state.rate, quote_amount=raw, active_side=QUOTE_CURRENCY)


def transition(state: ConverterState, event: ConverterEvent) -> ConverterState:
    """Return the state that follows ``event``. Never mutates ``state``."""
    if isinstance(event, AppendDigit):
        return replace(
            state,
            raw_input=append_key(state.raw_input, event.key, state.max_input_length),
        )
    if isinstance(event, DeleteLast):
        return replace(state, raw_input=delete_last(state.raw_input))
    if isinstance(event, Clear):
        return replace(state, raw_input="0")
    if isinstance(event, SwitchSide):
        if event.side == state.active_side:
            return state
        # Carry the other side's current value over so the number stays continuous
        amounts = current_amounts(state)
        return replace(
            state,
            raw_input=format_input_value(amounts.amount_for(event.side)),
            active_side=event.side,
        )
    if isinstance(event, SetRate):
        return replace(state, rate=event.rate)
    raise TypeError(f"Unknown converter event: {event!r}")


@dataclass(frozen=True)
class ConverterDisplay:
    """Strings ready for rendering both amount fields."""

    usd: str
    mxn: str
    active_side: Currency
    inverse_rate_label: str


class ConversionEngine:
    """Stateful converter session built on ``transition``.

    Args:
        rate: Initial positive rate (MXN per USD).
        default_input: Text the session starts (and resets) with.
        default_side: Side being edited at session start.
        max_input_length: Maximum characters in the edited text.
    """

    def __init__(
        self,
        rate: float,
        default_input: str = DEFAULT_INPUT,
        default_side: Currency = QUOTE_CURRENCY,
        max_input_length: int = DEFAULT_MAX_INPUT_LENGTH,
    ) -> None:
        self._default_input = default_input
        self._default_side = default_side
        self._state = ConverterState(
            rate=rate,
            raw_input=default_input,
            active_side=default_side,
            max_input_length=max_input_length,
        )

    @property
    def state(self) -> ConverterState:
        return self._state

    @property
    def rate(self) -> float:
        return self._state.rate

    @property
    def active_side(self) -> Currency:
        return self._state.active_side

    @property
    def raw_input(self) -> str:
        return self._state.raw_input

    def dispatch(self, event: ConverterEvent) -> ConverterState:
        self._state = transition(self._state, event)
        return self._state

    def append_digit(self, key: str) -> ConverterState:
        return self.dispatch(AppendDigit(key))

    def append_keys(self, keys: str) -> ConverterState:
        """Apply keys in order, all or nothing.

        Raises:
            InvalidKeyError: Any key is invalid. The state is left unchanged.
        """
        state = self._state
        for key in keys:
            state = transition(state, AppendDigit(key))
        self._state = state
        return state

    def delete_last(self) -> ConverterState:
        return self.dispatch(DeleteLast())

    def clear(self) -> ConverterState:
        return self.dispatch(Clear())

    def switch_active_side(self, side: Currency) -> ConverterState:
        return self.dispatch(SwitchSide(side))

    def set_rate(self, rate: float) -> ConverterState:
        """Adopt a newer rate without disturbing the text being edited."""
        if not rate > 0:
            raise ValueError(f"Conversion requires a positive rate, got {rate!r}")
        return self.dispatch(SetRate(rate))

    def reset(self) -> ConverterState:
        """Return to the session defaults, keeping the current rate."""
        self._state = replace(
            self._state,
            raw_input=self._default_input,
            active_side=self._default_side,
        )
        return self._state

    def current_amounts(self) -> AmountPair:
        return current_amounts(self._state)

    def display(self) -> ConverterDisplay:
        """Render both fields: the edited one as typed, the other computed."""
        amounts = self.current_amounts()
        edited = format_input_display(self._state.raw_input)
        if self._state.active_side == BASE_CURRENCY:
            usd, mxn = edited, format_amount(amounts.quote_amount)
        else:
            usd, mxn = format_amount(amounts.base_amount), edited
        return ConverterDisplay(
            usd=usd,
            mxn=mxn,
            active_side=self._state.active_side,
            inverse_rate_label=format_inverse_rate(self._state.rate),
        )
