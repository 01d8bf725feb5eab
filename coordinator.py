"""Keypad input coordinator.

Sits between a keypad (buttons, HTTP keys, a test) and the engine.  It
owns the typed literal and the input mode, and turns each keystroke into
at most two engine transitions.

Modes
-----
IDLE            nothing typed; the next digit overwrites X
ENTERING        a literal is being typed; X mirrors it after every key
POST_OPERATION  an operation just finished; the next digit lifts first

Like the engine, every function here is pure: it takes a ``KeypadState``
and returns a new one.  The caller decides where the current state lives.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import partial
from typing import Callable, Iterable

import config
from engine import (
    CalculatorState,
    DivisionByZeroError,
    MathOperation,
    StackOperation,
    UnknownOperationError,
    create_initial_state,
    enter,
    perform_math_operation,
    perform_stack_operation,
    set_x,
)
from logging_config import get_logger

log = get_logger("coordinator")

DIGITS = "0123456789"


class InputMode(str, Enum):
    IDLE = "idle"
    ENTERING = "entering"
    POST_OPERATION = "post_operation"


@dataclass(frozen=True)
class KeypadState:
    calculator: CalculatorState = field(default_factory=create_initial_state)
    mode: InputMode = InputMode.IDLE
    entry: str = ""
    error: str | None = None

    @property
    def pending_lift(self) -> bool:
        return self.mode is InputMode.POST_OPERATION


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------

def parse_literal(entry: str) -> float:
    """Convert a typed literal to a register value.

    An empty literal or a bare point reads as 0.  Raises ValueError for
    anything that does not give a finite number.
    """
    if entry in ("", "."):
        return 0.0
    value = float(entry)
    if not math.isfinite(value):
        raise ValueError(f"literal {entry!r} is not a finite number")
    return value


def _extend(entry: str, char: str) -> str:
    if char == ".":
        return (entry or "0") + "."
    if entry == "0":
        return char
    return entry + char


def format_number(value: float) -> str:
    """Render a register value without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def display(state: KeypadState) -> dict[str, str]:
    """Register name -> text, X showing the raw literal while typing."""
    shown = {name: format_number(v) for name, v in state.calculator.stack.as_dict().items()}
    if state.mode is InputMode.ENTERING and state.entry:
        shown["x"] = state.entry
    return shown


# ---------------------------------------------------------------------------
# Keystrokes
# ---------------------------------------------------------------------------

def _type(state: KeypadState, char: str) -> KeypadState:
    """Branches: KEY-LIFT, KEY-START, KEY-APPEND, KEY-FULL"""
    calc = state.calculator
    if state.mode is InputMode.ENTERING:                          # KEY-APPEND
        if len(state.entry) >= config.MAX_LITERAL_LENGTH:         # KEY-FULL
            log.debug("Literal at %d characters, ignoring %r",
                      config.MAX_LITERAL_LENGTH, char)
            return replace(state, error=None)
        entry = _extend(state.entry, char)
    else:
        if state.mode is InputMode.POST_OPERATION:                # KEY-LIFT
            calc = enter(calc)
        entry = _extend("", char)                                 # KEY-START

    try:
        value = parse_literal(entry)
    except ValueError as e:
        log.warning("Ignoring %r: %s", char, e)
        return state

    return KeypadState(
        calculator=set_x(calc, value),
        mode=InputMode.ENTERING,
        entry=entry,
    )


def press_digit(state: KeypadState, digit: str) -> KeypadState:
    if len(digit) != 1 or digit not in DIGITS:
        raise UnknownOperationError("digit", digit)
    return _type(state, digit)


def press_decimal(state: KeypadState) -> KeypadState:
    """Branches: DOT-DUP"""
    if state.mode is InputMode.ENTERING and "." in state.entry:  # DOT-DUP
        log.debug("Literal %r already has a decimal point", state.entry)
        return replace(state, error=None)
    return _type(state, ".")


def press_backspace(state: KeypadState) -> KeypadState:
    """Trim the literal being typed.

    Branches: BKSP-IDLE, BKSP-EMPTY
    """
    if state.mode is not InputMode.ENTERING:                      # BKSP-IDLE
        return replace(state, error=None)

    entry = state.entry[:-1]
    if not entry:                                                 # BKSP-EMPTY
        log.debug("Literal emptied, X reads 0")
    return KeypadState(
        calculator=set_x(state.calculator, parse_literal(entry)),
        mode=InputMode.ENTERING,
        entry=entry,
    )


def press_enter(state: KeypadState) -> KeypadState:
    """Commit the literal (if any) and duplicate X into Y."""
    return KeypadState(calculator=enter(state.calculator), mode=InputMode.IDLE)


def press_clear(state: KeypadState) -> KeypadState:
    return KeypadState()


def press_operator(state: KeypadState, operation: MathOperation | str) -> KeypadState:
    """Run an arithmetic operator on the committed registers.

    Branches: OP-REJECTED
    """
    try:
        calc = perform_math_operation(state.calculator, operation)
    except DivisionByZeroError as e:                              # OP-REJECTED
        log.warning("Rejected %s: %s", MathOperation(operation).value, e)
        return replace(state, error=e.message)
    return KeypadState(calculator=calc, mode=InputMode.POST_OPERATION)


def press_stack_op(state: KeypadState, operation: StackOperation | str) -> KeypadState:
    try:
        op = StackOperation(operation)
    except ValueError:
        raise UnknownOperationError("stack operation", operation) from None

    if op is StackOperation.ENTER:
        return press_enter(state)
    if op is StackOperation.CLEAR:
        return press_clear(state)
    return KeypadState(
        calculator=perform_stack_operation(state.calculator, op),
        mode=InputMode.POST_OPERATION,
    )


# ---------------------------------------------------------------------------
# Key names
# ---------------------------------------------------------------------------

KeyHandler = Callable[[KeypadState], KeypadState]

KEYS: dict[str, KeyHandler] = {d: partial(press_digit, digit=d) for d in DIGITS}
KEYS.update({
    ".": press_decimal,
    "enter": press_enter,
    "backspace": press_backspace,
    "⌫": press_backspace,
    "clear": press_clear,
})
for _op in (StackOperation.SWAP, StackOperation.DROP, StackOperation.LAST_X):
    KEYS[_op.value] = partial(press_stack_op, operation=_op)
for _op, _symbols in (
    (MathOperation.ADD, ("+",)),
    (MathOperation.SUBTRACT, ("-", "−")),
    (MathOperation.MULTIPLY, ("*", "×")),
    (MathOperation.DIVIDE, ("/", "÷")),
):
    for _key in (_op.value, *_symbols):
        KEYS[_key] = partial(press_operator, operation=_op)
del _op, _symbols, _key


def press(state: KeypadState, key: str) -> KeypadState:
    """Apply one named key. Unknown keys raise UnknownOperationError."""
    try:
        handler = KEYS[key]
    except (KeyError, TypeError):
        raise UnknownOperationError("key", key) from None
    return handler(state)


def press_sequence(state: KeypadState, keys: Iterable[str]) -> KeypadState:
    for key in keys:
        state = press(state, key)
    return state
