"""Tests for the keypad coordinator."""

from __future__ import annotations

import math

import pytest

import config
from coordinator import (
    KEYS,
    InputMode,
    KeypadState,
    display,
    format_number,
    parse_literal,
    press,
    press_backspace,
    press_decimal,
    press_digit,
    press_operator,
    press_sequence,
    press_stack_op,
)
from engine import RegisterStack, UnknownOperationError


def _keys(*keys: str) -> KeypadState:
    return press_sequence(KeypadState(), keys)


def _registers(state: KeypadState) -> dict[str, float]:
    return state.calculator.stack.as_dict()


# ===================================================================
# Literals
# ===================================================================

class TestParseLiteral:

    @pytest.mark.parametrize("entry", ["", "."])
    def test_empty_reads_zero(self, entry):
        assert parse_literal(entry) == 0.0

    def test_decimal(self):
        assert parse_literal("12.5") == 12.5

    def test_trailing_point(self):
        assert parse_literal("3.") == 3.0

    def test_overflow_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            parse_literal("9" * 400)


class TestFormatNumber:

    @pytest.mark.parametrize(
        "value, text",
        [
            (998001.0, "998001"),
            (3.5, "3.5"),
            (-2.0, "-2"),
            (-0.0, "0"),
            (1e20, "1e+20"),
            (float("inf"), "inf"),
        ],
    )
    def test_format(self, value, text):
        assert format_number(value) == text


# ===================================================================
# Digits  (KEY-START, KEY-APPEND, KEY-LIFT, KEY-FULL)
# ===================================================================

class TestDigits:

    def test_initial_keypad(self, keypad):
        assert keypad.mode is InputMode.IDLE
        assert keypad.entry == ""
        assert keypad.error is None
        assert display(keypad) == {"t": "0", "z": "0", "y": "0", "x": "0"}

    def test_key_start_overwrites_x(self):
        """Branch: KEY-START: first digit replaces X without lifting."""
        state = _keys("3", "enter", "4")
        assert _registers(state) == {"t": 0, "z": 0, "y": 3, "x": 4}
        assert state.mode is InputMode.ENTERING

    def test_key_append(self):
        """Branch: KEY-APPEND: digits extend the literal."""
        state = _keys("1", "2")
        assert state.entry == "12"
        assert state.calculator.stack.x == 12

    def test_leading_zero_replaced(self):
        state = _keys("0", "5")
        assert state.entry == "5"
        assert state.calculator.stack.x == 5

    def test_key_lift_after_operation(self):
        """Branch: KEY-LIFT: digit after an operator pushes the result up."""
        state = _keys("3", "enter", "4", "+", "5")
        assert _registers(state) == {"t": 0, "z": 0, "y": 7, "x": 5}

    def test_key_full_ignores_digit(self, monkeypatch):
        """Branch: KEY-FULL: literal at its length limit ignores digits."""
        monkeypatch.setattr(config, "MAX_LITERAL_LENGTH", 3)
        state = _keys("1", "2", "3", "4")
        assert state.entry == "123"
        assert state.calculator.stack.x == 123

    def test_overflowing_digit_ignored(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_LITERAL_LENGTH", 500)
        state = press_sequence(KeypadState(), ["9"] * 400)
        assert len(state.entry) == 308
        assert math.isfinite(state.calculator.stack.x)

    def test_press_digit_rejects_non_digit(self, keypad):
        with pytest.raises(UnknownOperationError):
            press_digit(keypad, "a")
        with pytest.raises(UnknownOperationError):
            press_digit(keypad, "12")

    def test_display_shows_literal(self):
        state = _keys("1", "2")
        assert display(state)["x"] == "12"


# ===================================================================
# Decimal point  (DOT-DUP)
# ===================================================================

class TestDecimal:

    def test_fraction(self):
        state = _keys("1", ".", "5")
        assert state.calculator.stack.x == 1.5
        assert state.entry == "1.5"

    def test_leading_point(self):
        state = press_decimal(KeypadState())
        assert state.entry == "0."
        assert state.calculator.stack.x == 0.0
        assert display(state)["x"] == "0."
        assert press_digit(state, "2").calculator.stack.x == 0.2

    def test_dot_dup_ignored(self):
        """Branch: DOT-DUP: a second point is ignored."""
        state = _keys("1", ".", "5", ".")
        assert state.entry == "1.5"
        assert _keys("1", ".", "5", ".", "2").calculator.stack.x == 1.52

    def test_point_after_operation_lifts(self):
        state = _keys("3", "enter", "4", "+", ".", "5")
        assert state.calculator.stack.y == 7
        assert state.calculator.stack.x == 0.5


# ===================================================================
# Backspace  (BKSP-IDLE, BKSP-EMPTY)
# ===================================================================

class TestBackspace:

    def test_trims_last_character(self):
        state = _keys("1", "2", "backspace")
        assert state.entry == "1"
        assert state.calculator.stack.x == 1

    def test_bksp_empty_reads_zero(self):
        """Branch: BKSP-EMPTY: emptied literal leaves X at 0, still typing."""
        state = _keys("5", "enter", "1", "backspace")
        assert state.entry == ""
        assert state.mode is InputMode.ENTERING
        assert state.calculator.stack.x == 0
        assert display(state)["x"] == "0"

    def test_typing_after_empty_does_not_lift(self):
        state = _keys("5", "enter", "1", "⌫", "7")
        assert _registers(state) == {"t": 0, "z": 0, "y": 5, "x": 7}

    def test_bksp_idle_noop(self):
        """Branch: BKSP-IDLE: nothing being typed, nothing changes."""
        state = _keys("3", "enter")
        assert press_backspace(state) == state

    def test_after_operation_noop(self):
        state = _keys("3", "enter", "4", "+")
        assert press_backspace(state) == state


# ===================================================================
# Enter and stack keys
# ===================================================================

class TestEnterAndStackKeys:

    def test_enter_commits_and_duplicates(self):
        state = _keys("3", "enter")
        assert state.mode is InputMode.IDLE
        assert state.entry == ""
        assert _registers(state) == {"t": 0, "z": 0, "y": 3, "x": 3}

    def test_enter_twice(self):
        state = _keys("3", "enter", "enter")
        assert _registers(state) == {"t": 0, "z": 3, "y": 3, "x": 3}

    def test_swap_then_digit_lifts(self):
        state = _keys("3", "enter", "4", "swap", "5")
        assert _registers(state) == {"t": 0, "z": 4, "y": 3, "x": 5}

    def test_stack_keys_set_post_operation(self):
        for key in ("swap", "drop", "last_x"):
            state = _keys("1", key)
            assert state.pending_lift, key

    def test_empty_stack_keys(self):
        for key in ("swap", "drop", "last_x", "backspace"):
            state = _keys(key)
            assert _registers(state) == {"t": 0, "z": 0, "y": 0, "x": 0}

    def test_last_x_after_add(self):
        state = _keys("3", "enter", "4", "+", "last_x")
        assert state.calculator.stack.x == 4
        assert state.calculator.stack.y == 7

    def test_clear_resets_everything(self):
        state = _keys("3", "enter", "4", "+", "clear")
        assert state == KeypadState()
        assert state.calculator.last_x is None

    def test_press_stack_op_enter_and_clear(self):
        state = _keys("2")
        assert press_stack_op(state, "enter").mode is InputMode.IDLE
        assert press_stack_op(state, "clear") == KeypadState()

    def test_press_stack_op_unknown(self, keypad):
        with pytest.raises(UnknownOperationError):
            press_stack_op(keypad, "roll")


# ===================================================================
# Operators  (OP-REJECTED)
# ===================================================================

class TestOperators:

    @pytest.mark.parametrize(
        "keys, expected",
        [
            (["3", "enter", "4", "+"], 7),
            (["1", "5", "enter", "3", "/"], 5),
            (["9", "9", "9", "enter", "9", "9", "9", "*"], 998001),
            (["1", "0", "enter", "3", "-"], 7),
            (["1", "0", "enter", "3", "−"], 7),
            (["6", "enter", "7", "×"], 42),
            (["8", "enter", "2", "÷"], 4),
        ],
    )
    def test_worked_examples(self, keys, expected):
        state = press_sequence(KeypadState(), keys)
        assert state.calculator.stack.x == expected
        assert state.mode is InputMode.POST_OPERATION

    def test_single_number_combines_with_zero(self):
        assert _keys("5", "+").calculator.stack.x == 5

    def test_op_rejected_division_by_zero(self):
        """Branch: OP-REJECTED: registers kept, error recorded."""
        before = _keys("8", "enter", "0")
        after = press_operator(before, "divide")
        assert after.calculator == before.calculator
        assert after.mode is before.mode
        assert after.entry == before.entry
        assert after.error == "Division by zero"

    def test_usable_after_rejection(self):
        state = _keys("8", "enter", "0", "/", "clear", "8", "enter", "5", "+")
        assert state.calculator.stack.x == 13
        assert state.error is None

    def test_next_key_clears_error(self):
        state = _keys("8", "enter", "0", "/", "backspace")
        assert state.error is None
        assert state.calculator.stack.y == 8

    def test_chained_expression(self):
        # (3 + 4) * (5 - 1)
        state = _keys("3", "enter", "4", "+", "5", "enter", "1", "-", "*")
        assert state.calculator.stack.x == 28
        assert state.calculator.last_x == 4


# ===================================================================
# Key names
# ===================================================================

class TestKeyNames:

    def test_unknown_key(self, keypad):
        with pytest.raises(UnknownOperationError, match="sqrt"):
            press(keypad, "sqrt")

    def test_unknown_key_mid_sequence(self, keypad):
        with pytest.raises(UnknownOperationError):
            press_sequence(keypad, ["1", "bogus", "2"])

    def test_every_named_key_is_callable(self):
        for key in KEYS:
            press(KeypadState(), key)

    def test_state_is_plain_data(self):
        state = _keys("4", "2")
        assert state.calculator.stack == RegisterStack(x=42)
