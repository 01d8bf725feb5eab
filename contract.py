"""Executable contract for the RPN engine transitions.

Each operation is described by:
- rules: predicates over ``(before, after)`` that must hold whenever the
  operation succeeds
- error conditions: predicates over ``before`` that say when the
  operation must raise, and which exception it raises

The contract is machine-readable.  Tests and the counterexample search
iterate over it instead of restating the register arithmetic by hand.

Layers
------
TransitionRule     a named predicate over one transition
ErrorCondition     when an operation must fail
OperationContract  rules + error conditions for one tagged operation
BranchPoint        every decision point that white-box tests must cover
CONTRACTS          the full table, keyed by operation tag
check_transition() runs one operation's rules and returns a report
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

from engine import CalculatorState, DivisionByZeroError


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

Check = Callable[[CalculatorState, CalculatorState], bool]


@dataclass(frozen=True)
class TransitionRule:
    id: str
    name: str
    description: str
    check: Check


@dataclass(frozen=True)
class ErrorCondition:
    name: str
    description: str
    trigger: Callable[[CalculatorState], bool]
    exception: type[Exception]


@dataclass(frozen=True)
class OperationContract:
    name: str
    rules: list[TransitionRule]
    error_conditions: list[ErrorCondition] = field(default_factory=list)

    def should_fail(self, before: CalculatorState) -> ErrorCondition | None:
        for ec in self.error_conditions:
            if ec.trigger(before):
                return ec
        return None


@dataclass(frozen=True)
class BranchPoint:
    """A decision point in the implementation that must be exercised."""

    id: str
    description: str
    condition: str      # human-readable boolean expression
    operation: str      # which operation / helper this belongs to


# ---------------------------------------------------------------------------
# Predicate helpers
# ---------------------------------------------------------------------------

def same(a: float | None, b: float | None) -> bool:
    """Register equality that treats two NaNs as equal."""
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    return a == b


def _last_x_unchanged(b: CalculatorState, a: CalculatorState) -> bool:
    return same(a.last_x, b.last_x)


def _last_x_is_old_x(b: CalculatorState, a: CalculatorState) -> bool:
    return same(a.last_x, b.stack.x)


def _top_self_fills(b: CalculatorState, a: CalculatorState) -> bool:
    return same(a.stack.t, b.stack.t) and same(a.stack.z, b.stack.t)


def _lifted(b: CalculatorState, a: CalculatorState) -> bool:
    return (
        same(a.stack.y, b.stack.x)
        and same(a.stack.z, b.stack.y)
        and same(a.stack.t, b.stack.z)
    )


def _binary_rules(prefix: str, symbol: str, fn: Callable[[float, float], float]) -> list[TransitionRule]:
    return [
        TransitionRule(
            f"{prefix}-RESULT",
            "result_in_x",
            f"X becomes Y {symbol} X (operand order Y then X)",
            lambda b, a: same(a.stack.x, fn(b.stack.y, b.stack.x)),
        ),
        TransitionRule(
            f"{prefix}-DROP",
            "stack_drops",
            "Z moves to Y",
            lambda b, a: same(a.stack.y, b.stack.z),
        ),
        TransitionRule(
            f"{prefix}-FILL",
            "top_fills_from_infinity",
            "T moves to Z and also stays in T",
            _top_self_fills,
        ),
        TransitionRule(
            f"{prefix}-LASTX",
            "last_x_is_consumed_operand",
            "last X holds the X value before the operation",
            _last_x_is_old_x,
        ),
    ]


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

CONTRACTS: dict[str, OperationContract] = {
    "enter": OperationContract(
        name="enter",
        rules=[
            TransitionRule(
                "ENTER-X", "x_unchanged", "X is duplicated, not moved",
                lambda b, a: same(a.stack.x, b.stack.x),
            ),
            TransitionRule(
                "ENTER-LIFT", "stack_lifts", "X->Y, Y->Z, Z->T, old T discarded",
                _lifted,
            ),
            TransitionRule(
                "ENTER-LASTX", "last_x_unchanged", "last X is untouched",
                _last_x_unchanged,
            ),
        ],
    ),
    "swap": OperationContract(
        name="swap",
        rules=[
            TransitionRule(
                "SWAP-XY", "x_and_y_exchanged", "X and Y trade places",
                lambda b, a: same(a.stack.x, b.stack.y) and same(a.stack.y, b.stack.x),
            ),
            TransitionRule(
                "SWAP-ZT", "z_and_t_unchanged", "Z and T are untouched",
                lambda b, a: same(a.stack.z, b.stack.z) and same(a.stack.t, b.stack.t),
            ),
            TransitionRule(
                "SWAP-LASTX", "last_x_unchanged", "last X is untouched",
                _last_x_unchanged,
            ),
        ],
    ),
    "drop": OperationContract(
        name="drop",
        rules=[
            TransitionRule(
                "DROP-SHIFT", "stack_drops", "Y->X, Z->Y",
                lambda b, a: same(a.stack.x, b.stack.y) and same(a.stack.y, b.stack.z),
            ),
            TransitionRule(
                "DROP-FILL", "top_fills_from_infinity", "T moves to Z and also stays in T",
                _top_self_fills,
            ),
            TransitionRule(
                "DROP-LASTX", "last_x_is_dropped_value", "last X holds the removed X",
                _last_x_is_old_x,
            ),
        ],
    ),
    "clear": OperationContract(
        name="clear",
        rules=[
            TransitionRule(
                "CLEAR-ZERO", "registers_zero", "every register is 0",
                lambda b, a: a.stack.as_dict() == {"t": 0, "z": 0, "y": 0, "x": 0},
            ),
            TransitionRule(
                "CLEAR-LASTX", "last_x_forgotten", "last X is reset",
                lambda b, a: a.last_x is None,
            ),
        ],
    ),
    "last_x": OperationContract(
        name="last_x",
        rules=[
            TransitionRule(
                "RECALL-NOOP", "noop_without_last_x",
                "state is returned unchanged when there is no last X",
                lambda b, a: b.last_x is not None or a == b,
            ),
            TransitionRule(
                "RECALL-X", "x_is_last_x", "X receives the stored last X",
                lambda b, a: b.last_x is None or same(a.stack.x, b.last_x),
            ),
            TransitionRule(
                "RECALL-STACK", "stack_lifts", "X->Y, Y->Z, Z->T, old T discarded",
                lambda b, a: b.last_x is None or _lifted(b, a),
            ),
            TransitionRule(
                "RECALL-KEEP", "last_x_kept", "last X stays available for another recall",
                _last_x_unchanged,
            ),
        ],
    ),
    "add": OperationContract("add", _binary_rules("ADD", "+", lambda y, x: y + x)),
    "subtract": OperationContract("subtract", _binary_rules("SUB", "-", lambda y, x: y - x)),
    "multiply": OperationContract("multiply", _binary_rules("MUL", "*", lambda y, x: y * x)),
    "divide": OperationContract(
        "divide",
        _binary_rules("DIV", "/", lambda y, x: y / x),
        error_conditions=[
            ErrorCondition(
                "division_by_zero",
                "DivisionByZeroError when X is 0; the state is left as it was",
                lambda b: b.stack.x == 0,
                DivisionByZeroError,
            ),
        ],
    ),
}


def set_x_rules(value: float) -> list[TransitionRule]:
    """Rules for ``set_x``, which takes an argument besides the state."""
    return [
        TransitionRule(
            "SETX-X", "x_is_value", "X holds the new value",
            lambda b, a: same(a.stack.x, value),
        ),
        TransitionRule(
            "SETX-REST", "rest_unchanged", "Y, Z, T and last X are untouched",
            lambda b, a: (
                same(a.stack.y, b.stack.y)
                and same(a.stack.z, b.stack.z)
                and same(a.stack.t, b.stack.t)
                and _last_x_unchanged(b, a)
            ),
        ),
    ]


# ---------------------------------------------------------------------------
# Branches
# ---------------------------------------------------------------------------

BRANCHES: list[BranchPoint] = [
    BranchPoint("RECALL-EMPTY", "No last X, state returned as is", "last_x is None", "recall_last_x"),
    BranchPoint("RECALL-LIFT", "Stack lifted, last X pushed into X", "last_x is not None", "recall_last_x"),
    BranchPoint("DIV-ZERO", "DivisionByZeroError raised", "x == 0", "divide"),
    BranchPoint("DIV-NORMAL", "Quotient stored in X", "x != 0", "divide"),
    BranchPoint("DISPATCH-KNOWN", "Tag resolved to a transition", "tag in table", "dispatch"),
    BranchPoint("DISPATCH-UNKNOWN", "UnknownOperationError raised", "tag not in table", "dispatch"),
    BranchPoint("KEY-LIFT", "Digit after an operation lifts first", "mode == POST_OPERATION", "press_digit"),
    BranchPoint("KEY-START", "Digit starts a fresh literal", "mode == IDLE", "press_digit"),
    BranchPoint("KEY-APPEND", "Digit appended to the literal", "mode == ENTERING", "press_digit"),
    BranchPoint("KEY-FULL", "Digit ignored, literal at max length", "len(entry) >= MAX_LITERAL_LENGTH", "press_digit"),
    BranchPoint("DOT-DUP", "Second decimal point ignored", "'.' in entry", "press_decimal"),
    BranchPoint("BKSP-IDLE", "Backspace outside entry is a no-op", "mode != ENTERING", "press_backspace"),
    BranchPoint("BKSP-EMPTY", "Entry emptied, X reads 0", "len(entry) <= 1", "press_backspace"),
    BranchPoint("OP-REJECTED", "Failed operator leaves keypad as it was", "engine raised", "press_operator"),
]


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleResult:
    rule_id: str
    rule_name: str
    passed: bool
    description: str


@dataclass(frozen=True)
class TransitionReport:
    operation: str
    results: list[RuleResult]

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[RuleResult]:
        return [r for r in self.results if not r.passed]

    def summary(self) -> str:
        total = len(self.results)
        failed = len(self.failures)
        if failed == 0:
            return f"{self.operation}: all {total} rules passed"
        lines = [f"{self.operation}: {failed}/{total} rules failed:"]
        for f in self.failures:
            lines.append(f"  [{f.rule_id}] {f.rule_name}: {f.description}")
        return "\n".join(lines)


def _run_rules(
    operation: str,
    rules: list[TransitionRule],
    before: CalculatorState,
    after: CalculatorState,
) -> TransitionReport:
    results = []
    for rule in rules:
        try:
            passed = rule.check(before, after)
        except ArithmeticError:
            passed = False
        results.append(RuleResult(rule.id, rule.name, passed, rule.description))
    return TransitionReport(operation=operation, results=results)


def check_transition(
    operation: str, before: CalculatorState, after: CalculatorState
) -> TransitionReport:
    """Run every rule for ``operation`` against one observed transition."""
    contract = CONTRACTS[operation]
    return _run_rules(operation, contract.rules, before, after)


def check_set_x(
    value: float, before: CalculatorState, after: CalculatorState
) -> TransitionReport:
    return _run_rules("set_x", set_x_rules(value), before, after)
