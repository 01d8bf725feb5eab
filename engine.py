"""Four-register RPN calculator engine.

Every operation is a pure function from one ``CalculatorState`` to the
next.  The registers never grow or shrink: a stack lift discards T and a
stack drop refills T with its own previous value ("fill from infinity").
Decision branches are annotated with their branch-IDs (see contract.py
BRANCHES) so white-box tests can trace coverage back to the contract.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class CalculatorError(Exception):
    """Base class for engine failures. ``code`` is stable across versions."""

    code = "CALCULATOR_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DivisionByZeroError(CalculatorError, ZeroDivisionError):
    code = "DIVISION_BY_ZERO"

    def __init__(self) -> None:
        super().__init__("Division by zero")


class UnknownOperationError(CalculatorError, ValueError):
    code = "UNKNOWN_OPERATION"

    def __init__(self, kind: str, name: object) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind}: {name!r}")


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegisterStack:
    """The X, Y, Z and T registers. X is the most recent value."""

    t: float = 0.0
    z: float = 0.0
    y: float = 0.0
    x: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {"t": self.t, "z": self.z, "y": self.y, "x": self.x}

    def lifted(self, x: float) -> RegisterStack:
        """Push ``x`` into X, moving X->Y->Z->T and discarding T."""
        return RegisterStack(t=self.z, z=self.y, y=self.x, x=x)

    def dropped(self, x: float) -> RegisterStack:
        """Replace X and Y with ``x``, moving Z->Y and T->Z; T keeps its value."""
        return RegisterStack(t=self.t, z=self.t, y=self.z, x=x)


@dataclass(frozen=True)
class CalculatorState:
    stack: RegisterStack = field(default_factory=RegisterStack)
    last_x: float | None = None


class StackOperation(str, Enum):
    ENTER = "enter"
    SWAP = "swap"
    DROP = "drop"
    CLEAR = "clear"
    LAST_X = "last_x"


class MathOperation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"


def create_initial_state() -> CalculatorState:
    """All registers zero, no last X."""
    return CalculatorState(stack=RegisterStack(), last_x=None)


# ---------------------------------------------------------------------------
# Stack operations
# ---------------------------------------------------------------------------

def set_x(state: CalculatorState, value: float) -> CalculatorState:
    """Overwrite X. The caller guarantees ``value`` is finite."""
    return replace(state, stack=replace(state.stack, x=value))


def enter(state: CalculatorState) -> CalculatorState:
    """Duplicate X into Y and lift the rest of the stack."""
    s = state.stack
    return replace(state, stack=s.lifted(s.x))


def swap(state: CalculatorState) -> CalculatorState:
    s = state.stack
    return replace(state, stack=replace(s, x=s.y, y=s.x))


def drop(state: CalculatorState) -> CalculatorState:
    """Remove X. The removed value becomes last X."""
    s = state.stack
    return CalculatorState(stack=s.dropped(s.y), last_x=s.x)


def clear(state: CalculatorState) -> CalculatorState:
    """Zero every register and forget last X."""
    return create_initial_state()


def recall_last_x(state: CalculatorState) -> CalculatorState:
    """Lift the stack and put last X into X.

    Branches: RECALL-EMPTY, RECALL-LIFT
    """
    if state.last_x is None:                                      # RECALL-EMPTY
        return state
    return replace(state, stack=state.stack.lifted(state.last_x))  # RECALL-LIFT


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------

def _binary(state: CalculatorState, result: float) -> CalculatorState:
    """Consume X and Y, leaving ``result`` in X and the old X as last X."""
    return CalculatorState(
        stack=state.stack.dropped(result),
        last_x=state.stack.x,
    )


def add(state: CalculatorState) -> CalculatorState:
    """Y + X."""
    return _binary(state, state.stack.y + state.stack.x)


def subtract(state: CalculatorState) -> CalculatorState:
    """Y - X."""
    return _binary(state, state.stack.y - state.stack.x)


def multiply(state: CalculatorState) -> CalculatorState:
    """Y * X."""
    return _binary(state, state.stack.y * state.stack.x)


def divide(state: CalculatorState) -> CalculatorState:
    """Y / X.

    Branches: DIV-ZERO, DIV-NORMAL
    """
    if state.stack.x == 0:                                        # DIV-ZERO
        raise DivisionByZeroError()
    return _binary(state, state.stack.y / state.stack.x)          # DIV-NORMAL


# ---------------------------------------------------------------------------
# Dispatch by tag
# ---------------------------------------------------------------------------

Transition = Callable[[CalculatorState], CalculatorState]

STACK_OPERATIONS: dict[StackOperation, Transition] = {
    StackOperation.ENTER: enter,
    StackOperation.SWAP: swap,
    StackOperation.DROP: drop,
    StackOperation.CLEAR: clear,
    StackOperation.LAST_X: recall_last_x,
}

MATH_OPERATIONS: dict[MathOperation, Transition] = {
    MathOperation.ADD: add,
    MathOperation.SUBTRACT: subtract,
    MathOperation.MULTIPLY: multiply,
    MathOperation.DIVIDE: divide,
}


def _lookup(table: dict, enum_type: type[Enum], kind: str, op: object) -> Transition:
    """Branches: DISPATCH-KNOWN, DISPATCH-UNKNOWN"""
    try:
        return table[enum_type(op)]                               # DISPATCH-KNOWN
    except ValueError:                                            # DISPATCH-UNKNOWN
        raise UnknownOperationError(kind, op) from None


def perform_stack_operation(
    state: CalculatorState, operation: StackOperation | str
) -> CalculatorState:
    fn = _lookup(STACK_OPERATIONS, StackOperation, "stack operation", operation)
    return fn(state)


def perform_math_operation(
    state: CalculatorState, operation: MathOperation | str
) -> CalculatorState:
    fn = _lookup(MATH_OPERATIONS, MathOperation, "math operation", operation)
    return fn(state)


def operation_names() -> list[str]:
    return [op.value for op in STACK_OPERATIONS] + [op.value for op in MATH_OPERATIONS]


def apply_operation(state: CalculatorState, name: str) -> CalculatorState:
    """Run any stack or math operation by its tag."""
    if name in {op.value for op in MathOperation}:
        return perform_math_operation(state, name)
    if name in {op.value for op in StackOperation}:
        return perform_stack_operation(state, name)
    raise UnknownOperationError("operation", name)
