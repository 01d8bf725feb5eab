"""Pydantic models for the calculator HTTP API.

The engine and keypad work on frozen dataclasses; these models are the
wire format around them.  Input models only accept finite numbers, since
the engine assumes its registers never receive NaN or infinity from a
caller.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, field_validator

import config
from coordinator import InputMode, KeypadState, display
from engine import CalculatorState, RegisterStack


# ---------------------------------------------------------------------------
# Engine state
# ---------------------------------------------------------------------------

class RegisterStackModel(BaseModel):
    """The four registers. X is the most recent value."""

    t: float = 0.0
    z: float = 0.0
    y: float = 0.0
    x: float = 0.0

    def to_stack(self) -> RegisterStack:
        return RegisterStack(t=self.t, z=self.z, y=self.y, x=self.x)

    @classmethod
    def from_stack(cls, stack: RegisterStack) -> RegisterStackModel:
        return cls(**stack.as_dict())


class CalculatorStateModel(BaseModel):
    stack: RegisterStackModel = Field(default_factory=RegisterStackModel)
    last_x: float | None = None

    def to_state(self) -> CalculatorState:
        return CalculatorState(stack=self.stack.to_stack(), last_x=self.last_x)

    @classmethod
    def from_state(cls, state: CalculatorState) -> CalculatorStateModel:
        return cls(
            stack=RegisterStackModel.from_stack(state.stack),
            last_x=state.last_x,
        )


# Results may overflow to infinity, so only the request side is strict.

class RegisterStackInput(RegisterStackModel):
    model_config = ConfigDict(allow_inf_nan=False)


class CalculatorStateInput(CalculatorStateModel):
    model_config = ConfigDict(allow_inf_nan=False)

    stack: RegisterStackInput = Field(default_factory=RegisterStackInput)


class SetXRequest(BaseModel):
    """Payload for overwriting X on a given state."""

    state: CalculatorStateInput = Field(default_factory=CalculatorStateInput)
    value: FiniteFloat


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class KeyBatch(BaseModel):
    """Keys to press, in order, on one session."""

    keys: list[str] = Field(..., min_length=1, max_length=config.MAX_KEYS_PER_REQUEST)

    @field_validator("keys")
    @classmethod
    def keys_not_blank(cls, keys: list[str]) -> list[str]:
        for k in keys:
            if not k:
                raise ValueError("Key names must not be empty")
        return keys


class Session(BaseModel):
    """A keypad owned by the session store."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    id: str = Field(default_factory=_new_id)
    keypad: KeypadState = Field(default_factory=KeypadState)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class SessionView(BaseModel):
    """Session as returned by the API."""

    id: str
    stack: RegisterStackModel
    last_x: float | None
    mode: InputMode
    entry: str
    error: str | None
    display: dict[str, str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: Session) -> SessionView:
        keypad = session.keypad
        return cls(
            id=session.id,
            stack=RegisterStackModel.from_stack(keypad.calculator.stack),
            last_x=keypad.calculator.last_x,
            mode=keypad.mode,
            entry=keypad.entry,
            error=keypad.error,
            display=display(keypad),
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class SessionListResponse(BaseModel):
    items: list[SessionView]
    total: int


class ErrorResponse(BaseModel):
    detail: str
    code: str
