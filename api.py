"""FastAPI endpoints for the RPN calculator.

Routes
------
POST   /sessions                 Open a keypad session
GET    /sessions                 List sessions
GET    /sessions/{id}            Retrieve a session
POST   /sessions/{id}/keys       Press keys on a session
POST   /sessions/{id}/reset      Reset a session to its initial state
DELETE /sessions/{id}            Close a session

GET    /engine/operations        Operation tags accepted below
POST   /engine/set-x             Overwrite X on a posted state
POST   /engine/{operation}       Apply one operation to a posted state
"""
from __future__ import annotations

from fastapi import APIRouter, HTTPException

from engine import (
    CalculatorError,
    DivisionByZeroError,
    UnknownOperationError,
    apply_operation,
    operation_names,
    set_x,
)
from logging_config import get_logger
from models import (
    CalculatorStateInput,
    CalculatorStateModel,
    ErrorResponse,
    KeyBatch,
    SessionListResponse,
    SessionView,
    SetXRequest,
)
from store import SessionLimitError, SessionNotFoundError, SessionStore

log = get_logger("api")

_ERRORS = {
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}

sessions_router = APIRouter(prefix="/sessions", tags=["sessions"])
engine_router = APIRouter(prefix="/engine", tags=["engine"])

# The store instance is injected by the app factory (see app.py).
_store: SessionStore | None = None


def set_store(store: SessionStore) -> None:
    """Inject the store instance. Called once at app startup."""
    global _store
    _store = store


def get_store() -> SessionStore:
    assert _store is not None, "Store not initialized"
    return _store


# ---------------------------------------------------------------------------
# Error helpers
# ---------------------------------------------------------------------------

class CodedHTTPException(HTTPException):
    """HTTPException carrying a machine-readable error code."""

    def __init__(self, status_code: int, detail: str, code: str) -> None:
        super().__init__(status_code=status_code, detail=detail)
        self.code = code


def _not_found(e: SessionNotFoundError) -> CodedHTTPException:
    return CodedHTTPException(404, str(e), "SESSION_NOT_FOUND")


def _calculator_error(status_code: int, e: CalculatorError) -> CodedHTTPException:
    log.debug("Mapped %s to HTTP %d", e.code, status_code)
    return CodedHTTPException(status_code, e.message, e.code)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@sessions_router.post(
    "", response_model=SessionView, status_code=201,
    responses={503: {"model": ErrorResponse}},
)
def create_session() -> SessionView:
    """Open a new keypad session."""
    try:
        session = get_store().create()
    except SessionLimitError as e:
        raise CodedHTTPException(503, str(e), "SESSION_LIMIT") from e
    return SessionView.from_session(session)


@sessions_router.get("", response_model=SessionListResponse)
def list_sessions() -> SessionListResponse:
    store = get_store()
    items = [SessionView.from_session(s) for s in store.list()]
    return SessionListResponse(items=items, total=len(items))


@sessions_router.get("/{session_id}", response_model=SessionView, responses=_ERRORS)
def get_session(session_id: str) -> SessionView:
    try:
        return SessionView.from_session(get_store().get(session_id))
    except SessionNotFoundError as e:
        raise _not_found(e) from e


@sessions_router.post("/{session_id}/keys", response_model=SessionView, responses=_ERRORS)
def press_keys(session_id: str, payload: KeyBatch) -> SessionView:
    """Press keys in order.

    A rejected division is not an HTTP error: the session keeps its
    registers and reports the message in ``error``.
    """
    try:
        session = get_store().press(session_id, payload.keys)
    except SessionNotFoundError as e:
        raise _not_found(e) from e
    except UnknownOperationError as e:
        raise _calculator_error(422, e) from e
    return SessionView.from_session(session)


@sessions_router.post("/{session_id}/reset", response_model=SessionView, responses=_ERRORS)
def reset_session(session_id: str) -> SessionView:
    try:
        return SessionView.from_session(get_store().reset(session_id))
    except SessionNotFoundError as e:
        raise _not_found(e) from e


@sessions_router.delete("/{session_id}", response_model=SessionView, responses=_ERRORS)
def delete_session(session_id: str) -> SessionView:
    """Close a session and return its final state."""
    try:
        return SessionView.from_session(get_store().delete(session_id))
    except SessionNotFoundError as e:
        raise _not_found(e) from e


# ---------------------------------------------------------------------------
# Stateless engine
# ---------------------------------------------------------------------------

@engine_router.get("/operations", response_model=list[str])
def list_operations() -> list[str]:
    return operation_names()


@engine_router.post("/set-x", response_model=CalculatorStateModel)
def engine_set_x(payload: SetXRequest) -> CalculatorStateModel:
    state = set_x(payload.state.to_state(), payload.value)
    return CalculatorStateModel.from_state(state)


@engine_router.post("/{operation}", response_model=CalculatorStateModel, responses=_ERRORS)
def engine_apply(operation: str, payload: CalculatorStateInput) -> CalculatorStateModel:
    """Apply one operation to the posted state and return its successor."""
    try:
        state = apply_operation(payload.to_state(), operation)
    except DivisionByZeroError as e:
        raise _calculator_error(422, e) from e
    except UnknownOperationError as e:
        raise _calculator_error(404, e) from e
    return CalculatorStateModel.from_state(state)
