"""Application factory and entry point.

Run with:
    uvicorn app:app --reload
or:
    python app.py
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import config
from api import CodedHTTPException, engine_router, sessions_router, set_store
from logging_config import setup_logging
from store import SessionStore


async def _coded_error_handler(request: Request, exc: CodedHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


def create_app(store: SessionStore | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Accepts an optional store for testing; creates a fresh one if omitted.
    """
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)

    if store is None:
        store = SessionStore()

    set_store(store)

    app = FastAPI(
        title="RPN Calculator API",
        description=(
            "Four-register (X, Y, Z, T) Reverse Polish Notation calculator. "
            "Keypad sessions hold one calculator each and accept key presses; "
            "the engine routes apply single stateless transitions."
        ),
        version="0.1.0",
    )
    app.add_exception_handler(CodedHTTPException, _coded_error_handler)
    app.include_router(sessions_router)
    app.include_router(engine_router)
    return app


# Default app instance for `uvicorn app:app`
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
