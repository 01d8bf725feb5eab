"""Shared fixtures for calculator tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app import create_app
from coordinator import KeypadState
from store import SessionStore


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def keypad() -> KeypadState:
    return KeypadState()


@pytest.fixture
def client(store) -> TestClient:
    return TestClient(create_app(store=store))


@pytest.fixture
def session_id(client) -> str:
    """An open session on the test client."""
    resp = client.post("/sessions")
    assert resp.status_code == 201
    return resp.json()["id"]
