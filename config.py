"""Runtime configuration for the RPN calculator service.

Every value can be overridden through an environment variable prefixed
with ``RPN_``.  Values are read once, at import time.
"""
from __future__ import annotations

import os

# Logging
LOG_LEVEL = os.getenv("RPN_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("RPN_LOG_FILE") or None

# Keypad limits
MAX_LITERAL_LENGTH = int(os.getenv("RPN_MAX_LITERAL_LENGTH", "32"))  # characters

# Session store / HTTP limits
MAX_SESSIONS = int(os.getenv("RPN_MAX_SESSIONS", "1000"))
MAX_KEYS_PER_REQUEST = int(os.getenv("RPN_MAX_KEYS_PER_REQUEST", "256"))

# uvicorn bind address for ``python app.py``
HOST = os.getenv("RPN_HOST", "127.0.0.1")
PORT = int(os.getenv("RPN_PORT", "8000"))
