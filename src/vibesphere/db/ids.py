# src/vibesphere/db/ids.py
"""Identifier helpers for database rows."""

import uuid


def new_id() -> str:
    """Return a fresh row identifier as a canonical UUID string."""
    return str(uuid.uuid4())
