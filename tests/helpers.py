"""Shared constants and small helpers for the test modules."""
from __future__ import annotations

API = "/api/v1"
PASSWORD = "password123"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
