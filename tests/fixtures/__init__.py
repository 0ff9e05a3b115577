"""Test fixtures package."""

from .fake_dbapi import FakeConnection, FakeCursor, FakeDatabaseError

__all__ = [
    "FakeConnection",
    "FakeCursor",
    "FakeDatabaseError",
]
