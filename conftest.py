"""
Shared pytest fixtures for HUD Reader.

Forces the offscreen Qt platform so pytest-qt can create its application
on headless CI machines.
"""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest  # noqa: E402

from hudreader.database.db import MemoryStore  # noqa: E402


class FakeEngine:
    """Recognition engine returning canned text."""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = 0
        self.closed = False

    def recognize(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text

    def close(self):
        self.closed = True


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def fake_engine():
    return FakeEngine()
