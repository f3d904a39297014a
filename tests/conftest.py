"""Shared fakes for psycopg async connections."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


class FakeCursor:
    """Mimics psycopg's async cursor; results are served in execute order."""

    def __init__(self, results: list[Any] | None = None):
        self._results = list(results or [])
        self.executed: list[tuple[str, Any]] = []
        self._current: Any = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def execute(self, query: str, params: Any = None) -> None:
        self.executed.append((query, params))
        self._current = self._results.pop(0) if self._results else None

    async def fetchone(self) -> Any:
        if isinstance(self._current, list):
            return self._current[0] if self._current else None
        return self._current

    async def fetchall(self) -> list[Any]:
        if self._current is None:
            return []
        return self._current if isinstance(self._current, list) else [self._current]


def make_fake_conn(results: list[Any] | None = None):
    """Mock AsyncConnection whose cursors share one FakeCursor."""
    conn = AsyncMock()
    cursor = FakeCursor(results)
    conn.cursor = MagicMock(return_value=cursor)
    conn.fake_cursor = cursor
    return conn


@pytest.fixture
def fake_conn_factory():
    return make_fake_conn
