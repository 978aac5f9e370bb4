"""Pytest configuration and shared fixtures."""

import asyncio
import inspect
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from board_dashboard.models import BoardList, Card  # noqa: E402


# Wednesday; the current Sunday-aligned week starts on 2024-05-12.
FIXED_NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Execute async tests without external plugins."""
    testfunction = pyfuncitem.obj
    if inspect.iscoroutinefunction(testfunction):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            sig = inspect.signature(testfunction)
            call_kwargs = {name: pyfuncitem.funcargs[name] for name in sig.parameters}
            loop.run_until_complete(testfunction(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def board_lists():
    return [
        BoardList(id="L1", title="Todo", owner_id="u1", position=1),
        BoardList(id="L2", title="Done", owner_id="u1", position=2),
    ]


@pytest.fixture
def scenario_cards():
    return [
        Card(id="C1", title="Write report", list_id="L1", status="open", created_at="2024-05-10T09:00:00Z"),
        Card(id="C2", title="Ship release", list_id="L2", created_at="2024-05-10T09:00:00Z"),
    ]
