# pytest configuration for bulk_export_api tests
import sys
from pathlib import Path

import pytest

# Ensure the package root is in sys.path for proper imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

BASE_URL = "https://api.example.com/v1"


class FakeClock:
    """Monotonic clock that only moves when fake_sleep is awaited."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def slept(monkeypatch, clock):
    """Replace asyncio.sleep, recording each delay and advancing the fake clock."""
    calls = []

    async def fake_sleep(seconds):
        calls.append(seconds)
        clock.now += seconds

    monkeypatch.setattr("asyncio.sleep", fake_sleep)
    return calls
