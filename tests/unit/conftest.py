"""Shared fixtures for the rigwatch unit test suite."""

from typing import Any, List, Optional, Tuple

import pytest
import pytest_asyncio

from rigwatch.storage import StorageManager


class RecordingHub:
    """Stands in for BroadcastHub; records every publish call."""

    def __init__(self):
        self.events: List[Tuple[str, Any, Optional[str]]] = []

    async def publish(self, event_type: str, data: Any, owner_id: Optional[str] = None) -> int:
        self.events.append((event_type, data, owner_id))
        return 1

    def of_type(self, event_type: str) -> list:
        return [e for e in self.events if e[0] == event_type]


class ScriptedRandom:
    """random.Random stand-in that replays a fixed sequence of rolls."""

    def __init__(self, values):
        self._values = list(values)

    def random(self) -> float:
        if not self._values:
            raise AssertionError("ScriptedRandom exhausted")
        return self._values.pop(0)


@pytest_asyncio.fixture
async def storage():
    sm = StorageManager(":memory:")
    await sm.initialize()
    yield sm
    await sm.close()




@pytest.fixture
def hub():
    return RecordingHub()


@pytest.fixture
def scripted_rng():
    """Factory: scripted_rng(0.9, 0.5) replays those rolls in order."""
    return lambda *values: ScriptedRandom(values)
