"""
Test configuration and fixtures for the tracking queue diagnostics.
This centralizes all test setup, making individual tests clean.
"""

import json

import pytest

from tracking_queue_app.backend.factory import BackendFactory
from tracking_queue_app.backend.strategies import InMemoryBackend
from tracking_queue_app.dependencies import get_backend
from tracking_queue_app.queue.manager import ProcessingLock, QueueManager


class FakeClock:
    """Monotonic clock the tests move by hand"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTerminal:
    """Replays scripted key presses, one per read"""

    def __init__(self, keys=()):
        self.keys = list(keys)
        self.opened = 0
        self.restored = 0

    def open(self):
        self.opened += 1

    def read(self, size: int = 3) -> bytes:
        if self.keys:
            return self.keys.pop(0)
        return b""

    def restore(self):
        self.restored += 1


def make_request_set(*requests, ip="192.168.1.1"):
    """Serialize request parameter dicts the way the tracker stores them"""
    return json.dumps({
        "requests": list(requests),
        "env": {"server": {"REMOTE_ADDR": ip}},
        "tokenAuth": None,
        "time": 1730197800,
    })


@pytest.fixture(autouse=True)
def clear_singletons():
    """Every test starts without a cached backend"""
    BackendFactory.clear_instance()
    get_backend.cache_clear()
    yield
    BackendFactory.clear_instance()
    get_backend.cache_clear()


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def manager_for(backend):
    """Build a QueueManager over the in-memory backend"""
    def _build(number_of_queues=1):
        return QueueManager(backend, number_of_queues=number_of_queues, requests_to_process=25)
    return _build


@pytest.fixture
def lock(backend):
    return ProcessingLock(backend)


@pytest.fixture
def clock():
    return FakeClock()
