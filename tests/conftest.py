import asyncio
from collections import deque
from ipaddress import IPv4Address, IPv6Address

import pytest

from dualstack_watch.config import Settings
from dualstack_watch.models import Failure, FailureReason, Success


V4 = IPv4Address("142.250.74.46")
V6 = IPv6Address("2a00:1450:400f:80d::200e")

OK = Success(latency=0.012)
TIMEOUT = Failure(FailureReason.TIMEOUT, "no reply before timeout")


# ========
# FAKES
# ========

class ScriptedTransport:
    """
    script: dict[address] -> list of ProbeOutcomes returned one per call.
    Once a script runs dry it keeps answering with `default`.
    """
    def __init__(self, script=None, default=OK, on_exhausted=None):
        self.script = {addr: deque(outcomes) for addr, outcomes in (script or {}).items()}
        self.default = default
        self.on_exhausted = on_exhausted
        self.calls = []

    async def echo(self, address):
        self.calls.append(address)
        dq = self.script.get(address)
        if dq:
            outcome = dq.popleft()
            if not dq and self.on_exhausted:
                self.on_exhausted(address)
            return outcome
        return self.default

    def count(self, address) -> int:
        return sum(1 for a in self.calls if a == address)


class FakeSignalSource:
    """Signal source fired by the test instead of the OS; every fire() is delivered."""
    def __init__(self, name="SIGTERM"):
        self.name = name
        self.received = asyncio.Queue()
        self.closed = False

    async def wait(self) -> str:
        return await self.received.get()

    def fire(self, name=None) -> None:
        self.received.put_nowait(name or self.name)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ========
# FIXTURES
# ========

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        interval=1,
        hysteresis=2,
        target_v4=V4,
        target_v6=V6,
        hostname="example.com",
        probe_timeout=0.5,
    )
