import os
import sys
import signal
import asyncio

import pytest

from conftest import FakeSignalSource
from dualstack_watch.shutdown import (
    PosixSignalSource,
    ShutdownCoordinator,
    WindowsSignalSource,
    default_signal_source,
)


# ====================================
# TEST GROUP: Cancellation Broadcast
# ====================================
# Class: ShutdownCoordinator
# --------------------------
def test_request_is_idempotent():
    """Only the first termination request sets the flag"""
    cancel = asyncio.Event()
    coordinator = ShutdownCoordinator(cancel, FakeSignalSource())

    assert coordinator.request("SIGINT") is True
    assert coordinator.request("SIGTERM") is False

    assert cancel.is_set()
    assert coordinator.reason == "SIGINT"


@pytest.mark.asyncio
async def test_run_sets_flag_on_signal():
    cancel = asyncio.Event()
    source = FakeSignalSource("SIGTERM")
    coordinator = ShutdownCoordinator(cancel, source)

    task = asyncio.create_task(coordinator.run())
    await asyncio.sleep(0.01)
    assert not cancel.is_set()

    source.fire()
    await asyncio.wait_for(cancel.wait(), timeout=1)

    assert coordinator.reason == "SIGTERM"
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


@pytest.mark.asyncio
async def test_run_keeps_listening_after_first_signal(caplog):
    """A second signal during shutdown is absorbed, not left to the default handler"""
    caplog.set_level("INFO", logger="dualstack_watch")
    cancel = asyncio.Event()
    source = FakeSignalSource()
    coordinator = ShutdownCoordinator(cancel, source)

    task = asyncio.create_task(coordinator.run())
    source.fire("SIGINT")
    source.fire("SIGTERM")
    await asyncio.sleep(0.01)

    assert not task.done()
    assert coordinator.reason == "SIGINT"
    assert source.received.empty()
    assert any("ignoring SIGTERM" in r.getMessage() for r in caplog.records)

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    assert not source.closed     # the caller owns the source



# ===============================
# TEST GROUP: Platform Sources
# ===============================
def test_default_source_matches_platform():
    expected = WindowsSignalSource if sys.platform == "win32" else PosixSignalSource
    assert isinstance(default_signal_source(), expected)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
@pytest.mark.asyncio
async def test_posix_source_receives_signal():
    source = PosixSignalSource(signals=(signal.SIGUSR1,))
    waiter = asyncio.create_task(source.wait())
    await asyncio.sleep(0.01)

    os.kill(os.getpid(), signal.SIGUSR1)
    try:
        assert await asyncio.wait_for(waiter, timeout=1) == "SIGUSR1"
    finally:
        source.close()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
@pytest.mark.asyncio
async def test_posix_source_stays_installed_until_closed():
    source = PosixSignalSource(signals=(signal.SIGUSR1,))
    previous = signal.getsignal(signal.SIGUSR1)
    first = asyncio.create_task(source.wait())
    await asyncio.sleep(0.01)

    try:
        os.kill(os.getpid(), signal.SIGUSR1)
        assert await asyncio.wait_for(first, timeout=1) == "SIGUSR1"

        # Delivered again without re-arming the source
        os.kill(os.getpid(), signal.SIGUSR1)
        await asyncio.sleep(0.01)
        assert await asyncio.wait_for(source.wait(), timeout=1) == "SIGUSR1"
    finally:
        source.close()

    assert signal.getsignal(signal.SIGUSR1) == previous
