# --- Standard library imports ---
import sys
import signal
import asyncio
from typing import Protocol

# --- Project imports ---
from .logger import get_logger


logger = get_logger("shutdown")

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)
WINDOWS_SIGNALS = (signal.SIGINT, getattr(signal, "SIGBREAK", signal.SIGTERM))


class SignalSource(Protocol):
    """A source of termination requests (OS signals or a test double)."""

    async def wait(self) -> str:
        """
        Suspend until the next termination request arrives; return its name.

        The first call installs the handlers, which stay in place until
        `close()` so repeated requests are delivered instead of killing
        the process.
        """
        ...

    def close(self) -> None:
        """Restore the previous handlers."""
        ...


class PosixSignalSource:
    """
    SIGINT/SIGTERM through the event loop's native signal handlers.
    """

    def __init__(self, signals=TERMINATION_SIGNALS):
        self.signals = tuple(signals)
        self._received: asyncio.Queue[str] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None

    async def wait(self) -> str:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
            for sig in self.signals:
                self._loop.add_signal_handler(sig, self._received.put_nowait, sig.name)
        return await self._received.get()

    def close(self) -> None:
        if self._loop is None:
            return
        for sig in self.signals:
            self._loop.remove_signal_handler(sig)
        self._loop = None


class WindowsSignalSource:
    """
    Windows has no loop-level signal handlers; hook the C-level handlers
    and hand the notification back to the loop thread-safely.
    """

    def __init__(self, signals=WINDOWS_SIGNALS):
        self.signals = tuple(signals)
        self._received: asyncio.Queue[str] = asyncio.Queue()
        self._previous = {}

    async def wait(self) -> str:
        if not self._previous:
            loop = asyncio.get_running_loop()

            def handler(signum, frame):
                loop.call_soon_threadsafe(self._received.put_nowait, signal.Signals(signum).name)

            for sig in self.signals:
                self._previous[sig] = signal.signal(sig, handler)
        return await self._received.get()

    def close(self) -> None:
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)
        self._previous.clear()


def default_signal_source() -> SignalSource:
    if sys.platform == "win32":
        return WindowsSignalSource()
    return PosixSignalSource()


class ShutdownCoordinator:
    """
    Turns the first termination request into one broadcast cancellation.

    Every long-running loop watches `cancel` at its suspension points.
    Setting it is idempotent; requests after the first are ignored. The
    signal source is owned by the caller, which closes it once every
    loop has stopped.
    """

    def __init__(self, cancel: asyncio.Event, source: SignalSource | None = None):
        self.cancel = cancel
        self.source = source or default_signal_source()
        self.reason: str | None = None

    def request(self, reason: str) -> bool:
        """
        Request shutdown. Returns True only for the request that
        actually triggered cancellation.
        """
        if self.cancel.is_set():
            logger.info(f"Already shutting down, ignoring {reason}")
            return False
        self.reason = reason
        self.cancel.set()
        logger.info(f"🛑 Received {reason}, shutting down")
        return True

    async def run(self) -> None:
        """
        Forward every termination request to `request()` until cancelled
        by the supervisor; only the first one has an effect.
        """
        while True:
            self.request(await self.source.wait())
