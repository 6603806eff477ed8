# --- Standard library imports ---
import time
import asyncio
from collections.abc import Mapping

# --- Project imports ---
from .channel import SignalChannel
from .logger import get_logger
from .models import (
    AddressFamily,
    CombinedState,
    Transition,
    TransitionKind,
    format_duration,
)


# Outage clock key for the "both families down" condition
FULLY_DOWN = "fully_down"


def describe(event: Transition) -> str:
    """Human-readable log line for a transition."""
    match event.kind:
        case TransitionKind.FAMILY_DOWN:
            return f"{event.family} down"
        case TransitionKind.NETWORK_DOWN:
            return "network fully down"
        case TransitionKind.FAMILY_UP:
            subject = f"{event.family}"
        case TransitionKind.NETWORK_UP:
            subject = "network"

    if event.duration is None:
        return f"{subject} back online"
    return f"{subject} back online, down for {format_duration(event.duration)}"


class Aggregator:
    """
    Merges the two per-family DownSignal streams into one CombinedState
    and emits events on transitions only.

    Invariants:
      - The next state depends only on the latest DownSignal of each
        family; a family that has not reported yet counts as up
      - Nothing is emitted when an update leaves the state unchanged
      - An outage clock runs while, and only while, its condition holds
      - Durations come from the wall clock, never from tick counts
    """

    def __init__(self, channels: Mapping[AddressFamily, SignalChannel], cancel: asyncio.Event, clock=time.monotonic):
        self.channels = dict(channels)
        self.cancel = cancel
        self.clock = clock
        self.latest = {family: False for family in AddressFamily}
        self.state = CombinedState.HEALTHY
        self.clocks: dict[AddressFamily | str, float] = {}
        self.logger = get_logger("aggregator")

    # -------------------------
    # Receive loop
    # -------------------------

    async def run(self) -> None:
        """
        Receive from both channels until cancelled.

        Each channel has at most one outstanding receive, so per-family
        order is kept; updates that are ready together are applied as
        one batch.
        """
        pending: dict[AddressFamily, asyncio.Future] = {}
        stop = asyncio.ensure_future(self.cancel.wait())
        try:
            while not self.cancel.is_set():
                for family, channel in self.channels.items():
                    if family not in pending:
                        pending[family] = asyncio.ensure_future(channel.receive())

                await asyncio.wait(
                    {stop, *pending.values()},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                batch = {}
                for family, task in list(pending.items()):
                    if task.done():
                        batch[family] = task.result()
                        del pending[family]
                if batch:
                    self.apply(batch)
        finally:
            stop.cancel()
            for task in pending.values():
                task.cancel()
            for channel in self.channels.values():
                channel.close()
            self.logger.debug(f"Aggregator stopped in state {self.state}")

    # -------------------------
    # State machine
    # -------------------------

    def apply(self, updates: Mapping[AddressFamily, bool]) -> list[Transition]:
        """
        Record the latest DownSignal(s), recompute the combined state,
        and emit whatever transition events the change produces.
        """
        self.latest.update(updates)
        previous = self.state
        current = CombinedState.from_signals(
            self.latest[AddressFamily.V4],
            self.latest[AddressFamily.V6],
        )
        if current is previous:
            return []

        events = self.transition(previous, current, self.clock())
        self.state = current
        for event in events:
            self._emit(event)
        return events

    def transition(self, previous: CombinedState, current: CombinedState, now: float) -> list[Transition]:
        """
        Compute the events for previous → current and update outage clocks.

        Entering FULLY_DOWN yields a single NETWORK_DOWN event, and leaving
        it straight to HEALTHY a single NETWORK_UP event; every other change
        is reported per family, recoveries first.
        """
        recovered = [f for f in AddressFamily if previous.is_down(f) and not current.is_down(f)]
        failed = [f for f in AddressFamily if current.is_down(f) and not previous.is_down(f)]

        for family in failed:
            self.clocks.setdefault(family, now)

        if current is CombinedState.FULLY_DOWN:
            self.clocks.setdefault(FULLY_DOWN, now)
            return [Transition(TransitionKind.NETWORK_DOWN)]

        if previous is CombinedState.FULLY_DOWN and current is CombinedState.HEALTHY:
            duration = self._stop_clock(FULLY_DOWN, now)
            for family in recovered:
                self._stop_clock(family, now)
            return [Transition(TransitionKind.NETWORK_UP, duration=duration)]

        # Partial recovery from FULLY_DOWN ends the network-wide outage silently
        self.clocks.pop(FULLY_DOWN, None)

        events = [
            Transition(TransitionKind.FAMILY_UP, family, self._stop_clock(family, now))
            for family in recovered
        ]
        events += [Transition(TransitionKind.FAMILY_DOWN, family) for family in failed]
        return events

    def _stop_clock(self, key, now: float) -> float | None:
        started = self.clocks.pop(key, None)
        if started is None:
            return None
        return max(0.0, now - started)

    def _emit(self, event: Transition) -> None:
        if event.is_recovery:
            self.logger.info(describe(event))
        else:
            self.logger.error(describe(event))
