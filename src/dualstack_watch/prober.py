# --- Standard library imports ---
import asyncio
from ipaddress import IPv4Address, IPv6Address

# --- Project imports ---
from .channel import SignalChannel
from .errors import ChannelClosed, PipelineError
from .logger import get_logger
from .models import AddressFamily, Failure, ProbeOutcome, Success
from .ticker import IntervalTicker
from .transport import ProbeTransport


# Log a latency sample on the first and then every Nth consecutive success
SUCCESS_SAMPLE_EVERY = 10


class HysteresisCounter:
    """
    Consecutive-failure counter for one address family.

    Invariants:
      - consec_fails increments only on failures
      - consec_fails resets only on successes
      - down == consec_fails >= threshold
    """

    def __init__(self, threshold: int):
        if threshold < 1:
            raise ValueError(f"threshold must be at least 1, got {threshold}")
        self.threshold = threshold
        self.consec_fails = 0

    def record(self, outcome: ProbeOutcome) -> bool:
        """Apply one probe outcome and return the resulting DownSignal."""
        if isinstance(outcome, Success):
            self.consec_fails = 0
        else:
            self.consec_fails += 1
        return self.down

    @property
    def down(self) -> bool:
        return self.consec_fails >= self.threshold


class Prober:
    """
    Probes one address family at a fixed rate and emits a level-triggered
    DownSignal every tick, after hysteresis.

    The loop only suspends at the interval tick and on a full channel;
    cancellation is checked at the tick, so an in-flight probe is never
    interrupted and no new probe starts once cancellation is observed.
    """

    def __init__(
        self,
        family: AddressFamily,
        target: IPv4Address | IPv6Address,
        interval: float,
        hysteresis: int,
        transport: ProbeTransport,
        channel: SignalChannel,
        cancel: asyncio.Event,
        ticker: IntervalTicker | None = None,
    ):
        self.family = family
        self.target = target
        self.transport = transport
        self.channel = channel
        self.cancel = cancel
        self.counter = HysteresisCounter(hysteresis)
        self.ticker = ticker or IntervalTicker(interval)
        self.consec_successes = 0
        self.probes_sent = 0
        self.logger = get_logger(f"prober.{family.name.lower()}")

    async def run(self) -> None:
        self.logger.debug(f"Probing {self.target} every {self.ticker.period}s")
        while await self._wait_for_tick():
            outcome = await self.transport.echo(self.target)
            self.probes_sent += 1
            down = self.observe(outcome)

            try:
                await self.channel.send(down)
            except ChannelClosed as e:
                if self.cancel.is_set():
                    break   # aggregator shut down first; normal exit race
                raise PipelineError(f"{self.family} prober lost its aggregator") from e

        self.logger.debug(f"{self.family} prober stopped after {self.probes_sent} probes")

    def observe(self, outcome: ProbeOutcome) -> bool:
        """
        Fold one outcome into the counter, log it, and return the DownSignal.
        """
        self.logger.trace(f"{self.target}: {outcome!r}")
        down = self.counter.record(outcome)

        match outcome:
            case Success(latency=_):
                if self.consec_successes % SUCCESS_SAMPLE_EVERY == 0:
                    self.logger.debug(f"{self.target} responded in {outcome.latency_ms}ms")
                self.consec_successes += 1

            case Failure(reason=reason, detail=detail):
                self.consec_successes = 0
                self.logger.debug(f"{self.family} failed: {reason} {detail}".rstrip())
                if not down:
                    self.logger.warning(
                        f"{self.family} ping to {self.target} failed "
                        f"({self.counter.consec_fails}/{self.counter.threshold})"
                    )
        return down

    async def _wait_for_tick(self) -> bool:
        """
        Suspend until the next tick or cancellation, whichever comes first.

        Returns:
            True to probe again, False to stop.
        """
        if self.cancel.is_set():
            return False

        tick = asyncio.ensure_future(self.ticker.tick())
        stop = asyncio.ensure_future(self.cancel.wait())
        try:
            await asyncio.wait({tick, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            tick.cancel()
            stop.cancel()

        return not self.cancel.is_set()
