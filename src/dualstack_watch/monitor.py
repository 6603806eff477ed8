# --- Standard library imports ---
import time
import asyncio

# --- Project imports ---
from .aggregator import Aggregator
from .channel import SignalChannel
from .config import Settings
from .logger import get_logger
from .models import AddressFamily
from .prober import Prober
from .shutdown import ShutdownCoordinator, SignalSource, default_signal_source
from .transport import IcmpTransport, ProbeTransport


logger = get_logger("monitor")


async def supervise(
    tasks: dict[str, asyncio.Task],
    background: dict[str, asyncio.Task] | None = None,
) -> None:
    """
    Wait for every task in `tasks` to finish. The first task that fails,
    foreground or background, cancels the others, and its exception is
    re-raised once they have unwound. Background tasks never finish on
    their own; they are cancelled once the foreground is done.
    """
    background = background or {}
    names = {task: name for name, task in {**tasks, **background}.items()}
    foreground = set(tasks.values())
    pending = foreground | set(background.values())
    try:
        while pending & foreground:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
            failed = [t for t in done if not t.cancelled() and t.exception() is not None]
            if failed:
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                logger.debug(f"Task {names[failed[0]]} failed; cancelled {len(pending)} others")
                raise failed[0].exception()
    finally:
        for task in background.values():
            task.cancel()
        await asyncio.gather(*background.values(), return_exceptions=True)


async def run(
    settings: Settings,
    transport: ProbeTransport | None = None,
    signal_source: SignalSource | None = None,
    clock=time.monotonic,
) -> None:
    """
    Run both probers, the aggregator and the shutdown coordinator until
    a termination request arrives.

    Raises:
        PipelineError: a prober lost its aggregator.
    """
    cancel = asyncio.Event()
    transport = transport or IcmpTransport(timeout=settings.probe_timeout)

    channels = {
        family: SignalChannel(family, settings.channel_capacity)
        for family in AddressFamily
    }
    source = signal_source or default_signal_source()
    coordinator = ShutdownCoordinator(cancel, source)
    aggregator = Aggregator(channels, cancel, clock=clock)
    probers = [
        Prober(
            family,
            settings.target(family),
            settings.interval,
            settings.hysteresis,
            transport,
            channels[family],
            cancel,
        )
        for family in AddressFamily
    ]

    # Created first so the handlers are in place before any echo goes out;
    # they stay installed until every loop has stopped
    background = {"shutdown": asyncio.create_task(coordinator.run())}

    tasks = {"aggregator": asyncio.create_task(aggregator.run())}
    for prober in probers:
        tasks[f"prober.{prober.family.name.lower()}"] = asyncio.create_task(prober.run())

    try:
        await supervise(tasks, background)
    finally:
        cancel.set()
        source.close()
