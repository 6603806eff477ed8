# --- Standard library imports ---
import asyncio

# --- Project imports ---
from .errors import ChannelClosed
from .models import AddressFamily


class SignalChannel:
    """
    Bounded, ordered, single-producer/single-consumer channel carrying
    one address family's DownSignals to the aggregator.

    Invariants:
      - FIFO: values arrive in the order they were sent
      - A full channel blocks the sender (backpressure), it never drops
      - Once the consumer closes it, every send raises ChannelClosed,
        including a send already blocked on a full queue
    """

    def __init__(self, family: AddressFamily, capacity: int):
        self.family = family
        self._queue: asyncio.Queue[bool] = asyncio.Queue(maxsize=capacity)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Called by the consumer when it stops receiving."""
        self._closed.set()

    async def send(self, down: bool) -> None:
        if self.closed:
            raise ChannelClosed(f"{self.family} channel has no receiver")

        try:
            self._queue.put_nowait(down)
            return
        except asyncio.QueueFull:
            pass

        put = asyncio.ensure_future(self._queue.put(down))
        gone = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({put, gone}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            gone.cancel()
            if not put.done():
                put.cancel()

        if not put.done() or put.cancelled():
            raise ChannelClosed(f"{self.family} channel has no receiver")

    async def receive(self) -> bool:
        return await self._queue.get()

    def qsize(self) -> int:
        return self._queue.qsize()
