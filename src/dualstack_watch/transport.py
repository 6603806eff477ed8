# --- Standard library imports ---
import errno
import asyncio
from ipaddress import IPv4Address, IPv6Address
from typing import Protocol

# --- Third-party imports ---
from gufo.ping import Ping

# --- Project imports ---
from .models import Failure, FailureReason, ProbeOutcome, Success


UNREACHABLE_ERRNOS = frozenset({
    errno.ENETUNREACH,
    errno.EHOSTUNREACH,
    errno.EADDRNOTAVAIL,
})

# Slack on top of the pinger's own timeout before the call is abandoned
TIMEOUT_GRACE = 0.5   # seconds


class ProbeTransport(Protocol):
    """Sends one echo request and reports the outcome. Never raises for network failures."""

    async def echo(self, address: IPv4Address | IPv6Address) -> ProbeOutcome:
        ...


def classify_error(exc: BaseException) -> Failure:
    """
    Map a transport exception onto a coarse FailureReason.
    """
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return Failure(FailureReason.TIMEOUT, "no reply before timeout")
    if isinstance(exc, PermissionError):
        return Failure(FailureReason.PERMISSION, str(exc))
    if isinstance(exc, OSError) and exc.errno in UNREACHABLE_ERRNOS:
        return Failure(FailureReason.UNREACHABLE, str(exc))
    return Failure(FailureReason.TRANSPORT, f"{exc.__class__.__name__}: {exc}")


class IcmpTransport:
    """
    ICMPv4/ICMPv6 echo over gufo-ping.

    One pinger serves both families; it opens a socket per family on
    first use. Raw sockets need CAP_NET_RAW (or root), otherwise every
    probe comes back as a PERMISSION failure.
    """

    def __init__(self, timeout: float, size: int = 64):
        self.timeout = timeout
        self.pinger = Ping(size=size, timeout=timeout)

    async def echo(self, address: IPv4Address | IPv6Address) -> ProbeOutcome:
        try:
            rtt = await asyncio.wait_for(
                self.pinger.ping(str(address)),
                timeout=self.timeout + TIMEOUT_GRACE,
            )
        except Exception as e:
            return classify_error(e)

        if rtt is None:
            return Failure(FailureReason.TIMEOUT, "no reply before timeout")
        return Success(latency=rtt)
