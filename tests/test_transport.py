import errno
import asyncio

import pytest
from unittest.mock import patch

from conftest import V4, V6
from dualstack_watch.models import Failure, FailureReason, Success
from dualstack_watch.transport import IcmpTransport, classify_error


class FakePing:
    """Stand-in for gufo.ping.Ping returning scripted RTTs or raising."""
    result = 0.021
    delay = 0.0

    def __init__(self, size=64, timeout=1.0):
        self.size = size
        self.timeout = timeout
        self.addresses = []

    async def ping(self, addr):
        self.addresses.append(addr)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


@pytest.fixture
def fake_ping():
    FakePing.result = 0.021
    FakePing.delay = 0.0
    with patch("dualstack_watch.transport.Ping", FakePing):
        yield FakePing


# =================================
# TEST GROUP: Failure Classification
# =================================
# Function: classify_error()
# --------------------------
@pytest.mark.parametrize(
    "exc, expected_reason",
    [
        # ⏱️ No reply in time
        (asyncio.TimeoutError(), FailureReason.TIMEOUT),

        # 🚫 Raw sockets need privileges
        (PermissionError(errno.EPERM, "Operation not permitted"), FailureReason.PERMISSION),

        # 🛣️ No route to the destination
        (OSError(errno.ENETUNREACH, "Network is unreachable"), FailureReason.UNREACHABLE),
        (OSError(errno.EHOSTUNREACH, "No route to host"), FailureReason.UNREACHABLE),
        (OSError(errno.EADDRNOTAVAIL, "Cannot assign requested address"), FailureReason.UNREACHABLE),

        # 💥 Anything else from the socket layer
        (OSError(errno.EBADF, "Bad file descriptor"), FailureReason.TRANSPORT),
    ],
)

def test_classify_error(exc, expected_reason):
    assert classify_error(exc).reason is expected_reason


# ============================
# TEST GROUP: ICMP Transport
# ============================
# Method: IcmpTransport.echo()
# ----------------------------
@pytest.mark.asyncio
async def test_echo_success(fake_ping):
    transport = IcmpTransport(timeout=1.0)

    outcome = await transport.echo(V6)

    assert outcome == Success(latency=0.021)
    assert transport.pinger.addresses == [str(V6)]


@pytest.mark.asyncio
async def test_echo_no_reply_is_timeout(fake_ping):
    fake_ping.result = None
    transport = IcmpTransport(timeout=1.0)

    outcome = await transport.echo(V4)

    assert isinstance(outcome, Failure)
    assert outcome.reason is FailureReason.TIMEOUT


@pytest.mark.asyncio
async def test_echo_permission_error_is_a_value(fake_ping):
    """Socket errors come back as Failure values, never as exceptions"""
    fake_ping.result = PermissionError(errno.EPERM, "Operation not permitted")
    transport = IcmpTransport(timeout=1.0)

    outcome = await transport.echo(V4)

    assert outcome.reason is FailureReason.PERMISSION


@pytest.mark.asyncio
async def test_echo_bounded_by_timeout(fake_ping):
    """A hung pinger cannot block the prober past timeout + grace"""
    fake_ping.delay = 5.0
    transport = IcmpTransport(timeout=0.01)

    with patch("dualstack_watch.transport.TIMEOUT_GRACE", 0.01):
        outcome = await asyncio.wait_for(transport.echo(V4), timeout=1)

    assert outcome.reason is FailureReason.TIMEOUT


@pytest.mark.asyncio
async def test_echo_unexpected_library_error_is_transport_failure(fake_ping):
    """Errors outside the socket layer must not escape and stop the prober"""
    fake_ping.result = RuntimeError("malformed reply")
    transport = IcmpTransport(timeout=1.0)

    outcome = await transport.echo(V6)

    assert outcome.reason is FailureReason.TRANSPORT
    assert "RuntimeError" in outcome.detail
