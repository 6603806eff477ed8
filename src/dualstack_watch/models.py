# --- Standard library imports ---
from dataclasses import dataclass
from enum import Enum, auto


class AddressFamily(Enum):
    V4 = "IPv4"
    V6 = "IPv6"

    def __str__(self) -> str:
        return self.value


class FailureReason(Enum):
    """
    Coarse probe failure classes.

    Every reason counts identically toward the consecutive-failure
    counter; the distinction only shows up in diagnostic logs.
    """
    TIMEOUT = auto()
    UNREACHABLE = auto()
    PERMISSION = auto()
    TRANSPORT = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Success:
    latency: float  # seconds

    @property
    def latency_ms(self) -> int:
        return int(self.latency * 1000)


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    detail: str = ""


ProbeOutcome = Success | Failure


class CombinedState(Enum):
    """
    Joint reachability across both address families.

    Invariants:
      - A pure function of (v4_down, v6_down), see `from_signals`
      - No memory beyond the two latest DownSignals
    """
    HEALTHY = auto()
    V4_DOWN = auto()
    V6_DOWN = auto()
    FULLY_DOWN = auto()

    @classmethod
    def from_signals(cls, v4_down: bool, v6_down: bool) -> "CombinedState":
        match (v4_down, v6_down):
            case (True, True):
                return cls.FULLY_DOWN
            case (True, False):
                return cls.V4_DOWN
            case (False, True):
                return cls.V6_DOWN
            case _:
                return cls.HEALTHY

    def is_down(self, family: AddressFamily) -> bool:
        if self is CombinedState.FULLY_DOWN:
            return True
        if family is AddressFamily.V4:
            return self is CombinedState.V4_DOWN
        return self is CombinedState.V6_DOWN

    def __str__(self) -> str:
        return self.name


class TransitionKind(Enum):
    FAMILY_DOWN = auto()
    NETWORK_DOWN = auto()
    FAMILY_UP = auto()
    NETWORK_UP = auto()


@dataclass(frozen=True)
class Transition:
    """
    One edge-triggered reachability event.

    `family` is None for the network-wide kinds. `duration` is only
    set on recoveries, and only when an outage clock was running.
    """
    kind: TransitionKind
    family: AddressFamily | None = None
    duration: float | None = None

    @property
    def is_recovery(self) -> bool:
        return self.kind in (TransitionKind.FAMILY_UP, TransitionKind.NETWORK_UP)


def format_duration(seconds: float) -> str:
    """Render elapsed seconds as HH:MM:SS (hours are not capped at 24)."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02}:{minutes:02}:{secs:02}"
