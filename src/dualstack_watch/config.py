# --- Standard library imports ---
import os
import argparse
from dataclasses import dataclass
from ipaddress import IPv4Address, IPv6Address
from pathlib import Path

# --- Third-party imports ---
from dotenv import load_dotenv

# --- Project imports ---
from .errors import ConfigError, ResolutionError
from .models import AddressFamily
from .resolver import resolve_targets


# --- Defaults (user configurable) ---
DEFAULT_INTERVAL = 15       # seconds
DEFAULT_HYSTERESIS = 3      # consecutive failures
DEFAULT_TIMEOUT = 2.0       # seconds
DEFAULT_HOST = "google.com"

# --- Pipeline constants (NOT user configurable) ---
CHANNEL_CAPACITY = 4


@dataclass(frozen=True)
class Settings:
    """
    Immutable runtime configuration, built once at startup and handed
    to each component's constructor.
    """
    interval: int
    hysteresis: int
    target_v4: IPv4Address
    target_v6: IPv6Address
    hostname: str = DEFAULT_HOST
    probe_timeout: float = DEFAULT_TIMEOUT
    verbosity: int = 0
    log_dir: Path | None = None
    channel_capacity: int = CHANNEL_CAPACITY

    def __post_init__(self):
        if self.interval < 1:
            raise ConfigError(f"interval must be at least 1 second, got {self.interval}")
        if self.hysteresis < 1:
            raise ConfigError(f"hysteresis must be at least 1, got {self.hysteresis}")
        if self.probe_timeout <= 0:
            raise ConfigError(f"probe timeout must be positive, got {self.probe_timeout}")
        if self.channel_capacity < 1:
            raise ConfigError(f"channel capacity must be at least 1, got {self.channel_capacity}")

    def target(self, family: AddressFamily) -> IPv4Address | IPv6Address:
        return self.target_v4 if family is AddressFamily.V4 else self.target_v6


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default

def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default

def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number

def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number

def log_directory(value: str) -> Path:
    """
    Validate a log output directory.

    Errors if the path doesn't exist or isn't a directory; returns it absolute.
    """
    path = Path(value)
    if not path.exists():
        raise argparse.ArgumentTypeError("Given path does not exist")
    if not path.is_dir():
        raise argparse.ArgumentTypeError("Given path is not a directory")
    return path.resolve()


def build_parser() -> argparse.ArgumentParser:
    """
    Command-line interface. Defaults come from the environment (and a
    local .env file) so the service can run unattended without flags.
    """
    env_log_dir = os.getenv("LOG_DIR")

    parser = argparse.ArgumentParser(
        prog="dualstack-watch",
        description="Continuously ping a host over IPv4 and IPv6 and log sustained outages.",
    )
    parser.add_argument(
        "-i", "--interval",
        type=_positive_int,
        default=_env_int("PROBE_INTERVAL", DEFAULT_INTERVAL),
        help="interval between ping attempts in seconds",
    )
    parser.add_argument(
        "-t", "--hysteresis",
        type=_positive_int,
        default=_env_int("HYSTERESIS", DEFAULT_HYSTERESIS),
        help="consecutive failed pings before an address family is reported down",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=_env_float("PROBE_TIMEOUT", DEFAULT_TIMEOUT),
        help="seconds to wait for each echo reply",
    )
    parser.add_argument(
        "-o", "--out-dir",
        type=log_directory,
        default=env_log_dir or None,
        help="output directory for logs",
    )
    parser.add_argument(
        "-v",
        dest="verbosity",
        action="count",
        default=_env_int("LOG_VERBOSITY", 0),
        help="verbosity (-v debug, -vv trace)",
    )
    parser.add_argument(
        "hostname",
        nargs="?",
        default=os.getenv("TARGET_HOST", DEFAULT_HOST),
        help='hostname used for pinging, either a URL like "https://youtube.com" '
             'or a domain name like "youtube.com"',
    )
    return parser


def load_settings(argv=None, resolve=resolve_targets) -> Settings:
    """
    Parse the command line, resolve the target, and freeze the result.

    Configuration and resolution failures are reported as usage
    errors (exit status 2) before any monitoring starts.
    """
    load_dotenv()
    parser = build_parser()
    # String defaults (LOG_DIR) go through `type` too, so they are validated here
    args = parser.parse_args(argv)

    # Numeric environment defaults skip `type`; reject them before any DNS traffic
    if args.interval < 1:
        parser.error(f"interval must be at least 1 second, got {args.interval}")
    if args.hysteresis < 1:
        parser.error(f"hysteresis must be at least 1, got {args.hysteresis}")
    if args.timeout <= 0:
        parser.error(f"probe timeout must be positive, got {args.timeout}")

    try:
        target_v4, target_v6 = resolve(args.hostname)
        return Settings(
            interval=args.interval,
            hysteresis=args.hysteresis,
            target_v4=target_v4,
            target_v6=target_v6,
            hostname=args.hostname,
            probe_timeout=args.timeout,
            verbosity=args.verbosity,
            log_dir=args.out_dir,
        )
    except (ResolutionError, ConfigError) as e:
        parser.error(str(e))
