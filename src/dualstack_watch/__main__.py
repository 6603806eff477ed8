# --- Standard library imports ---
import sys
import asyncio

# --- Project imports ---
from . import monitor
from .config import load_settings
from .errors import PipelineError
from .logger import get_logger, level_for_verbosity, setup_logging


def main(argv=None) -> int:
    """
    Entry point for the dual-stack reachability monitor.

    Parses configuration and resolves the target (usage errors exit 2),
    configures logging, then probes until a termination request arrives.

    Returns:
        0 after a clean shutdown, 1 if the probe pipeline broke.
    """
    settings = load_settings(argv)

    setup_logging(level=level_for_verbosity(settings.verbosity), log_dir=settings.log_dir)
    logger = get_logger("main")
    logger.info("logging started")
    logger.debug(f"Python version: {sys.version}")
    logger.info(f"pinging {settings.target_v4} for IPv4")
    logger.info(f"pinging {settings.target_v6} for IPv6")
    logger.debug(
        f"interval={settings.interval}s hysteresis={settings.hysteresis} "
        f"timeout={settings.probe_timeout}s host={settings.hostname}"
    )

    try:
        asyncio.run(monitor.run(settings))
    except PipelineError:
        logger.critical("Probe pipeline broke; exiting", exc_info=True)
        return 1
    except Exception as e:
        logger.critical(f"Unhandled exception in monitor: {e}", exc_info=True)
        return 1

    logger.info("logging stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
