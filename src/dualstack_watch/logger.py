# --- Standard library imports ---
import os
import sys
import gzip
import shutil
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path


# --- Custom log levels ---
TRACE = 5   # Below DEBUG (10)
logging.addLevelName(TRACE, "TRACE")

def trace(self, message, *args, **kwargs):
    """Add `trace` method to Logger for raw probe results."""
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, stacklevel=2, **kwargs)

logging.Logger.trace = trace

# --- Format configuration constants ---
LOG_LEVEL_EMOJIS = {
    TRACE: "🔬",
    logging.DEBUG: "🧱",
    logging.INFO: "🟢",
    logging.WARNING: "⚠️ ",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

LEVEL_NAME_MAP = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

VERBOSITY_LEVELS = {
    0: logging.INFO,
    1: logging.DEBUG,
}

LOG_FILE_NAME = "dualstack_watch.log"
LOG_FILE_BACKUPS = 30   # days of compressed logs kept

# --- Formatters ---
class EmojiFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        """
        Formatter that prepends an emoji per
        log level and shortens log level names.
        """
        record.levelemoji = LOG_LEVEL_EMOJIS.get(record.levelno, "")
        record.levelname = LEVEL_NAME_MAP.get(record.levelname, record.levelname)
        return super().format(record)

class PlainFormatter(logging.Formatter):
    """File formatter: same layout as the console, without emoji decorations."""
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = LEVEL_NAME_MAP.get(record.levelname, record.levelname)
        return super().format(record)

# --- Rotation: keep rotated days gzip-compressed ---
def gzip_namer(name: str) -> str:
    return name + ".gz"

def gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as plain, gzip.open(dest, "wb") as packed:
        shutil.copyfileobj(plain, packed)
    os.remove(source)

# --- Public logging setup API ---
def level_for_verbosity(verbosity: int) -> int:
    """Map a -v count to a log level (0 → INFO, 1 → DEBUG, 2+ → TRACE)."""
    return VERBOSITY_LEVELS.get(verbosity, TRACE if verbosity > 1 else logging.INFO)

def setup_logging(level=logging.INFO, log_dir: Path | None = None) -> None:
    """
    Configure global logging with emoji decorations on stdout and,
    when `log_dir` is given, a daily-rotated plain log file in that directory.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = EmojiFormatter(
        fmt="%(asctime)s %(levelemoji)s %(name)s → %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)

    if log_dir is not None:
        file_handler = TimedRotatingFileHandler(
            Path(log_dir) / LOG_FILE_NAME,
            when="midnight",
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setFormatter(PlainFormatter(
            fmt="[%(asctime)s %(name)s %(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        file_handler.namer = gzip_namer
        file_handler.rotator = gzip_rotator
        root.addHandler(file_handler)

def get_logger(name: str) -> logging.Logger:
    """
    Return a namespaced logger for any module.
    """
    return logging.getLogger(f"dualstack_watch.{name}")
