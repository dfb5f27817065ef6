"""Aura logging setup.

Three output modes:
- Human mode: [LEVEL] message
- Verbose mode: [LEVEL][HH:MM:SS] logger: message
- CI/JSON mode: {"level":"...","ts":"...","logger":"...","msg":"..."}

Structured fields whose name marks them as a credential are masked before
they reach any output.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

ROOT_LOGGER = "aura"

# Structured field names that must never be written in clear
SECRET_FIELDS = frozenset({"api_key", "apiKey", "password", "token"})

HUMAN_FORMAT = "[%(levelname)s] %(message)s"
VERBOSE_FORMAT = "[%(levelname)s][%(asctime)s] %(name)s: %(message)s"


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


def mask_secret(value: Any) -> str:
    """Mask a credential, keeping only the last four characters."""
    text = str(value or "")
    if len(text) <= 4:
        return "****" if text else ""
    return "****" + text[-4:]


def redact(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of data with secret fields masked."""
    return {k: mask_secret(v) if k in SECRET_FIELDS else v for k, v in data.items()}


class JSONFormatter(logging.Formatter):
    """One JSON object per line; structured fields are redacted."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.now(UTC).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_entry.update(redact(record.extra_data))

        return json.dumps(log_entry)


class AuraLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(self, level: int, msg: str, **kwargs: Any) -> None:
        """Log msg with extra fields that only the JSON formatter emits.

        Secret fields (see SECRET_FIELDS) are masked on output.
        """
        if not self.isEnabledFor(level):
            return
        record = self.makeRecord(self.name, level, "(unknown)", 0, msg, (), None)
        if kwargs:
            record.extra_data = kwargs  # type: ignore[attr-defined]
        self.handle(record)


logging.setLoggerClass(AuraLogger)


def get_logger(name: str) -> AuraLogger:
    """Get a logger under the aura hierarchy that supports structured()."""
    return logging.getLogger(name)  # type: ignore[return-value]


def _formatter_for(mode: LogMode) -> logging.Formatter:
    if mode == LogMode.JSON:
        return JSONFormatter()
    if mode == LogMode.VERBOSE:
        return logging.Formatter(VERBOSE_FORMAT, datefmt="%H:%M:%S")
    return logging.Formatter(HUMAN_FORMAT)


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure the aura logger hierarchy.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr, keeping stdout for command output)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(_formatter_for(mode))
    logger.addHandler(handler)


def configure_from_cli(
    verbose: bool = False,
    quiet: bool = False,
    ci: bool = False,
) -> None:
    """Configure logging based on CLI flags.

    --ci selects JSON lines, --verbose adds timestamps and DEBUG, and
    --quiet raises the threshold to WARNING whatever the mode.
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    setup_logging(mode=mode, level=level)
