"""
File handler setup for the structured logging system.

Routes stdlib logging records (which structlog renders into) to rotating
files under <log_base>/<environment>/, with a separate errors.log that
captures WARNING and above from every module.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_SIZE_UNITS = {"KB": 1024, "MB": 1024 * 1024, "GB": 1024 * 1024 * 1024}


def parse_size(value: str | int) -> int:
    """Parse a human size such as '100MB' into bytes."""
    if isinstance(value, int):
        return value
    text = str(value).strip().upper()
    for unit, multiplier in _SIZE_UNITS.items():
        if text.endswith(unit):
            return int(float(text[: -len(unit)]) * multiplier)
    return int(text)


def resolve_log_base(log_base: str) -> Path:
    """Resolve the log base directory, relative paths anchored at the working directory."""
    path = Path(log_base)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def setup_file_logging(environment: str, log_config: dict[str, Any], log_level: str) -> Path:
    """
    Configure stdlib handlers for console and rotating file output.

    Args:
        environment: Environment name, used as the log subdirectory
        log_config: Logging configuration dictionary
        log_level: Root log level name

    Returns:
        The directory log files are written to
    """
    log_dir = resolve_log_base(log_config.get("log_base", "logs")) / environment
    log_dir.mkdir(parents=True, exist_ok=True)

    rotation = log_config.get("rotation", {})
    max_bytes = parse_size(rotation.get("max_size", "100MB"))
    backup_count = int(rotation.get("backup_count", 5))

    # structlog renders the full line before it reaches stdlib
    formatter = logging.Formatter("%(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    main_handler = RotatingFileHandler(
        log_dir / "relay.log", maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    main_handler.setFormatter(formatter)
    root_logger.addHandler(main_handler)

    errors_handler = RotatingFileHandler(
        log_dir / "errors.log", maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    errors_handler.setLevel(logging.WARNING)
    errors_handler.setFormatter(formatter)
    root_logger.addHandler(errors_handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    return log_dir
