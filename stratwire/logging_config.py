"""Logging configuration for stratwire.

Provides subsystem-level log file routing, secret sanitization,
and structlog + stdlib integration.

Subsystem hierarchy (stdlib dotted names, structlog wraps them):
    root              → ConsoleHandler (terminal)
      └─ stratwire    → RotatingFileHandler → stratwire.log (combined)
           ├─ stratwire.bot       → RFH → bot.log
           ├─ stratwire.strategy  → RFH → strategy.log
           └─ stratwire.transport → RFH → transport.log
"""

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Any, Dict

import structlog

# Subsystem names, each with its own RotatingFileHandler
SUBSYSTEMS = ("bot", "strategy", "transport")

# stdlib logger name prefix for hierarchy-based propagation
LOGGER_PREFIX = "stratwire"

# ---------------------------------------------------------------------------
# Secret sanitization
# ---------------------------------------------------------------------------

_SECRET_PATTERNS = [
    # Telegram bot tokens (123456789:AA...)
    re.compile(r"(?<!\d)\d{6,12}:[A-Za-z0-9_-]{30,}"),
    # Bearer token values in headers
    re.compile(r"Bearer\s+[a-zA-Z0-9_./-]{20,}"),
    # Generic api_key=/token= query parameters
    re.compile(r"(?i)(?<=api_key=)[^&\s]+|(?<=token=)[^&\s]+"),
]

_REDACTED = "***REDACTED***"


def _scrub_value(value: str) -> str:
    """Scrub secrets from a single string value."""
    for pattern in _SECRET_PATTERNS:
        value = pattern.sub(_REDACTED, value)
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that scrubs provider tokens from log events.

    Walks string values (including inside lists, tuples and dicts one
    level deep) and replaces matches with a redacted placeholder.
    """
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _scrub_value(value)
        elif isinstance(value, (list, tuple)):
            event_dict[key] = type(value)(
                _scrub_value(v) if isinstance(v, str) else v
                for v in value
            )
        elif isinstance(value, dict):
            event_dict[key] = {
                k: _scrub_value(v) if isinstance(v, str) else v
                for k, v in value.items()
            }
    return event_dict


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def setup_logging(config=None) -> None:
    """Configure structured logging with subsystem file handlers.

    Sets up:
    1. Root logger: console handler
    2. "stratwire" logger: RotatingFileHandler → logs/stratwire.log
    3. "stratwire.<subsystem>" loggers: individual RotatingFileHandlers

    Args:
        config: Optional Config instance. The first call (before config
                loads) uses defaults with cache_logger_on_first_use=False;
                the second call uses the real config and caches loggers.
    """
    if config is not None:
        log_dir = config.log_dir
        root_level_name = str(config.logging_level).upper()
        subsystem_levels = config.logging_subsystem_levels
        max_bytes = config.logging_max_file_size_mb * 1024 * 1024
        backup_count = config.logging_backup_count
        cache_loggers = True
    else:
        log_dir = Path(__file__).parent.parent / "logs"
        root_level_name = "INFO"
        subsystem_levels = {}
        max_bytes = 10 * 1024 * 1024  # 10 MB
        backup_count = 5
        cache_loggers = False

    root_level = getattr(logging, root_level_name, logging.INFO)

    file_handlers_ok = False
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handlers_ok = True
    except OSError as exc:
        print(
            f"WARNING: Cannot create log directory {log_dir}: {exc}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )

    # Shared formatter for file output (structured, no ANSI colors)
    file_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )

    # 1. Root logger: console only. Stderr, since StdioTransport owns stdout.
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers filter by level
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(root_level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    )
    root_logger.addHandler(console_handler)

    # 2. "stratwire" parent logger: combined log file
    sw_logger = logging.getLogger(LOGGER_PREFIX)
    sw_logger.setLevel(logging.DEBUG)
    sw_logger.handlers.clear()
    sw_logger.propagate = True

    if file_handlers_ok:
        combined_handler = logging.handlers.RotatingFileHandler(
            log_dir / "stratwire.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        combined_handler.setLevel(root_level)
        combined_handler.setFormatter(file_formatter)
        sw_logger.addHandler(combined_handler)

    # 3. Per-subsystem loggers: individual log files
    for subsystem in SUBSYSTEMS:
        sub_logger = logging.getLogger(f"{LOGGER_PREFIX}.{subsystem}")
        sub_level_name = str(subsystem_levels.get(subsystem, "")).upper()
        sub_level = getattr(logging, sub_level_name, root_level) if sub_level_name else root_level
        sub_logger.setLevel(sub_level)
        sub_logger.handlers.clear()
        sub_logger.propagate = True

        if file_handlers_ok:
            sub_handler = logging.handlers.RotatingFileHandler(
                log_dir / f"{subsystem}.log",
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            sub_handler.setLevel(sub_level)
            sub_handler.setFormatter(file_formatter)
            sub_logger.addHandler(sub_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            sanitize_secrets,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )
