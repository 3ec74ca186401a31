"""
structlog setup for SolMate.

Every record, whether it comes from structlog or plain ``logging``, goes
through one processor chain and one stdout handler. Wallet payloads that
could be replayed (signed transactions, signatures the browser sends back)
and API credentials are masked before rendering.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog

from .config import settings

SERVICE_NAME = "solmate"

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({
    "api_key",
    "authorization",
    "cf_api_token",
    "signed_transaction",
    "signedtransaction",
    "swap_transaction",
    "swaptransaction",
})

QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "anthropic")


def add_service_name(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def redact_sensitive(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask bound values whose key names a credential or signed payload."""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS and event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def _use_console(level: int, log_format: str) -> bool:
    if log_format == "console":
        return True
    if log_format == "json":
        return False
    return level == logging.DEBUG


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Override log level (default: settings.log_level)
        log_format: ``json``, ``console`` or ``auto`` (default: settings.log_format)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    console = _use_console(level, (log_format or settings.log_format).lower())

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_name,
        redact_sensitive,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if console:
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
