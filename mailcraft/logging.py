"""Structured logging setup using structlog.

Transports log envelope details (``mail_from``, ``rcpt_to``).  With
``mask_addresses`` enabled the local part of every address in those fields
is replaced before rendering, so recipient lists can be logged in
production without leaking mailbox names.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

from .config import LoggingConfig

LIBRARY_LOGGER = "mailcraft"

ADDRESS_FIELDS = ("mail_from", "rcpt_to", "sender", "recipient")
_LOCAL_PART = re.compile(r"[^\s<>:@]+@")


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        return _LOCAL_PART.sub("***@", value)
    if isinstance(value, (list, tuple)):
        return [_mask(item) for item in value]
    return value


def mask_addresses(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """structlog processor hiding local parts in the envelope fields."""
    for key in ADDRESS_FIELDS:
        if key in event_dict:
            event_dict[key] = _mask(event_dict[key])
    return event_dict


def setup_logging(
    *,
    json: bool = True,
    level: str = "INFO",
    mask: bool = False,
    library_level: str | None = None,
) -> None:
    """Configure structlog for an application sending mail.

    Parameters
    ----------
    json:
        If *True* (the default), output JSON lines.  If *False*, use a
        human-friendly console renderer.
    level:
        Root log level name (e.g. ``"DEBUG"``, ``"INFO"``).
    mask:
        Run :func:`mask_addresses` over every event.
    library_level:
        Separate level for the ``mailcraft`` logger, e.g. ``"DEBUG"`` to
        see ``email_built`` events while the root stays at INFO.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if mask:
        shared_processors.append(mask_addresses)

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    library = logging.getLogger(LIBRARY_LOGGER)
    library.setLevel(library_level.upper() if library_level else logging.NOTSET)


def setup_logging_from_config(config: LoggingConfig | None = None) -> None:
    """Apply :class:`LoggingConfig` (read from ``MAILCRAFT_LOG_*`` by default)."""
    config = config or LoggingConfig()
    setup_logging(
        json=config.json_output,
        level=config.level,
        mask=config.mask_addresses,
        library_level=config.library_level,
    )
