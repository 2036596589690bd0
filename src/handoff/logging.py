from __future__ import annotations

import errno
import logging
import re
import sys
from typing import Any

import structlog


BOT_TOKEN_RE = re.compile(r"Bot [A-Za-z0-9_.-]{20,}")
INTERACTION_TOKEN_RE = re.compile(
    r"/(interactions|webhooks)/(\d+)/[A-Za-z0-9_.-]{20,}"
)


def redact(text: str) -> str:
    text = BOT_TOKEN_RE.sub("Bot [REDACTED]", text)
    return INTERACTION_TOKEN_RE.sub(r"/\1/\2/[REDACTED]", text)


def redact_token_processor(_, __, event_dict):
    """Processor to redact bot and interaction tokens from log events."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            redacted = redact(value)
            if redacted != value:
                event_dict[key] = redacted
    return event_dict


class SafeStreamHandler(logging.StreamHandler):
    def handleError(self, record: logging.LogRecord) -> None:
        exc = sys.exc_info()[1]
        if isinstance(exc, BrokenPipeError) or (
            isinstance(exc, OSError) and exc.errno == errno.EPIPE
        ):
            try:
                self.stream.close()
            except OSError:
                pass
            return
        super().handleError(record)


def get_logger(name: str | None = None, **initial_values: Any):
    return structlog.get_logger(name, **initial_values)


def setup_logging(*, debug: bool = False) -> None:
    """Configure structlog with console output and token redaction."""

    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_token_processor,
            structlog.dev.ConsoleRenderer(colors=True)
            if debug
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = SafeStreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        handlers=[handler],
        force=True,
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
