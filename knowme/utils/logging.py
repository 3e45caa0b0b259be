"""Structured logging setup using structlog.

Implements a **dual-renderer pattern**: the same shared processor chain
(context vars, log level, timestamps, stack info) feeds into either a
coloured ConsoleRenderer for local development or a JSONRenderer for
production.  The renderer is picked from the ``app_env`` argument (the
``APP_ENV`` environment variable when called without one), or forced via
``json_output``.

Standard-library ``logging`` is rewired through the same structlog
formatter so that httpx, openai and uvicorn produce identically formatted
output.

Secrets never reach a renderer: :func:`redact_secrets` sits in the shared
chain and masks share tokens and API keys on every event.
"""

import logging
import os
import re
import sys
from typing import Any

import structlog

# Share tokens keep a short prefix so log lines can still be correlated.
_PREFIXED_KEYS = frozenset({"token"})
_MASKED_KEYS = frozenset({"api_key", "openai_api_key", "authorization"})
_OPENAI_KEY_RE = re.compile(r"sk-[A-Za-z0-9_-]{8,}")


def redact_secrets(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Mask share tokens and API keys before any renderer sees the event.

    ``token`` values keep their first 8 characters and key-like fields are
    replaced outright.  OpenAI keys quoted inside any string value are blanked.
    """
    for key, value in event_dict.items():
        if value is None:
            continue
        if key in _PREFIXED_KEYS:
            event_dict[key] = _prefix(str(value))
        elif key in _MASKED_KEYS:
            event_dict[key] = "***"
        elif isinstance(value, str) and "sk-" in value:
            event_dict[key] = _OPENAI_KEY_RE.sub("sk-***", value)
    return event_dict


def _prefix(token: str) -> str:
    if not token:
        return token
    return f"{token[:8]}..."


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    app_env: str | None = None,
) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR, FATAL).
        json_output: Force JSON output.
        app_env: Deployment environment; ``"production"`` selects JSON.

    Returns:
        A configured structlog BoundLogger.
    """
    env = app_env or os.environ.get("APP_ENV", "development")
    use_json = json_output or env == "production"

    # Order matters: contextvars first (request-scoped bindings such as
    # document_id), redaction before anything renders, then level/timestamps,
    # then exception formatting.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # The openai SDK logs every HTTP request at INFO; keep it to warnings.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger.

    If structlog has not been configured yet, calls configure_logging() with defaults.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
