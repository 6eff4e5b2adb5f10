from __future__ import annotations
import logging, sys
import structlog

SECRET_KEYS = frozenset({"jwt", "authorization", "token", "access_token"})
REDACTED = "***"

def redact_secrets(logger, method_name, event_dict):
    """Mask bearer tokens, including ones nested in dict values such as metadata."""
    for key, value in list(event_dict.items()):
        if key.lower() in SECRET_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {k: REDACTED if str(k).lower() in SECRET_KEYS else v for k, v in value.items()}
    return event_dict

def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stdout,
        format="%(message)s",
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=True,
    )

def get_logger(name: str = "relay"):
    return structlog.get_logger(name)

def bind_request(route: str, request_id: str | None = None):
    structlog.contextvars.bind_contextvars(route=route, request_id=request_id or "-")

def clear_request():
    structlog.contextvars.clear_contextvars()
