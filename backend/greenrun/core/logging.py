import logging
import re
from typing import Any

import structlog

SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # API keys and tokens
    (
        re.compile(
            r'(["\']?(?:api[_-]?|auth[_-]?)?(?:key|token|secret|password|passwd|pwd)["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)(["\']?)',
            re.IGNORECASE,
        ),
        r"\1***API_KEY_OR_TOKEN_REDACTED***\3",
    ),
    # Bearer tokens
    (re.compile(r"(Bearer\s+)([A-Za-z0-9\-_.]+)", re.IGNORECASE), r"\1***BEARER_TOKEN_REDACTED***"),
    # JWT tokens
    (re.compile(r"(eyJ[A-Za-z0-9\-_]+\.eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+)"), r"***JWT_REDACTED***"),
    # Redis / generic URLs with credentials
    (re.compile(r"((?:rediss?|https?|s3)://[^:/\s]+:)([^@\s]+)(@)", re.IGNORECASE), r"\1***URL_CREDS_REDACTED***\3"),
    # AWS-style access key ids
    (re.compile(r"\b(AKIA|ASIA)[A-Z0-9]{16}\b"), r"***ACCESS_KEY_ID_REDACTED***"),
]


def sanitize_sensitive_data(data: str) -> str:
    """Remove or mask sensitive information from log data."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        data = pattern.sub(replacement, data)
    return data


def redact_sensitive_values(
    _logger: Any, _method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """structlog processor applying `sanitize_sensitive_data` to every string value."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = sanitize_sensitive_data(value)
    return event_dict


def setup_logger(log_level: str, log_file: str | None = None) -> structlog.stdlib.BoundLogger:
    """Configure structlog on top of stdlib logging and return the application logger.

    Records are rendered as JSON lines to stderr and, when `log_file` is given,
    appended to that file as well (the executor mirrors its progress there so the
    file can be shipped to object storage).
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_sensitive_values,
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
    )

    root = logging.getLogger()
    root.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.INFO)
    root.setLevel(level)

    logger: structlog.stdlib.BoundLogger = structlog.get_logger("greenrun")
    return logger
