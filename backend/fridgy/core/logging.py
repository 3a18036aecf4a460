"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``. ``setup_logging`` installs
a single stream handler with a filter that keeps credentials, tokens and
personal data (e-mail addresses, card numbers) out of the log output.
"""
import logging
import re
from typing import Any

REDACTED = "[REDACTED]"

SENSITIVE_PATTERNS = [
    re.compile(r"api[-_]?key", re.IGNORECASE),
    re.compile(r"auth[-_]?token", re.IGNORECASE),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"credential", re.IGNORECASE),
    re.compile(r"private[-_]?key", re.IGNORECASE),
    re.compile(r"session[-_]?id", re.IGNORECASE),
    re.compile(r"\b(?:\d{4}[-\s]?){3}\d{4}\b"),
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
]

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _is_sensitive_key(key: str) -> bool:
    return any(pattern.search(key) for pattern in SENSITIVE_PATTERNS)


def redact(data: Any) -> Any:
    """Return a copy of ``data`` with sensitive strings and keys masked."""
    if data is None:
        return None
    if isinstance(data, str):
        redacted = data
        for pattern in SENSITIVE_PATTERNS:
            redacted = pattern.sub(REDACTED, redacted)
        return redacted
    if isinstance(data, dict):
        return {
            key: REDACTED if isinstance(key, str) and _is_sensitive_key(key) else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, list | tuple):
        return type(data)(redact(item) for item in data)
    return data


def _redact_arg(arg: Any) -> Any:
    if arg is None or isinstance(arg, bool | int | float):
        return arg
    if isinstance(arg, str | dict | list | tuple):
        return redact(arg)
    # exceptions and other objects are rendered before masking
    return redact(str(arg))


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        else:
            record.msg = redact(str(record.msg))
        if isinstance(record.args, dict):
            record.args = {key: _redact_arg(value) for key, value in redact(record.args).items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(_redact_arg(arg) for arg in record.args)
        if record.exc_info:
            record.exc_text = redact(logging.Formatter().formatException(record.exc_info))
            record.exc_info = None
        elif record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


_configured = False


def setup_logging(level: str | int = "INFO") -> None:
    global _configured
    root = logging.getLogger()
    root.setLevel(level)
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RedactingFilter())
    root.addHandler(handler)
    _configured = True
