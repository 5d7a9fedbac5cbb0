"""
Logging setup for the analytics service.

Module loggers are created with ``logging.getLogger(__name__)``; this module
configures the root handler once and masks credentials that may end up in
log messages (bearer tokens, emails used for login).
"""

import logging
import re
import sys

_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE)
_EMAIL_RE = re.compile(r"\b([A-Za-z0-9])[A-Za-z0-9._%+\-]*@([A-Za-z0-9.\-]+\.[A-Za-z]{2,})\b")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def mask_sensitive(text: str) -> str:
    """
    Mask bearer tokens and email addresses in a log message.

    Examples:
        >>> mask_sensitive("Authorization: Bearer abc.def.ghi")
        'Authorization: Bearer ***'
        >>> mask_sensitive("login as admin@school.com")
        'login as a***@school.com'
    """
    text = _BEARER_RE.sub(r"\1***", text)
    return _EMAIL_RE.sub(r"\1***@\2", text)


class SensitiveDataFilter(logging.Filter):
    """Rewrites record messages so credentials never reach handlers."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_sensitive(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: mask_sensitive(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            else:
                record.args = tuple(
                    mask_sensitive(a) if isinstance(a, str) else a for a in record.args
                )
        return True


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Safe to call more than once."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root.handlers:
        if getattr(handler, "_analytics_handler", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(SensitiveDataFilter())
    handler._analytics_handler = True
    root.addHandler(handler)

    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
