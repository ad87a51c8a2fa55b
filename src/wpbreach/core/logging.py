# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Logging setup for scans.

Log lines quote PHP source: skipped files, matched snippets, detector
errors. Plugin code routinely carries ``wp-config.php`` credentials,
salts, nonces and third-party API keys, so every handler installed by
:func:`configure_logging` runs :class:`SecretMaskingFilter` first.
"""

import json
import logging
import re
import sys
from typing import IO, Any, NamedTuple

LOGGER_NAME = "wpbreach"
HANDLER_NAME = "wpbreach-console"
MASK = "[REDACTED]"

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Extra attributes copied into JSON lines, e.g. logger.warning(..., extra={"file_path": path})
CONTEXT_FIELDS = ("session_id", "file_path", "detector")

_WP_CONFIG_SECRETS = (
    "DB_PASSWORD",
    "DB_USER",
    "AUTH_KEY",
    "SECURE_AUTH_KEY",
    "LOGGED_IN_KEY",
    "NONCE_KEY",
    "AUTH_SALT",
    "SECURE_AUTH_SALT",
    "LOGGED_IN_SALT",
    "NONCE_SALT",
)


class Secret(NamedTuple):
    """A secret shape. Group 1 is kept, the rest of the match is masked."""

    name: str
    pattern: re.Pattern[str]


SECRETS: tuple[Secret, ...] = (
    Secret(
        "wp_config_define",
        re.compile(
            r"""(define\s*\(\s*['"](?:""" + "|".join(_WP_CONFIG_SECRETS) + r""")['"]\s*,\s*['"])[^'"]*""",
            re.IGNORECASE,
        ),
    ),
    Secret("nonce_parameter", re.compile(r"\b((?:_wpnonce|_ajax_nonce|security)=)[\w-]+")),
    Secret(
        "credential_assignment",
        re.compile(
            r"""(\$?\w*(?:password|passwd|secret|token|api_?key)\w*['"]?\s*(?:=>|=)\s*['"])[^'"]+""",
            re.IGNORECASE,
        ),
    ),
    Secret("bearer_token", re.compile(r"(Bearer\s+)[\w\-.~+/]+=*")),
    Secret(
        "provider_key",
        re.compile(r"\b((?:sk|pk|rk)_(?:live|test)_|sk-|ghp_|github_pat_|xox[abp]-|AKIA)[\w-]{8,}"),
    ),
)


def mask_secrets(text: str) -> str:
    """Replace every known secret shape in *text* with ``[REDACTED]``."""
    for secret in SECRETS:
        text = secret.pattern.sub(r"\g<1>" + MASK, text)
    return text


class SecretMaskingFilter(logging.Filter):
    """Masks the rendered message and traceback before any formatter sees them."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask_secrets(record.getMessage())
        record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = mask_secrets(logging.Formatter().formatException(record.exc_info))
        return True


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, with scan context attached when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry["exception"] = record.exc_text or self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "text", stream: IO[str] | None = None) -> logging.Handler:
    """Install the wpbreach console handler, replacing one installed earlier.

    Handlers added by other code are left alone. Unknown levels fall back
    to INFO and any *fmt* other than ``"json"`` gives plain text.
    """
    logger = logging.getLogger(LOGGER_NAME)
    resolved = logging.getLevelName(level.upper())
    logger.setLevel(resolved if isinstance(resolved, int) else logging.INFO)

    for existing in list(logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.addFilter(SecretMaskingFilter())
    handler.setFormatter(JsonLineFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return handler
