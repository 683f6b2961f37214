"""Structured logging helpers shared across the submission relay."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from .settings import LogFormat

__all__ = ["JSONFormatter", "mask_sensitive_data", "setup_logging"]

ROOT_LOGGER_NAME = "SubmissionRelay"
MASK = "***masked***"

_SENSITIVE_KEYS = {
    "authorization",
    "api_key",
    "apikey",
    "mailgun_pvt_api_key",
    "mailgun_api_key",
    "gcp_creds_json",
    "private_key",
    "token",
    "secret",
    "password",
}


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with common secret fields masked."""

    def _mask_value(value: object, key_hint: Optional[str] = None) -> object:
        if isinstance(value, dict):
            return {
                sub_key: _mask_value(sub_value, str(sub_key).lower())
                for sub_key, sub_value in value.items()
            }
        if isinstance(value, list):
            return [_mask_value(item, key_hint) for item in value]
        if isinstance(value, tuple):
            return tuple(_mask_value(item, key_hint) for item in value)
        if isinstance(value, str):
            if key_hint in _SENSITIVE_KEYS:
                return MASK
            lowered = value.lower()
            if "bearer " in lowered or "basic " in lowered:
                return MASK
            if '"private_key"' in lowered:
                return MASK
        return value

    masked: Dict[str, object] = {}
    for key, value in payload.items():
        lower = key.lower()
        if lower in _SENSITIVE_KEYS:
            masked[key] = MASK
        else:
            masked[key] = _mask_value(value, lower)
    return masked


class JSONFormatter(logging.Formatter):
    """Formatter emitting masked JSON log entries for relay invocations."""

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON string with relay-specific fields."""

        now = datetime.now(timezone.utc)
        payload = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "stage": getattr(record, "stage", None),
            "submission_id": getattr(record, "submission_id", None),
        }
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            payload.update(record.extra_fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(payload), default=str)


def setup_logging(
    *,
    level: str = "INFO",
    fmt: Union[LogFormat, str] = LogFormat.CONSOLE,
    propagate: bool = False,
) -> logging.Logger:
    """Configure the ``SubmissionRelay`` logger with a single managed stream handler.

    Calling this repeatedly replaces the handler it installed earlier, so warm
    Lambda containers do not accumulate duplicate output.
    """

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_relay_managed", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if LogFormat(fmt) is LogFormat.JSON:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler._relay_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

    logger.propagate = propagate
    return logger
