"""Extract the submission message from an inbound trigger payload."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol

from .api.exceptions import EventParseError

LOGGER = logging.getLogger(__name__)


class EventSource(Protocol):
    """Capability interface for notification transports."""

    def message(self, raw_event: Any) -> str:
        """Return the submission message text carried by ``raw_event``."""
        ...


class SNSEventSource:
    """Read the message of the first record of an SNS-triggered Lambda event.

    Only ``Records[0]`` is consumed; additional records in a batch are
    reported and left unprocessed.
    """

    def message(self, raw_event: Any) -> str:
        if not isinstance(raw_event, Mapping):
            raise EventParseError("SNS event must be a mapping with a 'Records' list")
        records = raw_event.get("Records")
        if not isinstance(records, list) or not records:
            raise EventParseError("SNS event carries no records")
        if len(records) > 1:
            LOGGER.warning(
                "SNS event carries %d records; only the first is processed", len(records)
            )

        first = records[0]
        sns = first.get("Sns") if isinstance(first, Mapping) else None
        message = sns.get("Message") if isinstance(sns, Mapping) else None
        if not isinstance(message, str):
            raise EventParseError("SNS record has no 'Sns.Message' string")
        return message


class DirectEventSource:
    """Treat the raw event itself as the submission message (local runs)."""

    def message(self, raw_event: Any) -> str:
        if isinstance(raw_event, str):
            return raw_event
        if isinstance(raw_event, bytes):
            return raw_event.decode("utf-8", errors="replace")
        try:
            return json.dumps(raw_event)
        except (TypeError, ValueError) as exc:
            raise EventParseError(f"Event is not JSON-serializable: {exc}") from exc


def serialize_event(raw_event: Any) -> str:
    """Serialize the inbound event for the audit row and the return payload."""
    if isinstance(raw_event, str):
        return raw_event
    return json.dumps(raw_event, default=str)
