# === NAVMAP v1 ===
# {
#   "module": "SubmissionRelay.api.types",
#   "purpose": "Canonical value types shared by the relay pipeline.",
#   "sections": [
#     {
#       "id": "mailstatus",
#       "name": "MailStatus",
#       "anchor": "class-mailstatus",
#       "kind": "class"
#     },
#     {
#       "id": "submissionevent",
#       "name": "SubmissionEvent",
#       "anchor": "class-submissionevent",
#       "kind": "class"
#     },
#     {
#       "id": "pipelineoutcome",
#       "name": "PipelineOutcome",
#       "anchor": "class-pipelineoutcome",
#       "kind": "class"
#     },
#     {
#       "id": "storeack",
#       "name": "StoreAck",
#       "anchor": "class-storeack",
#       "kind": "class"
#     },
#     {
#       "id": "deliveryreceipt",
#       "name": "DeliveryReceipt",
#       "anchor": "class-deliveryreceipt",
#       "kind": "class"
#     },
#     {
#       "id": "auditrecord",
#       "name": "AuditRecord",
#       "anchor": "class-auditrecord",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Canonical Value Types for the Submission Relay

Frozen dataclasses passed between the fetcher, archiver, notifier, auditor
and the orchestrator that sequences them.

Data Flow:
  EventSource.message(raw) → SubmissionEvent.from_message(text)
  fetch(event.submission_url) → bytes
  ObjectStore.store(event.object_key, data) → StoreAck
  classify(...) → MailStatus → render(...) → MailSender.send(...) → DeliveryReceipt
  Auditor.record(...) → AuditRecord

Design Principles:
  - Inbound events are immutable for the lifetime of one invocation
  - Wire names (``SubmissionEmail``, ``MailStatus``...) live only at the edges
  - ``PipelineOutcome`` is in-memory only; ``AuditRecord`` is the sole
    persisted entity
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from .exceptions import EventParseError

# ============================================================================
# STATUS VOCABULARY
# ============================================================================


class MailStatus(IntEnum):
    """Outcome classifier driving the email template and the audit row.

    ``UNKNOWN`` stands in for any value outside the three pipeline outcomes.
    ``INVALID_EVENT`` marks invocations whose inbound message could not be
    parsed; no email is sent for those.
    """

    SUCCESS = 1
    DOWNLOAD_FAILED = -1
    UPLOAD_FAILED = -2
    INVALID_EVENT = -3
    UNKNOWN = 0


# ============================================================================
# INBOUND EVENT
# ============================================================================


@dataclass(frozen=True, slots=True)
class SubmissionEvent:
    """
    One student submission, as announced on the notification queue.

    All attributes are non-empty strings; nothing beyond that is validated.
    """

    submission_email: str
    """Address the status report is mailed to."""

    submission_url: str
    """Remote URL of the submission archive."""

    submission_id: str
    """Submission identifier (last segment of the object key)."""

    assignment_id: str
    """Assignment identifier (first segment of the object key)."""

    user_id: str
    """Submitter identifier (middle segment of the object key)."""

    WIRE_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("SubmissionEmail", "submission_email"),
        ("SubmissionUrl", "submission_url"),
        ("SubmissionId", "submission_id"),
        ("AssignmentId", "assignment_id"),
        ("UserId", "user_id"),
    )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "SubmissionEvent":
        """Build an event from its wire mapping, rejecting missing or blank fields."""
        if not isinstance(payload, Mapping):
            raise EventParseError(
                f"Submission message must be a JSON object, got {type(payload).__name__}"
            )

        values: Dict[str, str] = {}
        missing = []
        for wire_name, attr in cls.WIRE_FIELDS:
            value = payload.get(wire_name)
            if not isinstance(value, str) or not value.strip():
                missing.append(wire_name)
                continue
            values[attr] = value
        if missing:
            raise EventParseError(
                f"Submission message is missing required fields: {', '.join(missing)}"
            )
        return cls(**values)

    @classmethod
    def from_message(cls, message: str) -> "SubmissionEvent":
        """Parse the JSON text carried by a queue message."""
        try:
            payload = json.loads(message)
        except (TypeError, ValueError) as exc:
            raise EventParseError(f"Submission message is not valid JSON: {exc}") from exc
        return cls.from_mapping(payload)

    def to_wire(self) -> Dict[str, str]:
        """Return the event keyed by its wire field names."""
        return {wire_name: getattr(self, attr) for wire_name, attr in self.WIRE_FIELDS}

    @property
    def object_key(self) -> str:
        """Object-store key: ``{AssignmentId}/{UserId}/{SubmissionId}``."""
        return f"{self.assignment_id}/{self.user_id}/{self.submission_id}"


# ============================================================================
# PIPELINE RESULTS
# ============================================================================


@dataclass(slots=True)
class PipelineOutcome:
    """In-memory outcome threaded through one invocation (never persisted)."""

    status: MailStatus
    storage_path: str = ""
    error: Optional[BaseException] = None


@dataclass(frozen=True, slots=True)
class StoreAck:
    """Acknowledgement returned by an object store after a successful write."""

    uri: str
    """Fully-qualified object URI, e.g. ``gs://bucket/A1/U1/S1``."""

    bytes_written: int


@dataclass(frozen=True, slots=True)
class DeliveryReceipt:
    """Provider reply for an accepted email."""

    response: str
    """Raw provider response text (e.g. ``Queued. Thank you.``)."""

    message_id: str


# ============================================================================
# AUDIT RECORD
# ============================================================================


@dataclass(frozen=True, slots=True)
class AuditRecord:
    """
    Flat, denormalized summary of one invocation.

    Written exactly once per invocation by the auditor and never read back.
    """

    message_id: str
    response: str
    error: str
    request_metadata: str
    is_mail_sent: bool
    mail_status: int
    storage_path: str = ""

    def to_item(self) -> Dict[str, Any]:
        """Render the table item using the audit table's attribute names."""
        return {
            "MessageId": self.message_id,
            "Response": self.response,
            "Error": self.error,
            "RequestMetadata": self.request_metadata,
            "IsMailSent": self.is_mail_sent,
            "MailStatus": int(self.mail_status),
            "StoragePath": self.storage_path,
        }
