# === NAVMAP v1 ===
# {
#   "module": "SubmissionRelay.api.__init__",
#   "purpose": "Submission relay API surface.",
#   "sections": []
# }
# === /NAVMAP ===

"""
Submission Relay API Surface

Stable value types and the exception taxonomy shared by every pipeline
component:
- SubmissionEvent: inbound unit of work
- MailStatus: outcome classifier
- PipelineOutcome / StoreAck / DeliveryReceipt: in-memory results
- AuditRecord: the persisted summary row
"""

from .exceptions import (
    AuditWriteError,
    DeliveryError,
    EventParseError,
    FetchError,
    ReadError,
    RelayError,
    StoreCloseError,
    StoreConnectError,
    StoreError,
    StoreWriteError,
    TransportError,
    UnsupportedContentType,
)
from .types import (
    AuditRecord,
    DeliveryReceipt,
    MailStatus,
    PipelineOutcome,
    StoreAck,
    SubmissionEvent,
)

__all__ = [
    # Core dataclasses
    "SubmissionEvent",
    "PipelineOutcome",
    "StoreAck",
    "DeliveryReceipt",
    "AuditRecord",
    # Vocabulary
    "MailStatus",
    # Exceptions
    "RelayError",
    "EventParseError",
    "FetchError",
    "TransportError",
    "UnsupportedContentType",
    "ReadError",
    "StoreError",
    "StoreConnectError",
    "StoreWriteError",
    "StoreCloseError",
    "DeliveryError",
    "AuditWriteError",
]
