"""
Canonical Exception Types for the Submission Relay

One exception family per pipeline phase. Collaborators raise them; the
orchestrator catches them and converts each into a :class:`MailStatus`
or swallows it after logging. None of them escapes an invocation.

Taxonomy:
  RelayError
  ├── EventParseError          (inbound message unusable)
  ├── FetchError               (download phase)
  │   ├── TransportError
  │   ├── UnsupportedContentType
  │   └── ReadError
  ├── StoreError               (upload phase)
  │   ├── StoreConnectError
  │   ├── StoreWriteError
  │   └── StoreCloseError
  ├── DeliveryError            (notify phase)
  └── AuditWriteError          (audit phase, marshal or put)
"""

from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    """Base class for every failure raised inside the relay pipeline."""


class EventParseError(RelayError):
    """Raised when the inbound queue message cannot be turned into a submission."""


# ============================================================================
# Download phase
# ============================================================================


class FetchError(RelayError):
    """Raised when the submission archive cannot be downloaded."""

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class TransportError(FetchError):
    """The request could not be completed (network, DNS, timeout)."""


class UnsupportedContentType(FetchError):
    """The response declared a content type other than the expected archive type."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        content_type: Optional[str] = None,
        expected: Optional[str] = None,
    ) -> None:
        super().__init__(message, url=url)
        self.content_type = content_type
        self.expected = expected


class ReadError(FetchError):
    """The response body could not be fully drained."""


# ============================================================================
# Upload phase
# ============================================================================


class StoreError(RelayError):
    """Raised when the object store rejects a write; ``phase`` names the step."""

    phase = "store"

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class StoreConnectError(StoreError):
    phase = "connect"


class StoreWriteError(StoreError):
    phase = "write"


class StoreCloseError(StoreError):
    phase = "close"


# ============================================================================
# Notify and audit phases
# ============================================================================


class DeliveryError(RelayError):
    """
    Raised when the email provider refuses or cannot receive a message.

    ``response`` and ``message_id`` carry whatever the provider returned so
    the audit row can record them alongside the error text.
    """

    def __init__(
        self,
        message: str,
        *,
        response: str = "",
        message_id: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.response = response
        self.message_id = message_id
        self.status_code = status_code


class AuditWriteError(RelayError):
    """Raised when an audit record cannot be marshalled or written."""
