# === NAVMAP v1 ===
# {
#   "module": "SubmissionRelay.orchestrator",
#   "purpose": "Sequence fetch, archive, notify and audit for one inbound event.",
#   "sections": [
#     {
#       "id": "submissionrelay",
#       "name": "SubmissionRelay",
#       "anchor": "class-submissionrelay",
#       "kind": "class"
#     },
#     {
#       "id": "build-relay",
#       "name": "build_relay",
#       "anchor": "function-build-relay",
#       "kind": "function"
#     },
#     {
#       "id": "lambda-handler",
#       "name": "lambda_handler",
#       "anchor": "function-lambda-handler",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Submission relay orchestrator.

**Purpose**
-----------
Run one invocation end to end:

    Received → Downloading → {Uploading | SkipUpload} → Notifying → Auditing → Done

**Guarantees**
--------------
- Notifier and Auditor are each reached exactly once per invocation.
- A fetch failure skips the upload entirely.
- Exactly one audit record is attempted per invocation, including for
  malformed events, which are audited with :attr:`MailStatus.INVALID_EVENT`
  and receive no email.
- :meth:`SubmissionRelay.handle` never raises for pipeline failures; it
  always returns the serialized inbound event.

**Collaborators**
-----------------
The four external services are injected as capability objects
(:class:`ObjectStore`, :class:`MailSender`, :class:`AuditSink`,
:class:`EventSource`). :func:`build_relay` wires the production backends
from :class:`RelaySettings`.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from .api.exceptions import DeliveryError, EventParseError, FetchError, StoreError
from .api.types import MailStatus, PipelineOutcome, SubmissionEvent
from .archiver import GCSObjectStore, ObjectStore
from .auditor import AuditSink, Auditor, DynamoDBAuditSink
from .events import EventSource, SNSEventSource, serialize_event
from .fetcher import Fetcher
from .logging_utils import setup_logging
from .notifier import MailgunSender, MailSender, Notifier, classify, render
from .settings import RelaySettings, load_settings

LOGGER = logging.getLogger(__name__)


class SubmissionRelay:
    """Relay one submission from its URL to the bucket, then report and audit."""

    def __init__(
        self,
        settings: RelaySettings,
        *,
        object_store: ObjectStore,
        mail_sender: MailSender,
        audit_sink: AuditSink,
        event_source: Optional[EventSource] = None,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self.settings = settings
        self.object_store = object_store
        self.event_source = event_source or SNSEventSource()
        self.fetcher = fetcher or Fetcher(
            expected_content_type=settings.expected_content_type,
            timeout_s=settings.http_timeout_s,
        )
        self.notifier = Notifier(
            mail_sender, from_address=settings.sender, subject=settings.subject
        )
        self.auditor = Auditor(audit_sink)

    def handle(self, raw_event: Any) -> str:
        """Process one inbound event and return its serialized form."""
        request_metadata = serialize_event(raw_event)
        LOGGER.info("Received event", extra={"stage": "received"})
        LOGGER.debug("Event payload: %s", request_metadata)

        try:
            event = SubmissionEvent.from_message(self.event_source.message(raw_event))
        except EventParseError as exc:
            LOGGER.error("Discarding malformed event: %s", exc, extra={"stage": "received"})
            self.auditor.record("", "", exc, MailStatus.INVALID_EVENT, request_metadata)
            return request_metadata

        outcome = self.run_pipeline(event)

        body = render(outcome.status, event, outcome.storage_path, bucket=self.settings.bucket)
        LOGGER.info(
            "Sending mail", extra={"stage": "notifying", "submission_id": event.submission_id}
        )
        response, message_id = "", ""
        delivery_error: Optional[DeliveryError] = None
        try:
            receipt = self.notifier.deliver(body, event.submission_email)
            response, message_id = receipt.response, receipt.message_id
        except DeliveryError as exc:
            delivery_error = exc
            response, message_id = exc.response, exc.message_id

        LOGGER.info(
            "Writing audit record",
            extra={"stage": "auditing", "submission_id": event.submission_id},
        )
        self.auditor.record(
            response,
            message_id,
            delivery_error,
            outcome.status,
            request_metadata,
            storage_path=outcome.storage_path,
        )
        return request_metadata

    def run_pipeline(self, event: SubmissionEvent) -> PipelineOutcome:
        """Download then upload; return the classified outcome."""
        download_error: Optional[FetchError] = None
        upload_error: Optional[StoreError] = None
        storage_path = ""

        LOGGER.info(
            "Downloading from link",
            extra={"stage": "downloading", "submission_id": event.submission_id},
        )
        try:
            data = self.fetcher.fetch(event.submission_url)
        except FetchError as exc:
            download_error = exc
            LOGGER.error("Error downloading file: %s", exc)
        else:
            LOGGER.info(
                "Uploading to bucket",
                extra={"stage": "uploading", "submission_id": event.submission_id},
            )
            try:
                self.object_store.store(event.object_key, data)
                storage_path = event.object_key
            except StoreError as exc:
                upload_error = exc
                LOGGER.error("Error uploading file (%s phase): %s", exc.phase, exc)

        status = classify(download_error, upload_error)
        return PipelineOutcome(
            status=status,
            storage_path=storage_path,
            error=download_error or upload_error,
        )


def build_relay(settings: Optional[RelaySettings] = None) -> SubmissionRelay:
    """Wire the production collaborators from ``settings`` (or the environment)."""
    cfg = settings or load_settings()
    return SubmissionRelay(
        cfg,
        object_store=GCSObjectStore(
            cfg.bucket,
            credentials_json=cfg.gcp_creds_json.get_secret_value(),
            content_type=cfg.expected_content_type,
        ),
        mail_sender=MailgunSender(
            cfg.mailgun_domain,
            cfg.mailgun_api_key.get_secret_value(),
            api_base=cfg.mailgun_api_base,
            timeout_s=cfg.http_timeout_s,
        ),
        audit_sink=DynamoDBAuditSink(cfg.mail_table, region=cfg.aws_region),
    )


_DEFAULT_RELAY: Optional[SubmissionRelay] = None
_RELAY_LOCK = threading.Lock()


def get_default_relay() -> SubmissionRelay:
    """Return the process-wide relay, building it on first use."""
    global _DEFAULT_RELAY

    if _DEFAULT_RELAY is not None:
        return _DEFAULT_RELAY

    with _RELAY_LOCK:
        if _DEFAULT_RELAY is None:
            settings = load_settings()
            setup_logging(level=settings.log_level, fmt=settings.log_format)
            _DEFAULT_RELAY = build_relay(settings)
        return _DEFAULT_RELAY


def reset_default_relay() -> None:
    """Drop the cached relay (tests only)."""
    global _DEFAULT_RELAY

    with _RELAY_LOCK:
        _DEFAULT_RELAY = None


def lambda_handler(event: Any, context: Any = None) -> str:
    """AWS Lambda entry point for SNS-triggered invocations."""
    return get_default_relay().handle(event)
