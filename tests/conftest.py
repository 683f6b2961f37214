"""
Pytest Configuration

Shared fixtures for the submission relay suite: a scrubbed environment so
ambient settings never leak between tests, and capability fakes for the
mail provider, object store, and audit table.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from SubmissionRelay.api.exceptions import AuditWriteError, DeliveryError, StoreWriteError
from SubmissionRelay.api.types import AuditRecord, DeliveryReceipt, StoreAck
from SubmissionRelay.archiver import InMemoryObjectStore
from SubmissionRelay.auditor import InMemoryAuditSink
from SubmissionRelay.fetcher import Fetcher
from SubmissionRelay.logging_utils import ROOT_LOGGER_NAME
from SubmissionRelay.orchestrator import reset_default_relay
from SubmissionRelay.settings import RelaySettings

RELAY_ENV_VARS = (
    "BUCKET",
    "GCP_CREDS_JSON",
    "MAIL_TABLE",
    "MAILGUN_DOMAIN",
    "MAILGUN_PVT_API_KEY",
    "SENDER",
    "SUBJECT",
    "AWS_REGION",
    "RELAY_MAILGUN_API_BASE",
    "RELAY_EXPECTED_CONTENT_TYPE",
    "RELAY_HTTP_TIMEOUT_S",
    "RELAY_LOG_LEVEL",
    "RELAY_LOG_FORMAT",
)


def _reset_relay_logger() -> None:
    """Undo `setup_logging` so caplog sees relay records again."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_relay_managed", False):
            logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Remove relay variables from the environment for every test."""
    for name in RELAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_default_relay()
    yield
    reset_default_relay()
    _reset_relay_logger()


@pytest.fixture
def relay_env(monkeypatch: pytest.MonkeyPatch) -> Dict[str, str]:
    """Populate the recognized environment variables with test values."""
    values = {
        "BUCKET": "course-submissions",
        "GCP_CREDS_JSON": "",
        "MAIL_TABLE": "mail-audit",
        "MAILGUN_DOMAIN": "mg.example.org",
        "MAILGUN_PVT_API_KEY": "key-0123456789abcdef",
        "SENDER": "Course Staff <staff@example.org>",
        "SUBJECT": "Submission status",
    }
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return values


@pytest.fixture
def settings() -> RelaySettings:
    return RelaySettings(
        bucket="course-submissions",
        mail_table="mail-audit",
        mailgun_domain="mg.example.org",
        mailgun_api_key="key-0123456789abcdef",
        sender="Course Staff <staff@example.org>",
        subject="Submission status",
    )


class RecordingMailSender:
    """Mail sender that records messages and optionally fails."""

    def __init__(self, error: Optional[DeliveryError] = None) -> None:
        self.error = error
        self.sent: List[Dict[str, str]] = []

    def send(self, *, sender: str, subject: str, body: str, recipient: str) -> DeliveryReceipt:
        self.sent.append(
            {"sender": sender, "subject": subject, "body": body, "recipient": recipient}
        )
        if self.error is not None:
            raise self.error
        return DeliveryReceipt(
            response="Queued. Thank you.",
            message_id=f"<{len(self.sent)}@mg.example.org>",
        )


class FailingObjectStore(InMemoryObjectStore):
    """Object store whose writes always fail."""

    def store(self, path: str, data: bytes) -> StoreAck:
        self.write_count += 1
        raise StoreWriteError("bucket quota exceeded", path=path)


class FailingAuditSink:
    def __init__(self) -> None:
        self.attempts: List[AuditRecord] = []

    def put(self, record: AuditRecord) -> None:
        self.attempts.append(record)
        raise AuditWriteError("ResourceNotFoundException: table missing")


@pytest.fixture
def mail_sender() -> RecordingMailSender:
    return RecordingMailSender()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore(bucket="course-submissions")


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def make_fetcher() -> Callable[[Callable[[httpx.Request], httpx.Response]], Fetcher]:
    """Build a fetcher whose client is backed by ``httpx.MockTransport``."""
    clients: List[httpx.Client] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> Fetcher:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return Fetcher(client=client)

    yield _factory
    for client in clients:
        client.close()


@pytest.fixture
def failing_mail_sender() -> RecordingMailSender:
    return RecordingMailSender(
        error=DeliveryError(
            "Mailgun rejected message (HTTP 401): Invalid private key",
            response="Invalid private key",
            status_code=401,
        )
    )


@pytest.fixture
def failing_object_store() -> FailingObjectStore:
    return FailingObjectStore(bucket="course-submissions")


@pytest.fixture
def failing_audit_sink() -> FailingAuditSink:
    return FailingAuditSink()
