"""
SubmissionRelay

Notification-triggered relay for student submissions: download the archive
behind a submission link, store it in Google Cloud Storage, email the
submitter a status report, and write one audit row to DynamoDB.

Example:
    from SubmissionRelay import build_relay

    relay = build_relay()          # settings resolved from the environment
    payload = relay.handle(sns_event)
"""

from .api import AuditRecord, MailStatus, PipelineOutcome, SubmissionEvent
from .orchestrator import SubmissionRelay, build_relay, lambda_handler
from .settings import RelaySettings, load_settings

__all__ = [
    "AuditRecord",
    "MailStatus",
    "PipelineOutcome",
    "RelaySettings",
    "SubmissionEvent",
    "SubmissionRelay",
    "build_relay",
    "lambda_handler",
    "load_settings",
]
