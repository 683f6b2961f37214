# === NAVMAP v1 ===
# {
#   "module": "SubmissionRelay.notifier",
#   "purpose": "Classify pipeline outcomes, render status emails, and deliver them.",
#   "sections": [
#     {
#       "id": "classify",
#       "name": "classify",
#       "anchor": "function-classify",
#       "kind": "function"
#     },
#     {
#       "id": "render",
#       "name": "render",
#       "anchor": "function-render",
#       "kind": "function"
#     },
#     {
#       "id": "mailsender",
#       "name": "MailSender",
#       "anchor": "class-mailsender",
#       "kind": "class"
#     },
#     {
#       "id": "mailgunsender",
#       "name": "MailgunSender",
#       "anchor": "class-mailgunsender",
#       "kind": "class"
#     },
#     {
#       "id": "notifier",
#       "name": "Notifier",
#       "anchor": "class-notifier",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Status classification, message rendering and email delivery.

Responsibilities
----------------
- :func:`classify` maps the download/upload errors of one invocation onto a
  :class:`MailStatus` (first match wins: download, then upload, then success).
- :func:`render` turns a status into the body of the email sent to the
  submitter. It is a pure function of its arguments.
- :class:`MailgunSender` hands the rendered message to Mailgun's HTTP API.
- :class:`Notifier` binds a sender to the configured from-address and
  subject line.

Design Notes
------------
- ``UNKNOWN`` is only a fall-through: :func:`classify` never returns it, but
  :func:`render` falls back to the generic template for any status value it
  does not recognize.
- Delivery failures raise :class:`DeliveryError`; the orchestrator records
  them in the audit row and never retries.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from .api.exceptions import DeliveryError
from .api.types import DeliveryReceipt, MailStatus, SubmissionEvent
from .settings import DEFAULT_MAILGUN_API_BASE

__all__ = (
    "classify",
    "render",
    "MailSender",
    "MailgunSender",
    "Notifier",
)

LOGGER = logging.getLogger(__name__)

_GREETING = "Hello,\n\nThis message is to inform you that your assignment with id "
_SIGN_OFF = "\n\nThank you!"


def classify(
    download_error: Optional[BaseException],
    upload_error: Optional[BaseException],
) -> MailStatus:
    """Return the status for one invocation given its phase errors."""

    if download_error is not None:
        return MailStatus.DOWNLOAD_FAILED
    if upload_error is not None:
        return MailStatus.UPLOAD_FAILED
    return MailStatus.SUCCESS


def render(status: int, event: SubmissionEvent, path: str, *, bucket: str) -> str:
    """Render the email body for ``status``.

    Args:
        status: Outcome code; values outside ``{1, -1, -2}`` use the generic template
        event: Submission the email reports on
        path: Object key the archive was stored under (used only on success)
        bucket: Bucket name used to build the ``gs://`` URI on success

    Returns:
        Plain-text email body
    """

    assignment_id = event.assignment_id
    if status == MailStatus.SUCCESS:
        uri = f"gs://{bucket}/{path}"
        return (
            f"{_GREETING}{assignment_id} has been successfully uploaded and no further "
            f"action is needed.\n\nThe uploaded path is: {uri}  {_SIGN_OFF}"
        )
    if status == MailStatus.DOWNLOAD_FAILED:
        return (
            f"{_GREETING}{assignment_id} has NOT been uploaded due to invalid link or file "
            "type. Please modify the submission link or contact your TA for assistance to "
            f"attempt and rectify the issue.{_SIGN_OFF}"
        )
    if status == MailStatus.UPLOAD_FAILED:
        return (
            f"{_GREETING}{assignment_id} has failed to upload to GCP bucket. Please contact "
            f"your TA for assistance to attempt and rectify the issue.{_SIGN_OFF}"
        )
    return (
        f"{_GREETING}{assignment_id} has NOT been uploaded. Please contact your TA for "
        f"assistance to attempt and rectify the issue.{_SIGN_OFF}"
    )


class MailSender(Protocol):
    """Capability interface for transactional email providers."""

    def send(self, *, sender: str, subject: str, body: str, recipient: str) -> DeliveryReceipt:
        """Send one plain-text message; raise :class:`DeliveryError` on failure."""
        ...


class MailgunSender:
    """Send messages through the Mailgun ``/messages`` endpoint."""

    def __init__(
        self,
        domain: str,
        api_key: str,
        *,
        api_base: str = DEFAULT_MAILGUN_API_BASE,
        timeout_s: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.domain = domain
        self.api_base = api_base.rstrip("/")
        self.timeout_s = timeout_s
        self._api_key = api_key
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/{self.domain}/messages"

    def send(self, *, sender: str, subject: str, body: str, recipient: str) -> DeliveryReceipt:
        data = {"from": sender, "to": recipient, "subject": subject, "text": body}
        auth = ("api", self._api_key)
        try:
            if self._client is not None:
                response = self._client.post(self.endpoint, data=data, auth=auth)
            else:
                with httpx.Client(timeout=self.timeout_s) as client:
                    response = client.post(self.endpoint, data=data, auth=auth)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DeliveryError(f"Mailgun request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        provider_message = str(payload.get("message") or response.text)
        message_id = str(payload.get("id") or "")

        if response.is_error:
            raise DeliveryError(
                f"Mailgun rejected message (HTTP {response.status_code}): {provider_message}",
                response=provider_message,
                message_id=message_id,
                status_code=response.status_code,
            )
        return DeliveryReceipt(response=provider_message, message_id=message_id)


class Notifier:
    """Deliver rendered status emails with the configured sender and subject."""

    def __init__(self, sender: MailSender, *, from_address: str, subject: str) -> None:
        self.sender = sender
        self.from_address = from_address
        self.subject = subject

    def deliver(self, message: str, recipient: str) -> DeliveryReceipt:
        """Send ``message`` to ``recipient``; :class:`DeliveryError` propagates."""
        try:
            receipt = self.sender.send(
                sender=self.from_address,
                subject=self.subject,
                body=message,
                recipient=recipient,
            )
        except DeliveryError as exc:
            LOGGER.error(
                "Error sending mail: response=%r id=%r error=%s",
                exc.response,
                exc.message_id,
                exc,
            )
            raise
        LOGGER.info("Mail queued for %s (id=%s)", recipient, receipt.message_id)
        return receipt
