"""Audit sinks and the best-effort auditor that writes one row per invocation."""

from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .api.exceptions import AuditWriteError
from .api.types import AuditRecord, MailStatus

LOGGER = logging.getLogger(__name__)


class AuditSink(Protocol):
    """Capability interface for the durable audit table."""

    def put(self, record: AuditRecord) -> None:
        """Write ``record``; raise :class:`AuditWriteError` on failure."""
        ...


class DynamoDBAuditSink:
    """Single ``PutItem`` per record into a DynamoDB table.

    The table resource is created lazily so that constructing the sink never
    touches the network.
    """

    def __init__(self, table_name: str, *, region: Optional[str] = None, resource: Any = None):
        self.table_name = table_name
        self.region = region
        self._resource = resource
        self._table: Any = None

    def _get_table(self) -> Any:
        if self._table is None:
            resource = self._resource or boto3.resource("dynamodb", region_name=self.region)
            self._table = resource.Table(self.table_name)
        return self._table

    def put(self, record: AuditRecord) -> None:
        try:
            item = record.to_item()
        except (TypeError, ValueError) as e:
            raise AuditWriteError(f"Error marshalling audit record: {e}") from e

        try:
            self._get_table().put_item(Item=item)
        except (BotoCoreError, ClientError) as e:
            raise AuditWriteError(f"Error calling PutItem on {self.table_name}: {e}") from e


class InMemoryAuditSink:
    """List-backed audit sink for local runs and tests."""

    def __init__(self) -> None:
        self.records: List[AuditRecord] = []
        self._lock = threading.Lock()

    def put(self, record: AuditRecord) -> None:
        with self._lock:
            self.records.append(record)


class Auditor:
    """Build the audit record for one invocation and hand it to a sink.

    Failures are logged and never propagated to the caller.
    """

    def __init__(self, sink: AuditSink) -> None:
        self.sink = sink

    def record(
        self,
        response: str,
        message_id: str,
        delivery_error: Optional[BaseException],
        status: int,
        request_metadata: str,
        *,
        storage_path: str = "",
    ) -> Optional[AuditRecord]:
        """Write the audit row; return it, or ``None`` if the write failed."""
        record = AuditRecord(
            message_id=message_id,
            response=response,
            error=str(delivery_error) if delivery_error is not None else "",
            request_metadata=request_metadata,
            is_mail_sent=delivery_error is None,
            mail_status=int(status),
            storage_path=storage_path,
        )
        try:
            self.sink.put(record)
        except AuditWriteError as e:
            LOGGER.error("Audit write failed (status=%s): %s", _status_label(status), e)
            return None
        LOGGER.debug("Audit record written (status=%s)", _status_label(status))
        return record


def _status_label(status: int) -> str:
    try:
        return MailStatus(status).name
    except ValueError:
        return str(status)
