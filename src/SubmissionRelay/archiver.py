# === NAVMAP v1 ===
# {
#   "module": "SubmissionRelay.archiver",
#   "purpose": "Path-addressed object store backends for submission archives.",
#   "sections": [
#     {
#       "id": "objectstore",
#       "name": "ObjectStore",
#       "anchor": "class-objectstore",
#       "kind": "class"
#     },
#     {
#       "id": "gcsobjectstore",
#       "name": "GCSObjectStore",
#       "anchor": "class-gcsobjectstore",
#       "kind": "class"
#     },
#     {
#       "id": "inmemoryobjectstore",
#       "name": "InMemoryObjectStore",
#       "anchor": "class-inmemoryobjectstore",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Object store backends for submission archives.

Every backend exposes ``store(path, data) -> StoreAck``. Writes are blind:
no existence check, no versioning, and a second write to the same key
silently replaces the first.

Failures are reported by phase so operators can tell a credential problem
from a quota problem in the logs, although the orchestrator treats all of
them the same way:

    - :class:`StoreConnectError`: building the client or resolving the bucket
    - :class:`StoreWriteError`: streaming the bytes
    - :class:`StoreCloseError`: finalizing the upload or closing the client
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Dict, Optional, Protocol

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.cloud.storage.exceptions import DataCorruption, InvalidResponse

from .api.exceptions import StoreCloseError, StoreConnectError, StoreError, StoreWriteError
from .api.types import StoreAck
from .settings import ARCHIVE_CONTENT_TYPE

LOGGER = logging.getLogger(__name__)

# google-cloud-storage surfaces API, auth, resumable-upload and local I/O failures separately
_SDK_ERRORS = (
    GoogleAPIError,
    GoogleAuthError,
    InvalidResponse,
    DataCorruption,
    ValueError,
    OSError,
)


class ObjectStore(Protocol):
    """Capability interface for path-addressed blob writes."""

    def store(self, path: str, data: bytes) -> StoreAck: ...


class GCSObjectStore:
    """Google Cloud Storage backend."""

    def __init__(
        self,
        bucket: str,
        *,
        credentials_json: str = "",
        content_type: str = ARCHIVE_CONTENT_TYPE,
    ) -> None:
        self.bucket = bucket
        self._credentials_json = credentials_json
        self.content_type = content_type

    def store(self, path: str, data: bytes) -> StoreAck:
        client = self._connect(path)
        try:
            blob = self._resolve_blob(client, path)
            self._write(blob, path, data)
        except StoreError:
            self._discard_client(client)
            raise
        self._close_client(client, path)

        uri = f"gs://{self.bucket}/{path}"
        LOGGER.info("Uploaded %d bytes to %s", len(data), uri)
        return StoreAck(uri=uri, bytes_written=len(data))

    def _connect(self, path: str) -> storage.Client:
        try:
            if self._credentials_json:
                info = json.loads(self._credentials_json)
                return storage.Client.from_service_account_info(info)
            return storage.Client()
        except _SDK_ERRORS as e:
            LOGGER.error("Error creating storage client: %s", e)
            raise StoreConnectError(f"Cannot connect to object store: {e}", path=path) from e

    def _resolve_blob(self, client: storage.Client, path: str) -> storage.Blob:
        try:
            return client.bucket(self.bucket).blob(path)
        except _SDK_ERRORS as e:
            LOGGER.error("Error resolving bucket %s: %s", self.bucket, e)
            raise StoreConnectError(f"Cannot resolve bucket {self.bucket}: {e}", path=path) from e

    def _write(self, blob: storage.Blob, path: str, data: bytes) -> None:
        try:
            writer = blob.open("wb", content_type=self.content_type)
            writer.write(data)
        except _SDK_ERRORS as e:
            LOGGER.error("Error writing %s: %s", path, e)
            raise StoreWriteError(f"Failed to write object {path}: {e}", path=path) from e

        try:
            writer.close()
        except _SDK_ERRORS as e:
            LOGGER.error("Error closing writer for %s: %s", path, e)
            raise StoreCloseError(f"Failed to finalize object {path}: {e}", path=path) from e

    def _close_client(self, client: storage.Client, path: str) -> None:
        try:
            client.close()
        except _SDK_ERRORS as e:
            LOGGER.error("Error closing storage client: %s", e)
            raise StoreCloseError(f"Failed to close storage client: {e}", path=path) from e

    def _discard_client(self, client: storage.Client) -> None:
        # Runs while a phase error is in flight; that error stays the reported one.
        try:
            client.close()
        except _SDK_ERRORS as e:
            LOGGER.warning("Ignoring storage client close failure after upload error: %s", e)


class InMemoryObjectStore:
    """Dict-backed object store for local runs and tests."""

    def __init__(self, bucket: str = "local") -> None:
        self.bucket = bucket
        self.objects: Dict[str, bytes] = {}
        self.write_count = 0
        self._lock = threading.Lock()

    def store(self, path: str, data: bytes) -> StoreAck:
        with self._lock:
            self.objects[path] = bytes(data)
            self.write_count += 1
        return StoreAck(uri=f"gs://{self.bucket}/{path}", bytes_written=len(data))

    def get(self, path: str) -> Optional[bytes]:
        return self.objects.get(path)
