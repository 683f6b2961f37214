# === NAVMAP v1 ===
# {
#   "module": "SubmissionRelay.fetcher",
#   "purpose": "Download submission archives over HTTP with a content-type gate.",
#   "sections": [
#     {
#       "id": "fetcher",
#       "name": "Fetcher",
#       "anchor": "class-fetcher",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Download submission archives over HTTP.

**Contract**

    fetch(url) -> bytes

**Failure modes**

    - :class:`TransportError`: the request could not complete (network,
      DNS, timeout). No retry is attempted.
    - :class:`UnsupportedContentType`: the response did not declare exactly
      the expected archive media type. Checked on the streamed response
      before the body is read.
    - :class:`ReadError`: the body could not be fully drained.

**Known gaps**

    - No size limit is enforced; the whole body is buffered in memory.
    - HTTP status codes are not inspected; only the declared content type
      gates the download.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from .api.exceptions import ReadError, TransportError, UnsupportedContentType
from .settings import ARCHIVE_CONTENT_TYPE

LOGGER = logging.getLogger(__name__)


class Fetcher:
    """GET a remote archive and return its raw bytes."""

    def __init__(
        self,
        *,
        expected_content_type: str = ARCHIVE_CONTENT_TYPE,
        timeout_s: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """
        Args:
            expected_content_type: Exact ``Content-Type`` value a response must declare
            timeout_s: Timeout applied when the fetcher builds its own client
            client: Optional pre-built client (tests inject ``httpx.MockTransport``)
        """
        self.expected_content_type = expected_content_type
        self.timeout_s = timeout_s
        self._client = client

    def fetch(self, url: str) -> bytes:
        """Download ``url`` and return the full body."""
        if self._client is not None:
            return self._fetch_with(self._client, url)
        with httpx.Client(timeout=self.timeout_s, follow_redirects=True) as client:
            return self._fetch_with(client, url)

    def _fetch_with(self, client: httpx.Client, url: str) -> bytes:
        try:
            with client.stream("GET", url) as response:
                content_type = response.headers.get("Content-Type", "")
                if content_type != self.expected_content_type:
                    LOGGER.warning(
                        "Rejected %s: content type %r is not %r",
                        url,
                        content_type,
                        self.expected_content_type,
                    )
                    raise UnsupportedContentType(
                        f"Expected {self.expected_content_type}, got {content_type or 'none'}",
                        url=url,
                        content_type=content_type,
                        expected=self.expected_content_type,
                    )
                try:
                    data = response.read()
                except httpx.HTTPError as exc:
                    LOGGER.error("Error reading response body from %s: %s", url, exc)
                    raise ReadError(f"Failed to read response body: {exc}", url=url) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            LOGGER.error("Error fetching %s: %s", url, exc)
            raise TransportError(f"Request failed: {exc}", url=url) from exc

        LOGGER.debug("Fetched %d bytes from %s", len(data), url)
        return data
