"""HTTPX MockTransport-based coverage for the submission fetcher."""

from __future__ import annotations

from typing import Iterator

import httpx
import pytest

from SubmissionRelay.api.exceptions import (
    FetchError,
    ReadError,
    TransportError,
    UnsupportedContentType,
)
from SubmissionRelay.fetcher import Fetcher

ZIP_BYTES = b"PK\x03\x04" + b"\x00" * 196


class _BrokenStream(httpx.SyncByteStream):
    """Body stream that fails after the headers were delivered."""

    def __init__(self) -> None:
        self.iterated = False

    def __iter__(self) -> Iterator[bytes]:
        self.iterated = True
        yield b"PK\x03\x04"
        raise httpx.ReadError("connection reset by peer")


def test_fetch_returns_body_for_zip(make_fetcher):
    fetcher = make_fetcher(
        lambda request: httpx.Response(
            200, content=ZIP_BYTES, headers={"Content-Type": "application/zip"}
        )
    )

    data = fetcher.fetch("http://x/good.zip")

    assert data == ZIP_BYTES
    assert len(data) == 200


def test_fetch_rejects_other_content_types(make_fetcher):
    fetcher = make_fetcher(
        lambda request: httpx.Response(
            200, content=b"<html></html>", headers={"Content-Type": "text/html"}
        )
    )

    with pytest.raises(UnsupportedContentType) as excinfo:
        fetcher.fetch("http://x/good.zip")

    assert excinfo.value.content_type == "text/html"
    assert excinfo.value.expected == "application/zip"
    assert excinfo.value.url == "http://x/good.zip"


def test_content_type_match_is_exact(make_fetcher):
    fetcher = make_fetcher(
        lambda request: httpx.Response(
            200, content=ZIP_BYTES, headers={"Content-Type": "application/zip; charset=binary"}
        )
    )

    with pytest.raises(UnsupportedContentType):
        fetcher.fetch("http://x/good.zip")


def test_missing_content_type_is_rejected(make_fetcher):
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=ZIP_BYTES))

    with pytest.raises(UnsupportedContentType, match="none"):
        fetcher.fetch("http://x/good.zip")


def test_content_type_checked_before_body_is_read(make_fetcher):
    stream = _BrokenStream()
    fetcher = make_fetcher(
        lambda request: httpx.Response(200, headers={"Content-Type": "text/html"}, stream=stream)
    )

    with pytest.raises(UnsupportedContentType):
        fetcher.fetch("http://x/good.zip")

    assert stream.iterated is False


def test_body_failure_raises_read_error(make_fetcher):
    fetcher = make_fetcher(
        lambda request: httpx.Response(
            200, headers={"Content-Type": "application/zip"}, stream=_BrokenStream()
        )
    )

    with pytest.raises(ReadError, match="connection reset"):
        fetcher.fetch("http://x/good.zip")


def test_connection_failure_raises_transport_error(make_fetcher):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    fetcher = make_fetcher(handler)

    with pytest.raises(TransportError) as excinfo:
        fetcher.fetch("http://nowhere.invalid/sub.zip")

    assert isinstance(excinfo.value, FetchError)
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_timeout_raises_transport_error(make_fetcher):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError, match="timed out"):
        make_fetcher(handler).fetch("http://x/slow.zip")


def test_http_status_is_not_inspected(make_fetcher):
    fetcher = make_fetcher(
        lambda request: httpx.Response(
            404, content=b"zip-ish", headers={"Content-Type": "application/zip"}
        )
    )

    assert fetcher.fetch("http://x/missing.zip") == b"zip-ish"


def test_invalid_url_raises_transport_error():
    with pytest.raises(TransportError):
        Fetcher().fetch("not a url")


def test_custom_expected_content_type():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(
            200, content=b"%PDF", headers={"Content-Type": "application/pdf"}
        )
    )
    with httpx.Client(transport=transport) as client:
        fetcher = Fetcher(expected_content_type="application/pdf", client=client)
        assert fetcher.fetch("http://x/doc.pdf") == b"%PDF"
