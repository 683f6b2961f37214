"""Tests for trigger payload extraction."""

from __future__ import annotations

import json
import logging

import pytest

from SubmissionRelay.api.exceptions import EventParseError
from SubmissionRelay.events import DirectEventSource, SNSEventSource, serialize_event

MESSAGE = json.dumps({"SubmissionId": "S1"})


class TestSNSEventSource:
    def test_returns_first_record_message(self):
        event = {"Records": [{"Sns": {"Message": MESSAGE}}]}
        assert SNSEventSource().message(event) == MESSAGE

    def test_extra_records_are_reported(self, caplog):
        event = {
            "Records": [
                {"Sns": {"Message": MESSAGE}},
                {"Sns": {"Message": "second"}},
            ]
        }
        with caplog.at_level(logging.WARNING, logger="SubmissionRelay.events"):
            assert SNSEventSource().message(event) == MESSAGE
        assert "carries 2 records" in caplog.text

    @pytest.mark.parametrize(
        "event",
        [
            None,
            "plain string",
            {},
            {"Records": []},
            {"Records": "nope"},
            {"Records": [{}]},
            {"Records": [{"Sns": {}}]},
            {"Records": [{"Sns": {"Message": {"SubmissionId": "S1"}}}]},
        ],
    )
    def test_rejects_unusable_envelopes(self, event):
        with pytest.raises(EventParseError):
            SNSEventSource().message(event)


class TestDirectEventSource:
    def test_string_passes_through(self):
        assert DirectEventSource().message(MESSAGE) == MESSAGE

    def test_bytes_are_decoded(self):
        assert DirectEventSource().message(MESSAGE.encode()) == MESSAGE

    def test_mapping_is_serialized(self):
        assert json.loads(DirectEventSource().message({"SubmissionId": "S1"})) == {
            "SubmissionId": "S1"
        }

    def test_unserializable_event(self):
        with pytest.raises(EventParseError, match="not JSON-serializable"):
            DirectEventSource().message({"when": object()})


def test_serialize_event_keeps_strings_verbatim():
    assert serialize_event('{"a": 1}') == '{"a": 1}'


def test_serialize_event_matches_json_dumps():
    event = {"Records": [{"Sns": {"Message": MESSAGE}}]}
    assert serialize_event(event) == json.dumps(event)
