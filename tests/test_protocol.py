"""Wire envelope tests."""

import json

import pytest

from crowdguard.realtime.protocol import decode, encode


def test_encode_envelope():
    assert json.loads(encode("userDisconnected", "abc")) == {
        "event": "userDisconnected",
        "data": "abc",
    }


def test_decode_text_and_bytes():
    raw = '{"event": "updateLocation", "data": {"latitude": 1, "longitude": 2}}'
    for frame in (raw, raw.encode()):
        envelope = decode(frame)
        assert envelope.event == "updateLocation"
        assert envelope.data == {"latitude": 1, "longitude": 2}


def test_decode_without_data():
    envelope = decode('{"event": "ping"}')
    assert envelope.event == "ping"
    assert envelope.data is None


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not json",
        "[1, 2]",
        '{"data": {}}',
        '{"event": ""}',
        '{"event": 5}',
    ],
)
def test_decode_malformed_returns_none(raw):
    assert decode(raw) is None
