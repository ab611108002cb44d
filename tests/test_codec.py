import pytest

from credo_cache.core.exceptions import CacheDeserializationError, CacheSerializationError
from credo_cache.infrastructure.cache import codec


@pytest.mark.parametrize(
    "value",
    [{"value": 1}, [1, "two", None], "text", 3.5, True, None, {"nested": {"list": [{}]}}],
)
def test_json_values_survive_encoding(value):
    assert codec.decode(codec.encode(value)) == value


def test_encode_produces_json_text():
    assert codec.encode({"value": 1}) == '{"value": 1}'


@pytest.mark.parametrize("value", [object(), {1, 2}, float("inf"), float("nan")])
def test_encode_rejects_non_json_values(value):
    with pytest.raises(CacheSerializationError) as exc_info:
        codec.encode(value)
    assert exc_info.value.error_code == "SERIALIZATION_ERROR"


@pytest.mark.parametrize("raw", [None, "", b""])
def test_decode_absent_value(raw):
    assert codec.decode(raw) is None


def test_decode_bytes():
    assert codec.decode('{"name": "café"}'.encode("utf-8")) == {"name": "café"}


@pytest.mark.parametrize("raw", ["{not json", "undefined", b"\xff\xfe", b"{not json"])
def test_decode_rejects_malformed_values(raw):
    with pytest.raises(CacheDeserializationError) as exc_info:
        codec.decode(raw)
    assert exc_info.value.raw_value == raw
    assert exc_info.value.message.startswith("Failed to deserialize cache value")
