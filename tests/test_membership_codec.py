import pytest

from trustcircle.core import codec
from trustcircle.core.errors import CodecError


@pytest.mark.parametrize("member_ids", [
    [],
    [42],
    [42, 43],
    [7, 7, 3],  # duplicates survive
    [2 ** 63 - 1, -(2 ** 63), 0],
])
def test_round_trip_keeps_order(member_ids):
    assert codec.decode(codec.encode(member_ids)) == member_ids


def test_missing_blob_is_empty_circle():
    assert codec.decode(b"") == []
    assert codec.decode(None) == []


def test_empty_list_encodes_to_empty_blob():
    assert codec.encode([]) == b""


def test_wire_format_is_packed_int64_field_one():
    # field 1, length-delimited, packed varints 42 and 300
    assert codec.encode([42, 300]) == b"\x0a\x03\x2a\xac\x02"
    assert codec.decode(b"\x0a\x03\x2a\xac\x02") == [42, 300]


def test_unpacked_encoding_still_decodes():
    assert codec.decode(b"\x08\x2a\x08\x2b") == [42, 43]


def test_unknown_fields_are_skipped():
    blob = codec.encode([5]) + b"\x10\x01"  # field 2 varint written by a newer version
    assert codec.decode(blob) == [5]


def test_malformed_blob_raises_codec_error():
    with pytest.raises(CodecError) as exc_info:
        codec.decode(b"\x0a\x05\x01")
    assert exc_info.value.code == "decode_error"


def test_out_of_range_id_is_rejected():
    with pytest.raises(CodecError):
        codec.encode([2 ** 63])


def test_non_integer_id_is_rejected():
    with pytest.raises(CodecError):
        codec.encode(["42"])


def test_append_member():
    blob = codec.append_member(b"", 42)
    blob = codec.append_member(blob, 43)
    assert codec.decode(blob) == [42, 43]


def test_blob_without_member_ids_is_rejected():
    # a single unknown field and nothing else is not a member list
    with pytest.raises(CodecError):
        codec.decode(b"\x10\x01")


def test_member_ids_with_wrong_wire_type_are_rejected():
    # field 1 written as fixed64 instead of varint
    with pytest.raises(CodecError):
        codec.decode(b"\x09" + (42).to_bytes(8, "little"))
