# trustcircle/core/codec.py
"""Binary codec for a circle's member list.

The blob stored in ``circle_of_trust_members.members`` is a protobuf message
with a single ``repeated int64 member_ids = 1`` field. The descriptor is built
at import time so no generated ``_pb2`` module has to ship with the package.
"""
from typing import Iterable, List, Optional

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory, unknown_fields
from google.protobuf.message import DecodeError, EncodeError

from trustcircle.core.errors import CodecError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_PROTO_PACKAGE = "circleoftrustmembers"
_MESSAGE_NAME = "CircleOfTrustMembersProto"


def _build_message_class():
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="circleoftrustmembers/members.proto",
        package=_PROTO_PACKAGE,
        syntax="proto3",
    )
    message = file_proto.message_type.add(name=_MESSAGE_NAME)
    message.field.add(
        name="member_ids",
        json_name="memberIds",
        number=1,
        type=descriptor_pb2.FieldDescriptorProto.TYPE_INT64,
        label=descriptor_pb2.FieldDescriptorProto.LABEL_REPEATED,
    )
    # Private pool; the default pool may already hold a file with this name
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    descriptor = pool.FindMessageTypeByName(f"{_PROTO_PACKAGE}.{_MESSAGE_NAME}")
    return message_factory.GetMessageClass(descriptor)


CircleOfTrustMembers = _build_message_class()


def encode(member_ids: Iterable[int]) -> bytes:
    """Serialize member ids, preserving order and duplicates."""
    ids = list(member_ids)
    for member_id in ids:
        if isinstance(member_id, bool) or not isinstance(member_id, int):
            raise CodecError(f"Member id must be an integer, got {member_id!r}")
        if not INT64_MIN <= member_id <= INT64_MAX:
            raise CodecError(f"Member id {member_id} does not fit in 64 bits")
    message = CircleOfTrustMembers(member_ids=ids)
    try:
        return message.SerializeToString()
    except EncodeError as e:
        raise CodecError(f"Failed to serialize members: {e}") from e


def decode(blob: Optional[bytes]) -> List[int]:
    """Parse a stored blob back into member ids.

    A missing or zero-length blob is an empty circle, not an error. Fields
    added by newer writers are skipped, but a non-empty blob must still carry
    member ids, and field 1 must have the int64 wire type; protobuf would
    otherwise drop such bytes silently.
    """
    if not blob:
        return []
    message = CircleOfTrustMembers()
    try:
        message.ParseFromString(bytes(blob))
    except DecodeError as e:
        raise CodecError(f"Failed to unmarshal members: {e}") from e
    unknown = unknown_fields.UnknownFieldSet(message)
    for i in range(len(unknown)):
        if unknown[i].field_number == 1:
            raise CodecError("Failed to unmarshal members: member_ids has the wrong wire type")
    # An empty member list always encodes to zero bytes
    if not message.member_ids:
        raise CodecError("Failed to unmarshal members: blob holds no member ids")
    return list(message.member_ids)


def append_member(blob: Optional[bytes], member_id: int) -> bytes:
    """Decode, append one id, re-encode."""
    member_ids = decode(blob)
    member_ids.append(member_id)
    return encode(member_ids)
