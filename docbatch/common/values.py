"""
Decoding of Firestore wire values into Python objects.

Works on the raw protobuf messages (``Document.pb(...)``) rather than the
proto-plus wrappers so that the oneof kind of every value can be inspected.
"""
from typing import TYPE_CHECKING, Any, Dict, Optional

from google.api_core.datetime_helpers import DatetimeWithNanoseconds
from google.cloud.firestore_v1 import GeoPoint

from .errors import ValueDecodeError

if TYPE_CHECKING:
    from ..client import DocumentClient


def decode_value(value_pb, client: Optional["DocumentClient"] = None) -> Any:
    """
    Convert a single ``google.firestore.v1.Value`` protobuf into a Python value.

    Args:
        value_pb: Raw protobuf ``Value`` message.
        client: Client used to turn reference values into DocumentRefs. When
            omitted, references are returned as resource-name strings.

    Raises:
        ValueDecodeError: If the value kind is unset or unknown.
    """
    kind = value_pb.WhichOneof("value_type")
    if kind == "null_value":
        return None
    if kind == "boolean_value":
        return value_pb.boolean_value
    if kind == "integer_value":
        return value_pb.integer_value
    if kind == "double_value":
        return value_pb.double_value
    if kind == "timestamp_value":
        return DatetimeWithNanoseconds.from_timestamp_pb(value_pb.timestamp_value)
    if kind == "string_value":
        return value_pb.string_value
    if kind == "bytes_value":
        return value_pb.bytes_value
    if kind == "reference_value":
        return _decode_reference(value_pb.reference_value, client)
    if kind == "geo_point_value":
        return GeoPoint(value_pb.geo_point_value.latitude, value_pb.geo_point_value.longitude)
    if kind == "array_value":
        return [decode_value(v, client) for v in value_pb.array_value.values]
    if kind == "map_value":
        return decode_fields(value_pb.map_value.fields, client)
    raise ValueDecodeError(f"cannot decode value of kind {kind!r}")


def decode_fields(fields, client: Optional["DocumentClient"] = None) -> Dict[str, Any]:
    """Decode a protobuf map of field name to Value into a plain dict."""
    return {name: decode_value(value, client) for name, value in fields.items()}


def _decode_reference(name: str, client):
    if client is None:
        return name
    prefix = client.documents_path + "/"
    if not name.startswith(prefix):
        # Reference into another database; keep the raw name.
        return name
    return client.doc(name[len(prefix):])
