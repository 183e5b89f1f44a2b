"""Document snapshots returned by reads."""
import copy
from datetime import datetime
from typing import Any, Dict, Optional

from google.api_core.datetime_helpers import DatetimeWithNanoseconds

from .paths import DocumentRef
from .values import decode_fields


class DocumentSnapshot:
    """
    The state of a document as observed at ``read_time``.

    A snapshot for a document that does not exist still carries its
    reference and read time, but ``exists`` is False and ``to_dict()``
    returns None.
    """

    def __init__(
        self,
        reference: DocumentRef,
        data: Optional[Dict[str, Any]],
        exists: bool,
        read_time: Optional[datetime],
        create_time: Optional[datetime] = None,
        update_time: Optional[datetime] = None,
    ):
        self.reference = reference
        self._data = data
        self.exists = exists
        self.read_time = read_time
        self.create_time = create_time
        self.update_time = update_time

    @classmethod
    def from_found(cls, reference: DocumentRef, document_pb, read_time: Optional[datetime]) -> "DocumentSnapshot":
        """Build a snapshot from a raw ``Document`` protobuf."""
        return cls(
            reference,
            decode_fields(document_pb.fields, reference.client),
            exists=True,
            read_time=read_time,
            create_time=_timestamp(document_pb, "create_time"),
            update_time=_timestamp(document_pb, "update_time"),
        )

    @classmethod
    def missing(cls, reference: DocumentRef, read_time: Optional[datetime]) -> "DocumentSnapshot":
        return cls(reference, None, exists=False, read_time=read_time)

    @property
    def id(self) -> str:
        return self.reference.id

    def to_dict(self) -> Optional[Dict[str, Any]]:
        """Return a deep copy of the document data, or None if it does not exist."""
        if not self.exists:
            return None
        return copy.deepcopy(self._data)

    def get(self, field_path: str) -> Any:
        """
        Return the value at a dot-separated field path.

        Raises:
            KeyError: If the document does not exist or the field is absent.
        """
        if not self.exists:
            raise KeyError(f"document {self.reference.short_path!r} does not exist")
        value: Any = self._data
        for part in field_path.split("."):
            if not isinstance(value, dict) or part not in value:
                raise KeyError(field_path)
            value = value[part]
        return copy.deepcopy(value)

    def __eq__(self, other):
        if not isinstance(other, DocumentSnapshot):
            return NotImplemented
        return (
            self.reference == other.reference
            and self.exists == other.exists
            and self._data == other._data
            and self.read_time == other.read_time
            and self.create_time == other.create_time
            and self.update_time == other.update_time
        )

    def __hash__(self):
        return hash((self.reference, self.read_time))

    def __repr__(self):
        state = "found" if self.exists else "missing"
        return f"DocumentSnapshot({self.reference.short_path!r}, {state}, read_time={self.read_time})"


def _timestamp(message_pb, field: str) -> Optional[DatetimeWithNanoseconds]:
    if not message_pb.HasField(field):
        return None
    return DatetimeWithNanoseconds.from_timestamp_pb(getattr(message_pb, field))
