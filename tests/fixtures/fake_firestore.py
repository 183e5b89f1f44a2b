"""
In-process stand-in for the Firestore BatchGetDocuments RPC.

Each expected call is registered with ``add_rpc(request, responses)``; the
fake checks that the incoming request matches and then streams back the
scripted responses. An exception in the response list is raised at that
point in the stream, the way a transport error would surface.
"""
from datetime import datetime, timezone

from google.api_core import exceptions
from google.cloud.firestore_v1.types import document as document_pb
from google.cloud.firestore_v1.types import firestore as firestore_pb

DB_PATH = "projects/projectID/databases/(default)"

A_TIMESTAMP = datetime(2017, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
A_TIMESTAMP2 = datetime(2017, 2, 1, 12, 0, 0, tzinfo=timezone.utc)
A_TIMESTAMP3 = datetime(2017, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def intval(i: int) -> document_pb.Value:
    return document_pb.Value(integer_value=i)


def found(doc: document_pb.Document, read_time: datetime) -> firestore_pb.BatchGetDocumentsResponse:
    return firestore_pb.BatchGetDocumentsResponse(found=doc, read_time=read_time)


def missing(name: str, read_time: datetime) -> firestore_pb.BatchGetDocumentsResponse:
    return firestore_pb.BatchGetDocumentsResponse(missing=name, read_time=read_time)


def make_doc(short_path: str, fields=None, timestamp: datetime = A_TIMESTAMP) -> document_pb.Document:
    return document_pb.Document(
        name=f"{DB_PATH}/documents/{short_path}",
        create_time=timestamp,
        update_time=timestamp,
        fields=fields or {},
    )


class FakeStream:
    """Iterator over scripted responses that can be cancelled like a gRPC call."""

    def __init__(self, items):
        self._items = iter(items)
        self.cancelled = False
        self.consumed = 0

    def __iter__(self):
        return self

    def __next__(self):
        if self.cancelled:
            raise exceptions.Cancelled("stream cancelled")
        item = next(self._items)
        if callable(item) and not isinstance(item, firestore_pb.BatchGetDocumentsResponse):
            item = item()
        if isinstance(item, BaseException):
            raise item
        self.consumed += 1
        return item

    def cancel(self):
        self.cancelled = True


class FakeFirestoreRPC:
    """Records BatchGetDocuments calls and replays scripted streams."""

    def __init__(self):
        self.reset()

    def reset(self):
        self._rpcs = []
        self.calls = []
        self.streams = []

    def add_rpc(self, want_request, responses):
        self._rpcs.append((want_request, list(responses)))

    def batch_get_documents(self, request=None, timeout=None, metadata=()):
        self.calls.append({"request": request, "timeout": timeout, "metadata": list(metadata)})
        if not self._rpcs:
            raise AssertionError(f"unexpected BatchGetDocuments call: {request}")
        want, responses = self._rpcs.pop(0)
        if want != request:
            raise AssertionError(f"got request\n{request}\nwant\n{want}")
        stream = FakeStream(responses)
        self.streams.append(stream)
        return stream

    @property
    def pending(self) -> int:
        return len(self._rpcs)
