"""
Batched document reads.

``BatchGetDocuments`` answers with a stream of found/missing results in
whatever order the backend produces them. This module turns a caller's list
of references into a single request (one entry per distinct document), drains
the stream into a per-call map keyed on the document's resource name, and
only then lays the results back out in the caller's order, duplicating a
result for every position that asked for the same document.

Nothing is returned unless the whole stream was consumed successfully:
transport errors propagate unchanged, and inconsistent answers from the
server raise a ProtocolIntegrityError.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from google.api_core import exceptions
from google.api_core.datetime_helpers import DatetimeWithNanoseconds
from google.cloud.firestore_v1.types import firestore as firestore_pb

from .errors import (ConflictingResultError, DuplicateResultError,
                     InvalidDocumentReferenceError,
                     InvalidUtf8DocumentReferenceError,
                     NilDocumentReferenceError, UnexpectedDocumentError,
                     UnresolvedDocumentError)
from .paths import DocumentRef
from .snapshot import DocumentSnapshot

logger = logging.getLogger(__name__)

BATCH_GET_METHOD = "BatchGetDocuments"
RESOURCE_PREFIX_HEADER = "google-cloud-resource-prefix"

# How often the watcher thread checks the cancellation event and deadline.
CANCEL_POLL_INTERVAL = 0.05

FOUND = "found"
MISSING = "missing"


def validate_references(references: Sequence[Optional[DocumentRef]]) -> None:
    """
    Check every reference before any request is built.

    Raises:
        NilDocumentReferenceError: If an entry is None.
        InvalidDocumentReferenceError: If an entry is not a DocumentRef.
        InvalidUtf8DocumentReferenceError: If a path is not valid UTF-8.
    """
    for i, ref in enumerate(references):
        if ref is None:
            raise NilDocumentReferenceError(f"document reference at index {i} is None", index=i)
        if not isinstance(ref, DocumentRef):
            raise InvalidDocumentReferenceError(
                f"expected DocumentRef at index {i}, got {type(ref).__name__}", index=i
            )
        try:
            ref.path.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidUtf8DocumentReferenceError(
                f"document reference at index {i} has a path that is not valid UTF-8: {ref.path!r}",
                index=i,
            ) from None


@dataclass
class BatchGetPlan:
    """A validated batched read: the wire request plus where each result goes."""

    references: List[DocumentRef]
    request: firestore_pb.BatchGetDocumentsRequest
    # resource name -> every input position that asked for it, in input order
    positions: Dict[str, List[int]] = field(default_factory=dict)

    @property
    def paths(self) -> List[str]:
        return list(self.positions)


def plan_batch_get(
    database_path: str,
    references: Sequence[Optional[DocumentRef]],
    read_time: Optional[datetime] = None,
    transaction: Optional[bytes] = None,
) -> BatchGetPlan:
    """
    Validate the references and build the ``BatchGetDocumentsRequest``.

    Each distinct document is requested once, in order of first appearance.

    Raises:
        InvalidDocumentReferenceError: See ``validate_references``.
        ValueError: If both ``read_time`` and ``transaction`` are given.
    """
    if read_time is not None and transaction is not None:
        raise ValueError("read_time and transaction are mutually exclusive")
    validate_references(references)

    positions: Dict[str, List[int]] = {}
    for i, ref in enumerate(references):
        positions.setdefault(ref.path, []).append(i)

    request = firestore_pb.BatchGetDocumentsRequest(database=database_path, documents=list(positions))
    if read_time is not None:
        request.read_time = read_time
    elif transaction is not None:
        request.transaction = transaction
    return BatchGetPlan(references=list(references), request=request, positions=positions)


class ResultCollector:
    """Per-call map from resource name to the single result reported for it."""

    def __init__(self, plan: BatchGetPlan):
        self._plan = plan
        self._results: Dict[str, Tuple[str, object, Optional[DatetimeWithNanoseconds]]] = {}

    @property
    def resolved(self) -> int:
        return len(self._results)

    def add(self, response) -> None:
        """
        Record one streamed response.

        Responses that only carry transaction metadata are ignored.

        Raises:
            UnexpectedDocumentError: The document was never requested.
            ConflictingResultError: The document was already reported with the
                opposite result.
            DuplicateResultError: The document was already reported with the
                same result.
        """
        response_pb = _raw(response)
        kind = response_pb.WhichOneof("result")
        if kind is None:
            return
        if kind == FOUND:
            path = response_pb.found.name
            payload = response_pb.found
        else:
            path = response_pb.missing
            payload = None
        read_time = None
        if response_pb.HasField("read_time"):
            read_time = DatetimeWithNanoseconds.from_timestamp_pb(response_pb.read_time)

        if path not in self._plan.positions:
            raise UnexpectedDocumentError(
                f"BatchGetDocuments returned {path!r}, which was never requested", path=path
            )
        previous = self._results.get(path)
        if previous is not None:
            if previous[0] != kind:
                raise ConflictingResultError(
                    f"BatchGetDocuments reported {path!r} as both found and missing", path=path
                )
            raise DuplicateResultError(f"BatchGetDocuments reported {path!r} twice", path=path)
        self._results[path] = (kind, payload, read_time)

    def snapshots(self) -> List[DocumentSnapshot]:
        """
        Lay the results out in input order.

        Raises:
            UnresolvedDocumentError: Some requested document never got a result.
        """
        unresolved = [path for path in self._plan.positions if path not in self._results]
        if unresolved:
            raise UnresolvedDocumentError(
                f"BatchGetDocuments ended without a result for {len(unresolved)} document(s): "
                + ", ".join(unresolved),
                paths=unresolved,
            )
        out: List[Optional[DocumentSnapshot]] = [None] * len(self._plan.references)
        for path, indices in self._plan.positions.items():
            kind, payload, read_time = self._results[path]
            for i in indices:
                ref = self._plan.references[i]
                if kind == FOUND:
                    out[i] = DocumentSnapshot.from_found(ref, payload, read_time)
                else:
                    out[i] = DocumentSnapshot.missing(ref, read_time)
        return out


class _StreamWatcher:
    """Cancels a streaming call from a background thread when asked to stop."""

    def __init__(self, stream, cancel_event: Optional[threading.Event], deadline: Optional[float]):
        self._stream = stream
        self._cancel_event = cancel_event
        self._deadline = deadline
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.reason: Optional[str] = None

    def __enter__(self):
        if self._cancel_event is not None or self._deadline is not None:
            self._thread = threading.Thread(target=self._watch, name="docbatch-stream-watcher", daemon=True)
            self._thread.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._done.set()
        if exc_type is not None:
            # abandoned mid-stream; stop the server from sending the rest
            self._cancel_stream()
        if self._thread is not None:
            self._thread.join()
        return False

    def check(self) -> None:
        """Raise if the call was cancelled or ran past its deadline."""
        reason = self.reason or _stop_reason(self._cancel_event, self._deadline)
        if reason is None:
            return
        self._cancel_stream()
        raise _stop_error(reason)

    def _watch(self):
        while not self._done.wait(CANCEL_POLL_INTERVAL):
            reason = _stop_reason(self._cancel_event, self._deadline)
            if reason is not None:
                self.reason = reason
                logger.debug(f"Cancelling BatchGetDocuments stream: {reason}")
                self._cancel_stream()
                return

    def _cancel_stream(self):
        cancel = getattr(self._stream, "cancel", None)
        if callable(cancel):
            cancel()


def _stop_reason(cancel_event, deadline) -> Optional[str]:
    if cancel_event is not None and cancel_event.is_set():
        return "cancelled"
    if deadline is not None and time.monotonic() >= deadline:
        return "deadline"
    return None


def _stop_error(reason: str) -> exceptions.GoogleAPICallError:
    if reason == "deadline":
        return exceptions.DeadlineExceeded("BatchGetDocuments deadline exceeded")
    return exceptions.Cancelled("BatchGetDocuments cancelled by caller")


def execute_batch_get(
    rpc,
    plan: BatchGetPlan,
    metadata: Iterable[Tuple[str, str]] = (),
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[DocumentSnapshot]:
    """
    Issue the planned request and reassemble the streamed results.

    Args:
        rpc: Object exposing ``batch_get_documents(request=, timeout=, metadata=)``
            that returns an iterable of ``BatchGetDocumentsResponse``.
        plan: Output of ``plan_batch_get``.
        metadata: Extra gRPC metadata for the call.
        timeout: Overall deadline in seconds, enforced by the transport and
            between streamed responses.
        cancel_event: Setting this event aborts the call with ``Cancelled``.

    Returns:
        One snapshot per input reference, in input order.
    """
    deadline = time.monotonic() + timeout if timeout is not None else None
    preflight = _stop_reason(cancel_event, deadline)
    if preflight is not None:
        raise _stop_error(preflight)

    collector = ResultCollector(plan)
    stream = rpc.batch_get_documents(request=plan.request, timeout=timeout, metadata=list(metadata))
    with _StreamWatcher(stream, cancel_event, deadline) as watcher:
        try:
            for response in stream:
                watcher.check()
                collector.add(response)
        except exceptions.Cancelled as e:
            # The watcher cancelled the stream underneath the transport.
            if watcher.reason is not None:
                raise _stop_error(watcher.reason) from e
            raise
        watcher.check()

    logger.debug(
        f"BatchGetDocuments resolved {collector.resolved} document(s) "
        f"for {len(plan.references)} reference(s)"
    )
    return collector.snapshots()


def _raw(response):
    if isinstance(response, firestore_pb.BatchGetDocumentsResponse):
        return firestore_pb.BatchGetDocumentsResponse.pb(response)
    return response
