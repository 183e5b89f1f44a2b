"""
docbatch: batched document reads for Cloud Firestore.

Fetches many documents with one streamed ``BatchGetDocuments`` call and
returns the snapshots in the order they were asked for.
"""

__version__ = "0.1.0"

from .client import DocumentClient
from .common import (CollectionRef, ConflictingResultError, DocbatchError,
                     DocumentRef, DocumentSnapshot, DuplicateResultError,
                     InvalidDocumentReferenceError, InvalidPathError,
                     InvalidUtf8DocumentReferenceError,
                     NilDocumentReferenceError, ProtocolIntegrityError,
                     UnexpectedDocumentError, UnresolvedDocumentError,
                     ValueDecodeError)
from .config import ClientSettings
from .metrics import (CustomOpenTelemetryMetricsProvider, MetricsProvider,
                      NoopMetricsProvider)

__all__ = [
    "__version__",
    # --- Client ---
    "DocumentClient",
    "ClientSettings",
    # --- References & Snapshots ---
    "CollectionRef",
    "DocumentRef",
    "DocumentSnapshot",
    # --- Metrics Providers ---
    "MetricsProvider",
    "NoopMetricsProvider",
    "CustomOpenTelemetryMetricsProvider",
    # --- Errors ---
    "DocbatchError",
    "InvalidPathError",
    "InvalidDocumentReferenceError",
    "NilDocumentReferenceError",
    "InvalidUtf8DocumentReferenceError",
    "ProtocolIntegrityError",
    "ConflictingResultError",
    "DuplicateResultError",
    "UnexpectedDocumentError",
    "UnresolvedDocumentError",
    "ValueDecodeError",
]
