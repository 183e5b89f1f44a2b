"""Shared types for references, snapshots, wire values and batched reads."""

from .errors import (ConflictingResultError, DocbatchError,
                     DuplicateResultError, InvalidDocumentReferenceError,
                     InvalidPathError, InvalidUtf8DocumentReferenceError,
                     NilDocumentReferenceError, ProtocolIntegrityError,
                     UnexpectedDocumentError, UnresolvedDocumentError,
                     ValueDecodeError)
from .paths import DEFAULT_DATABASE, CollectionRef, DocumentRef
from .snapshot import DocumentSnapshot

__all__ = [
    "CollectionRef",
    "ConflictingResultError",
    "DEFAULT_DATABASE",
    "DocbatchError",
    "DocumentRef",
    "DocumentSnapshot",
    "DuplicateResultError",
    "InvalidDocumentReferenceError",
    "InvalidPathError",
    "InvalidUtf8DocumentReferenceError",
    "NilDocumentReferenceError",
    "ProtocolIntegrityError",
    "UnexpectedDocumentError",
    "UnresolvedDocumentError",
    "ValueDecodeError",
]
