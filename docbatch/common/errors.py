"""
Exceptions raised by the docbatch client.

Transport failures are not represented here: they surface as the
``google.api_core.exceptions`` errors raised by the RPC layer.
"""


class DocbatchError(Exception):
    """Base class for all errors raised by docbatch itself."""


class InvalidPathError(DocbatchError, ValueError):
    """A collection or document path is malformed."""


class InvalidDocumentReferenceError(DocbatchError, ValueError):
    """A document reference passed to a read is not usable."""

    def __init__(self, message: str, index: int = -1):
        super().__init__(message)
        self.index = index


class NilDocumentReferenceError(InvalidDocumentReferenceError):
    """A ``None`` entry was passed where a document reference was expected."""


class InvalidUtf8DocumentReferenceError(InvalidDocumentReferenceError):
    """A document reference path cannot be encoded as UTF-8."""


class ProtocolIntegrityError(DocbatchError):
    """The server answered a batched read in a way that violates its contract."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class ConflictingResultError(ProtocolIntegrityError):
    """A document was reported both found and missing."""


class DuplicateResultError(ProtocolIntegrityError):
    """A document was reported twice with the same result."""


class UnexpectedDocumentError(ProtocolIntegrityError):
    """A result arrived for a document that was never requested."""


class UnresolvedDocumentError(ProtocolIntegrityError):
    """The stream ended before every requested document was resolved."""

    def __init__(self, message: str, paths=()):
        super().__init__(message, path=paths[0] if paths else "")
        self.paths = list(paths)


class ValueDecodeError(DocbatchError):
    """A wire value has a kind the decoder does not understand."""
