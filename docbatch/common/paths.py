"""
Document and collection references.

A reference is a lightweight pointer to a location in the database; creating
one never touches the network. References are identified by their full
resource name (``projects/{p}/databases/{d}/documents/...``), so two
references built independently for the same document are equal and hash
the same.
"""
import logging
from typing import TYPE_CHECKING, List, Optional

from .errors import InvalidPathError

if TYPE_CHECKING:
    from ..client import DocumentClient
    from .snapshot import DocumentSnapshot

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "(default)"
DOCUMENTS_SEGMENT = "documents"


def database_root_path(project_id: str, database_id: str) -> str:
    """Return the resource name of a database."""
    return f"projects/{project_id}/databases/{database_id}"


def split_path(path: str) -> List[str]:
    """
    Split a relative slash-separated path into its segments.

    Raises:
        InvalidPathError: If the path is empty or has an empty segment
            (leading, trailing or doubled slashes).
    """
    if not path:
        raise InvalidPathError("path must not be empty")
    segments = path.split("/")
    if any(segment == "" for segment in segments):
        raise InvalidPathError(f"path {path!r} has an empty segment")
    return segments


class CollectionRef:
    """Reference to a collection of documents."""

    def __init__(self, client: "DocumentClient", parent: Optional["DocumentRef"], collection_id: str):
        self._client = client
        self.parent = parent
        self.id = collection_id
        parent_path = parent.path if parent is not None else client.documents_path
        self.path = f"{parent_path}/{collection_id}"
        self.short_path = f"{parent.short_path}/{collection_id}" if parent is not None else collection_id

    @property
    def client(self) -> "DocumentClient":
        return self._client

    def doc(self, document_id: str) -> "DocumentRef":
        """Return a reference to the document with the given id in this collection."""
        if not document_id or "/" in document_id:
            raise InvalidPathError(f"document id {document_id!r} must be a single non-empty segment")
        return DocumentRef(self._client, self, document_id)

    document = doc

    def __eq__(self, other):
        if not isinstance(other, CollectionRef):
            return NotImplemented
        return self.path == other.path

    def __hash__(self):
        return hash(("collection", self.path))

    def __repr__(self):
        return f"CollectionRef({self.short_path!r})"


class DocumentRef:
    """Reference to a single document."""

    def __init__(self, client: "DocumentClient", parent: CollectionRef, document_id: str):
        self._client = client
        self.parent = parent
        self.id = document_id
        self.path = f"{parent.path}/{document_id}"
        self.short_path = f"{parent.short_path}/{document_id}"

    @property
    def client(self) -> "DocumentClient":
        return self._client

    def collection(self, collection_id: str) -> CollectionRef:
        """Return a reference to a subcollection of this document."""
        if not collection_id or "/" in collection_id:
            raise InvalidPathError(f"collection id {collection_id!r} must be a single non-empty segment")
        return CollectionRef(self._client, self, collection_id)

    def get(self, **kwargs) -> "DocumentSnapshot":
        """Fetch this document. Accepts the same keyword arguments as ``get_all``."""
        return self._client.get_all([self], **kwargs)[0]

    def __eq__(self, other):
        if not isinstance(other, DocumentRef):
            return NotImplemented
        return self.path == other.path

    def __hash__(self):
        return hash(("document", self.path))

    def __repr__(self):
        return f"DocumentRef({self.short_path!r})"


def collection_from_path(client: "DocumentClient", path: str) -> CollectionRef:
    """Build a CollectionRef from a relative path with an odd number of segments."""
    segments = split_path(path)
    if len(segments) % 2 == 0:
        raise InvalidPathError(f"collection path {path!r} must have an odd number of segments")
    return _walk(client, segments)


def document_from_path(client: "DocumentClient", path: str) -> DocumentRef:
    """Build a DocumentRef from a relative path with an even number of segments."""
    segments = split_path(path)
    if len(segments) % 2 == 1:
        raise InvalidPathError(f"document path {path!r} must have an even number of segments")
    return _walk(client, segments)


def _walk(client, segments):
    ref = None
    for i, segment in enumerate(segments):
        if i % 2 == 0:
            ref = CollectionRef(client, ref, segment)
        else:
            ref = DocumentRef(client, ref, segment)
    return ref
