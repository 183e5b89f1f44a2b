"""
Client for batched document reads.

The client builds references, runs ``BatchGetDocuments`` through the
generated Firestore RPC client and records built-in metrics for every
operation. The RPC object is injectable so that any transport exposing
``batch_get_documents(request=, timeout=, metadata=)`` can be used.
"""
import copy
import logging
import threading
from datetime import datetime
from typing import Iterable, List, Optional

from google.auth.credentials import Credentials

from .common.batch_get import (BATCH_GET_METHOD, RESOURCE_PREFIX_HEADER,
                               execute_batch_get, plan_batch_get)
from .common.paths import (DOCUMENTS_SEGMENT, CollectionRef, DocumentRef,
                           collection_from_path, database_root_path,
                           document_from_path)
from .common.snapshot import DocumentSnapshot
from .config.settings import ClientSettings
from .metrics.builtin import (BuiltinMetricsFactory, MetricsProvider,
                              NoopMetricsProvider, status_of)
from .transport import EMULATOR_AUTH_METADATA, create_firestore_rpc
from .utils.environment import verify_gcp_credentials

logger = logging.getLogger(__name__)


class _SharedRpc:
    """RPC client built on first use and shared by a client and its copies."""

    def __init__(self, rpc, settings: ClientSettings, credentials: Optional[Credentials]):
        self._rpc = rpc
        self._owned = rpc is None
        self._settings = settings
        self._credentials = credentials
        self._lock = threading.Lock()

    def get(self):
        with self._lock:
            if self._rpc is None:
                if not self._settings.emulator_host and self._credentials is None:
                    verify_gcp_credentials()
                self._rpc = create_firestore_rpc(self._settings, self._credentials)
            return self._rpc

    def close(self) -> None:
        with self._lock:
            if self._owned and self._rpc is not None:
                self._rpc.transport.close()
                self._rpc = None


class DocumentClient:
    """
    Entry point for reading documents.

    Args:
        project_id: GCP project. Falls back to settings (DOCBATCH_PROJECT_ID,
            GOOGLE_CLOUD_PROJECT, GCLOUD_PROJECT or docbatch.toml).
        database_id: Database within the project. Falls back to settings,
            which default to "(default)".
        rpc: Pre-built RPC client. When None, a GAPIC FirestoreClient is
            created on first use and closed by ``close()``.
        credentials: Credentials for the GAPIC client; ADC if None.
        settings: Explicit settings; read from the environment if None.
        metrics_provider: Destination of built-in metrics. See
            ``BuiltinMetricsFactory``.
        metrics_exporter: Exporter used by the default metrics provider.

    Raises:
        ValueError: If the project id or database id is empty.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        database_id: Optional[str] = None,
        *,
        rpc=None,
        credentials: Optional[Credentials] = None,
        settings: Optional[ClientSettings] = None,
        metrics_provider: Optional[MetricsProvider] = None,
        metrics_exporter=None,
    ):
        self.settings = settings or ClientSettings()
        self.project_id = project_id or self.settings.project_id
        if not self.project_id:
            raise ValueError(
                "project_id must be provided or GOOGLE_CLOUD_PROJECT env var must be set"
            )
        self.database_id = self.settings.database_id if database_id is None else database_id
        if not self.database_id:
            raise ValueError("database_id must not be empty")

        self.uses_emulator = bool(self.settings.emulator_host)
        self._shared_rpc = _SharedRpc(rpc, self.settings, credentials)
        # read-option copies share the RPC client and metrics but never close them
        self._owns_resources = True
        self._read_time: Optional[datetime] = None

        if metrics_provider is None and not self.settings.builtin_metrics_enabled:
            metrics_provider = NoopMetricsProvider()
        self._metrics = BuiltinMetricsFactory(
            self.project_id,
            self.database_id,
            metrics_provider=metrics_provider,
            uses_emulator=self.uses_emulator,
            exporter=metrics_exporter,
            export_interval=self.settings.metrics_export_interval_seconds,
        )

        logger.info(f"Initialized DocumentClient for {self.database_path}")

    @property
    def database_path(self) -> str:
        return database_root_path(self.project_id, self.database_id)

    @property
    def documents_path(self) -> str:
        return f"{self.database_path}/{DOCUMENTS_SEGMENT}"

    @property
    def metrics(self) -> BuiltinMetricsFactory:
        return self._metrics

    @property
    def read_time(self) -> Optional[datetime]:
        """Default read time applied to reads, set by ``with_read_options``."""
        return self._read_time

    def collection(self, path: str) -> CollectionRef:
        """Reference to the collection at a relative path such as ``users`` or ``users/u1/posts``."""
        return collection_from_path(self, path)

    def doc(self, path: str) -> DocumentRef:
        """Reference to the document at a relative path such as ``users/u1``."""
        return document_from_path(self, path)

    document = doc

    def with_read_options(self, read_time: Optional[datetime] = None) -> "DocumentClient":
        """
        Return a client whose reads default to the given read time.

        The copy shares the RPC client and metrics with this one. Only the
        original releases them, so ``close()`` on the copy does nothing.
        """
        clone = copy.copy(self)
        clone._read_time = read_time
        clone._owns_resources = False
        return clone

    def get_all(
        self,
        references: Iterable[Optional[DocumentRef]],
        *,
        read_time: Optional[datetime] = None,
        transaction: Optional[bytes] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[DocumentSnapshot]:
        """
        Fetch many documents with a single ``BatchGetDocuments`` call.

        The result has one snapshot per input reference, in input order.
        Repeated references each get their own snapshot of the same result.
        Documents that do not exist yield snapshots with ``exists=False``.

        Args:
            references: Documents to read. May contain duplicates.
            read_time: Read the documents as of this time. Overrides the
                client's default from ``with_read_options``.
            transaction: Read inside this transaction.
            timeout: Deadline in seconds for the whole call.
            cancel_event: Set it from another thread to abort the call.

        Raises:
            InvalidDocumentReferenceError: Before any RPC, for a None,
                non-reference, or non-UTF-8 entry.
            ProtocolIntegrityError: The server's answer was inconsistent.
            google.api_core.exceptions.GoogleAPICallError: Transport errors,
                cancellation and deadline expiry.
        """
        references = list(references)
        if read_time is None and transaction is None:
            read_time = self._read_time
        plan = plan_batch_get(self.database_path, references, read_time=read_time, transaction=transaction)
        if not references:
            return []
        if timeout is None:
            timeout = self.settings.request_timeout_seconds

        tracer = self._metrics.create_tracer(BATCH_GET_METHOD, self.database_id)
        tracer.start_attempt()
        try:
            snapshots = execute_batch_get(
                self._get_rpc(),
                plan,
                metadata=self._metadata(),
                timeout=timeout,
                cancel_event=cancel_event,
            )
        except Exception as e:
            status = status_of(e)
            tracer.record_attempt_completion(status)
            tracer.record_operation_completion(status)
            logger.error(f"BatchGetDocuments failed for {len(plan.paths)} document(s): {e}")
            raise

        tracer.record_attempt_completion("OK")
        tracer.record_operation_completion("OK")
        return snapshots

    def _metadata(self):
        metadata = [(RESOURCE_PREFIX_HEADER, self.database_path)]
        if self.uses_emulator:
            metadata.append(EMULATOR_AUTH_METADATA)
        return metadata

    def _get_rpc(self):
        return self._shared_rpc.get()

    def close(self) -> None:
        """
        Stop metric export and close the RPC client if this client created it.

        A no-op on copies returned by ``with_read_options``.
        """
        if not self._owns_resources:
            return
        self._metrics.shutdown()
        self._shared_rpc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
