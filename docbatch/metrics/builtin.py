"""
Built-in client metrics.

Every client records the latency and count of its operations and RPC
attempts through OpenTelemetry. By default the measurements are exported to
Cloud Monitoring every five minutes; callers can instead hand in their own
MeterProvider or switch metrics off entirely.
"""
import logging
import time
from typing import Dict, Optional

from google.api_core import exceptions
from opentelemetry.exporter.cloud_monitoring import \
    CloudMonitoringMetricsExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (MetricExporter,
                                              PeriodicExportingMetricReader)

from .. import __version__
from ..common.errors import (InvalidDocumentReferenceError,
                             ProtocolIntegrityError)
from ..config.settings import DEFAULT_SAMPLE_PERIOD
from ..utils.environment import emulator_host
from ..utils.id_generator import create_client_uid

logger = logging.getLogger(__name__)

BUILTIN_METRICS_METER_NAME = "docbatch"
NATIVE_METRICS_PREFIX = "firestore.googleapis.com/internal/client"

CLIENT_NAME = f"python-docbatch v{__version__}"

# Monitored resource labels
MONITORED_RES_LABEL_KEY_PROJECT = "project_id"
MONITORED_RES_LABEL_KEY_INSTANCE = "instance_id"
MONITORED_RES_LABEL_KEY_INSTANCE_CONFIG = "instance_config"

# Metric labels
METRIC_LABEL_KEY_DATABASE = "database"
METRIC_LABEL_KEY_CLIENT_UID = "client_uid"
METRIC_LABEL_KEY_CLIENT_NAME = "client_name"
METRIC_LABEL_KEY_METHOD = "method"
METRIC_LABEL_KEY_OPERATION_STATUS = "status"

# Metric names
METRIC_NAME_OPERATION_LATENCIES = "operation_latencies"
METRIC_NAME_ATTEMPT_LATENCIES = "attempt_latencies"
METRIC_NAME_OPERATION_COUNT = "operation_count"
METRIC_NAME_ATTEMPT_COUNT = "attempt_count"

# Latency histogram bucket bounds, in milliseconds
BUCKET_BOUNDS = [
    0.0, 0.5, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 8.0, 10.0, 13.0, 16.0, 20.0, 25.0,
    30.0, 40.0, 50.0, 65.0, 80.0, 100.0, 130.0, 160.0, 200.0, 250.0, 300.0,
    400.0, 500.0, 650.0, 800.0, 1000.0, 2000.0, 5000.0, 10000.0, 20000.0,
    50000.0, 100000.0, 200000.0, 400000.0, 800000.0, 1600000.0, 3200000.0,
]


class MetricsProvider:
    """Selects where built-in metrics go. Use one of the subclasses."""


class NoopMetricsProvider(MetricsProvider):
    """Disables built-in metrics."""


class CustomOpenTelemetryMetricsProvider(MetricsProvider):
    """Records built-in metrics into a caller-owned MeterProvider."""

    def __init__(self, meter_provider: MeterProvider):
        self.meter_provider = meter_provider


def status_of(error: Optional[BaseException]) -> str:
    """Map an operation outcome to the gRPC status code name used as metric label."""
    if error is None:
        return "OK"
    if isinstance(error, exceptions.GoogleAPICallError) and error.grpc_status_code is not None:
        return error.grpc_status_code.name
    if isinstance(error, ProtocolIntegrityError):
        return "INTERNAL"
    if isinstance(error, (InvalidDocumentReferenceError, ValueError)):
        return "INVALID_ARGUMENT"
    return "UNKNOWN"


def create_builtin_meter_provider(project: str, exporter: Optional[MetricExporter] = None,
                                  export_interval: float = DEFAULT_SAMPLE_PERIOD) -> MeterProvider:
    """Default meter provider: periodic export to Cloud Monitoring."""
    if exporter is None:
        exporter = CloudMonitoringMetricsExporter(project_id=project, prefix=NATIVE_METRICS_PREFIX)
    reader = PeriodicExportingMetricReader(exporter, export_interval_millis=export_interval * 1000)
    return MeterProvider(metric_readers=[reader])


class BuiltinMetricsFactory:
    """
    Owns the built-in instruments for one client.

    Args:
        project: GCP project id.
        instance: Instance (database) the client talks to.
        instance_config: Instance configuration label, if known.
        metrics_provider: None for the default Cloud Monitoring export,
            NoopMetricsProvider to disable, or CustomOpenTelemetryMetricsProvider.
        uses_emulator: Disables metrics when True. When None the
            FIRESTORE_EMULATOR_HOST environment variable decides.
        exporter: Exporter for the default provider; Cloud Monitoring if None.
        export_interval: Seconds between two exports for the default provider.

    Raises:
        ValueError: If ``metrics_provider`` is of an unknown type.
    """

    def __init__(
        self,
        project: str,
        instance: str,
        instance_config: str = "",
        metrics_provider: Optional[MetricsProvider] = None,
        uses_emulator: Optional[bool] = None,
        exporter: Optional[MetricExporter] = None,
        export_interval: float = DEFAULT_SAMPLE_PERIOD,
    ):
        try:
            client_uid = create_client_uid()
        except OSError as e:
            logger.warning(
                f"built-in metrics: create_client_uid failed: {e}. "
                f"Using empty string in the {METRIC_LABEL_KEY_CLIENT_UID} metric attribute"
            )
            client_uid = ""

        self.enabled = False
        self._owned_provider: Optional[MeterProvider] = None
        self.client_attributes: Dict[str, str] = {
            MONITORED_RES_LABEL_KEY_PROJECT: project,
            MONITORED_RES_LABEL_KEY_INSTANCE: instance,
            MONITORED_RES_LABEL_KEY_INSTANCE_CONFIG: instance_config,
            METRIC_LABEL_KEY_CLIENT_UID: client_uid,
            METRIC_LABEL_KEY_CLIENT_NAME: CLIENT_NAME,
        }

        if uses_emulator is None:
            uses_emulator = emulator_host() is not None
        if uses_emulator:
            # Do not emit metrics when emulator is being used
            logger.debug("built-in metrics disabled: emulator in use")
            return

        if metrics_provider is None:
            meter_provider = create_builtin_meter_provider(project, exporter, export_interval)
            self._owned_provider = meter_provider
        elif isinstance(metrics_provider, CustomOpenTelemetryMetricsProvider):
            meter_provider = metrics_provider.meter_provider
        elif isinstance(metrics_provider, NoopMetricsProvider):
            return
        else:
            raise ValueError(f"Unknown MetricsProvider type: {type(metrics_provider).__name__}")

        self.enabled = True
        self._create_instruments(meter_provider.get_meter(BUILTIN_METRICS_METER_NAME, version=__version__))

    def _create_instruments(self, meter):
        self.operation_latencies = meter.create_histogram(
            METRIC_NAME_OPERATION_LATENCIES,
            unit="ms",
            description="Total time until final operation success or failure, including retries and backoff.",
            explicit_bucket_boundaries_advisory=BUCKET_BOUNDS,
        )
        self.attempt_latencies = meter.create_histogram(
            METRIC_NAME_ATTEMPT_LATENCIES,
            unit="ms",
            description="Client observed latency per RPC attempt.",
            explicit_bucket_boundaries_advisory=BUCKET_BOUNDS,
        )
        self.operation_count = meter.create_counter(
            METRIC_NAME_OPERATION_COUNT,
            description="The number of RPC that represents a single method invocation. "
                        "The method might require multiple attempts/rpcs and backoff logic to complete",
        )
        self.attempt_count = meter.create_counter(
            METRIC_NAME_ATTEMPT_COUNT,
            description="The number of additional RPCs sent after the initial attempt.",
        )

    def create_tracer(self, method: str, database: str) -> "OperationTracer":
        return OperationTracer(self, method, database)

    def shutdown(self) -> None:
        """Flush and stop the meter provider if this factory created it."""
        if self._owned_provider is not None:
            self._owned_provider.shutdown()
            self._owned_provider = None
        self.enabled = False


class OperationTracer:
    """Times one operation and its attempts, and records them on completion."""

    def __init__(self, factory: BuiltinMetricsFactory, method: str, database: str):
        self._factory = factory
        self._method = method
        self._database = database
        self._operation_start = time.monotonic()
        self._attempt_start: Optional[float] = None
        self.attempts = 0

    def _attributes(self, status: str) -> Dict[str, str]:
        return {
            **self._factory.client_attributes,
            METRIC_LABEL_KEY_DATABASE: self._database,
            METRIC_LABEL_KEY_METHOD: self._method,
            METRIC_LABEL_KEY_OPERATION_STATUS: status,
        }

    def start_attempt(self) -> None:
        self._attempt_start = time.monotonic()
        self.attempts += 1

    def record_attempt_completion(self, status: str) -> None:
        if not self._factory.enabled or self._attempt_start is None:
            return
        elapsed_ms = (time.monotonic() - self._attempt_start) * 1000
        attributes = self._attributes(status)
        self._factory.attempt_latencies.record(elapsed_ms, attributes)
        self._factory.attempt_count.add(1, attributes)

    def record_operation_completion(self, status: str) -> None:
        if not self._factory.enabled:
            return
        elapsed_ms = (time.monotonic() - self._operation_start) * 1000
        attributes = self._attributes(status)
        self._factory.operation_latencies.record(elapsed_ms, attributes)
        self._factory.operation_count.add(1, attributes)
