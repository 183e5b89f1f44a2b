from .builtin import (BuiltinMetricsFactory,
                      CustomOpenTelemetryMetricsProvider, MetricsProvider,
                      NoopMetricsProvider, OperationTracer, status_of)

__all__ = [
    "BuiltinMetricsFactory",
    "CustomOpenTelemetryMetricsProvider",
    "MetricsProvider",
    "NoopMetricsProvider",
    "OperationTracer",
    "status_of",
]
