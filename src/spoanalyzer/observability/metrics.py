"""Prometheus metrics for the SPO Permissions Analyzer."""
from prometheus_client import Counter, Gauge, Histogram, Info


# Operation metrics
operations_started_total = Counter(
    'spoanalyzer_operations_started_total',
    'Total number of background operations accepted',
    ['operation_type']
)

operations_rejected_total = Counter(
    'spoanalyzer_operations_rejected_total',
    'Total number of operations rejected because another one was running',
    ['operation_type']
)

operations_succeeded_total = Counter(
    'spoanalyzer_operations_succeeded_total',
    'Total number of successful operations',
    ['operation_type']
)

operations_failed_total = Counter(
    'spoanalyzer_operations_failed_total',
    'Total number of failed operations',
    ['operation_type']
)

operation_duration_seconds = Histogram(
    'spoanalyzer_operation_duration_seconds',
    'Operation execution duration in seconds',
    ['operation_type', 'status'],
    buckets=[0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 900.0, 1800.0]
)

operation_running = Gauge(
    'spoanalyzer_operation_running',
    'Whether a background operation is currently running'
)

# Credential forwarding
credential_forwarding_total = Counter(
    'spoanalyzer_credential_forwarding_total',
    'Credential forwarding attempts by strategy and outcome',
    ['strategy', 'outcome']
)

# System info
system_info = Info(
    'spoanalyzer_system',
    'SPO Permissions Analyzer system information'
)


def record_operation_started(operation_type: str) -> None:
    """Record an accepted operation."""
    operations_started_total.labels(operation_type=operation_type).inc()


def record_operation_rejected(operation_type: str) -> None:
    """Record an operation rejected as busy."""
    operations_rejected_total.labels(operation_type=operation_type).inc()


def record_operation_succeeded(operation_type: str, duration: float) -> None:
    """Record operation success metric."""
    operations_succeeded_total.labels(operation_type=operation_type).inc()
    operation_duration_seconds.labels(operation_type=operation_type, status="success").observe(duration)


def record_operation_failed(operation_type: str, duration: float) -> None:
    """Record operation failure metric."""
    operations_failed_total.labels(operation_type=operation_type).inc()
    operation_duration_seconds.labels(operation_type=operation_type, status="failed").observe(duration)


def record_credential_forwarding(strategy: str, outcome: str) -> None:
    """Record one credential forwarding attempt."""
    credential_forwarding_total.labels(strategy=strategy, outcome=outcome).inc()


def update_operation_metrics(running: bool) -> None:
    """
    Set the running gauge.

    Called on every state transition, under the state lock, so gauge
    writes happen in transition order.

    Args:
        running: Whether an operation is running right now
    """
    operation_running.set(1 if running else 0)


def init_system_info(version: str) -> None:
    """
    Initialize system information metric.

    Args:
        version: Application version
    """
    system_info.info({
        'version': version,
        'name': 'spoanalyzer'
    })
