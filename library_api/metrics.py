"""
Prometheus metrics collection for the library API.
"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry
import time
from flask import request, g

# Create a custom registry
REGISTRY = CollectorRegistry()

# Request counters
request_count = Counter(
    'library_request_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=REGISTRY
)

# Request latency histogram
request_latency = Histogram(
    'library_request_duration_seconds',
    'HTTP request latency',
    ['method', 'endpoint'],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

# Error counter
errors = Counter(
    'library_errors_total',
    'Total errors by type',
    ['error_type'],
    registry=REGISTRY
)

# Borrow/return outcomes
checkout_operations = Counter(
    'library_checkout_operations_total',
    'Borrow and return attempts by outcome',
    ['operation', 'outcome'],
    registry=REGISTRY
)

# Connections currently checked out of the pool
db_connections = Gauge(
    'library_db_connections_active',
    'Active database connections',
    registry=REGISTRY
)

# Circuit breaker metrics
circuit_breaker_state = Gauge(
    'library_circuit_breaker_state',
    'Circuit breaker state (0=closed, 1=open, 2=half_open)',
    ['breaker_name'],
    registry=REGISTRY
)

circuit_breaker_failures = Gauge(
    'library_circuit_breaker_failures',
    'Number of failures in circuit breaker',
    ['breaker_name'],
    registry=REGISTRY
)


def record_request_start(endpoint):
    """Record the start of a request."""
    g.start_time = time.time()
    g.endpoint = endpoint or 'unknown'


def record_request_end(response):
    """Record metrics for a completed request."""
    endpoint = g.get('endpoint', 'unknown')
    status_code = response.status_code

    if 'start_time' in g:
        latency = time.time() - g.start_time
        request_latency.labels(method=request.method, endpoint=endpoint).observe(latency)

    request_count.labels(
        method=request.method,
        endpoint=endpoint,
        status=status_code
    ).inc()


def record_error(error_type):
    """Record an error."""
    errors.labels(error_type=error_type).inc()


def record_checkout(operation, outcome):
    """Record the outcome of a borrow or return."""
    checkout_operations.labels(operation=operation, outcome=outcome).inc()


def update_circuit_breaker_metrics(breaker_name, state, failures):
    """Update circuit breaker metrics."""
    state_value = 0  # closed
    if state == 'open':
        state_value = 1
    elif state == 'half-open':
        state_value = 2

    circuit_breaker_state.labels(breaker_name=breaker_name).set(state_value)
    circuit_breaker_failures.labels(breaker_name=breaker_name).set(failures)
