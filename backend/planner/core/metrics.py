"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Guest mutation metrics
guest_mutations = Counter(
    'guest_mutations_total',
    'Guest create/update/delete operations',
    ['operation', 'status']  # operation: create, bulk_create, update, delete
)

cascade_latency = Histogram(
    'guest_cascade_latency_seconds',
    'Latency of a full guest mutation including derived-record sync',
    ['operation'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Derived record metrics
cascade_actions = Counter(
    'guest_cascade_actions_total',
    'Derived-record writes performed by the cascade',
    ['module', 'action']  # module: hotel, transport, budget
)

primary_insert_conflicts = Counter(
    'primary_record_insert_conflicts_total',
    'Primary hotel/transport inserts that lost a race and fell back to update',
    ['module']
)

budget_reconcile_failures = Counter(
    'budget_reconcile_failures_total',
    'Per-guest budget recounts that failed'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_guest_mutation(operation: str, status: str):
    """Record a guest mutation. Status: success, error"""
    guest_mutations.labels(operation=operation, status=status).inc()


def record_cascade_action(module: str, action: str, count: int = 1):
    cascade_actions.labels(module=module, action=action).inc(count)


def record_insert_conflict(module: str):
    primary_insert_conflicts.labels(module=module).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
