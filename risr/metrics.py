from prometheus_client import REGISTRY, Counter, Histogram, write_to_textfile

# ── Metric definitions ──

health_checks_total = Counter(
    "risr_health_checks_total",
    "Health evaluations of a new AutoScaling group",
    ["stack", "healthy"],
)

deployments_total = Counter(
    "risr_deployments_total",
    "Finished deployments by outcome",
    ["stack", "outcome"],
)

asgs_deleted_total = Counter(
    "risr_asgs_deleted_total",
    "Old AutoScaling groups deleted by the reaper",
    ["stack"],
)

deployment_duration_seconds = Histogram(
    "risr_deployment_duration_seconds",
    "Wall time of a deployment in seconds",
    ["stack"],
    buckets=[30, 60, 120, 300, 600, 900, 1800, 3600],
)


# ── Helpers ──

def record_health_check(stack: str, healthy: bool) -> None:
    """Count one health evaluation of a new group."""
    health_checks_total.labels(stack=stack, healthy=str(healthy).lower()).inc()


def record_deployment(stack: str, outcome: str, duration_seconds: float) -> None:
    """Record a finished deployment and how long it took."""
    deployments_total.labels(stack=stack, outcome=outcome).inc()
    deployment_duration_seconds.labels(stack=stack).observe(duration_seconds)


def record_deleted_group(stack: str) -> None:
    """Count an old group dropped by the reaper."""
    asgs_deleted_total.labels(stack=stack).inc()


def export_textfile(path: str) -> None:
    """Write the default registry in the node-exporter textfile format."""
    write_to_textfile(path, REGISTRY)
