"""
Prometheus metrics instrumentation for the Movie Catalog API.

Provides HTTP request metrics, error tracking, service health and filter
snapshot gauges using prometheus-fastapi-instrumentator.
"""

from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from prometheus_fastapi_instrumentator.metrics import Info
from typing import Callable, Dict
from logging_config.logger import get_logger

logger = get_logger(__name__)

METRIC_NAMESPACE = "movie"
METRIC_SUBSYSTEM = "catalog"

# ========== Custom Prometheus Metrics ==========

http_request_errors = Counter(
    "http_errors_total",
    "Total count of HTTP errors by endpoint and type",
    labelnames=["method", "handler", "status_code", "error_type"],
    namespace=METRIC_NAMESPACE,
    subsystem=METRIC_SUBSYSTEM
)

service_health = Gauge(
    "service_health",
    "Health status of a service component (1=healthy, 0=unhealthy)",
    labelnames=["component"],
    namespace=METRIC_NAMESPACE,
    subsystem=METRIC_SUBSYSTEM
)

filter_options = Gauge(
    "filter_options",
    "Number of legal values in the current filter snapshot",
    labelnames=["dimension"],
    namespace=METRIC_NAMESPACE,
    subsystem=METRIC_SUBSYSTEM
)

HEALTH_COMPONENTS = ("database", "cache")


# ========== Custom Instrumentation Functions ==========

def http_error_counter() -> Callable[[Info], None]:
    """
    Instrumentation function counting 4xx/5xx responses.

    Returns:
        Callable: Instrumentation function compatible with Instrumentator
    """
    def instrumentation(info: Info) -> None:
        if info.response and hasattr(info.response, "status_code"):
            status_code = info.response.status_code

            if status_code >= 400:
                error_type = classify_error(status_code)
                http_request_errors.labels(
                    method=info.method,
                    handler=info.modified_handler,
                    status_code=str(status_code),
                    error_type=error_type
                ).inc()

                logger.debug(
                    f"Error tracked: {info.method} {info.modified_handler} "
                    f"- {status_code} - {error_type}"
                )

    return instrumentation


# ========== Instrumentator Setup ==========

def setup_metrics(app) -> Instrumentator:
    """
    Setup Prometheus metrics instrumentation for FastAPI app.

    Args:
        app: FastAPI application instance

    Returns:
        Instrumentator: Configured instrumentator instance
    """
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics"],
        inprogress_name="requests_inprogress",
        inprogress_labels=True,
    )

    instrumentator.add(
        metrics.default(
            metric_namespace=METRIC_NAMESPACE,
            metric_subsystem=METRIC_SUBSYSTEM,
            should_only_respect_2xx_for_highr=False,
        )
    )
    instrumentator.add(http_error_counter())

    instrumentator.instrument(
        app,
        metric_namespace=METRIC_NAMESPACE,
        metric_subsystem=METRIC_SUBSYSTEM,
    )
    instrumentator.expose(
        app,
        endpoint="/metrics",
        include_in_schema=True,
        should_gzip=True,
    )

    logger.info(
        f"Prometheus metrics instrumentation enabled at /metrics "
        f"(namespace: {METRIC_NAMESPACE}, subsystem: {METRIC_SUBSYSTEM})"
    )

    return instrumentator


# ========== Helper Functions ==========

def classify_error(status_code: int) -> str:
    """
    Classify HTTP status code into error type.

    Args:
        status_code: HTTP status code

    Returns:
        str: Error type classification
    """
    if 400 <= status_code < 500:
        error_map = {
            400: "bad_request",
            404: "not_found",
            405: "method_not_allowed",
            422: "validation_error",
        }
        return error_map.get(status_code, "client_error")
    elif status_code == 503:
        return "backend_unavailable"
    elif 500 <= status_code < 600:
        return "server_error"
    else:
        return "unknown"


def update_service_health(component: str, is_healthy: bool):
    """
    Update health status of service component.

    Args:
        component: "database" or "cache"
        is_healthy: True if healthy, False otherwise
    """
    if component not in HEALTH_COMPONENTS:
        logger.warning(f"Unknown component for health tracking: {component}")
        return

    service_health.labels(component=component).set(1.0 if is_healthy else 0.0)
    logger.debug(
        f"Updated health for {component}: "
        f"{'healthy' if is_healthy else 'unhealthy'}"
    )


def update_filter_options(counts: Dict[str, int]):
    """Record the size of each filter dimension after a snapshot load."""
    for dimension, count in counts.items():
        filter_options.labels(dimension=dimension).set(count)
