"""Prometheus metrics helpers."""
from prometheus_client import Counter, Gauge, Info, generate_latest, CONTENT_TYPE_LATEST


# ============================================
# Request Metrics
# ============================================

HTTP_REQUESTS = Counter(
    'webserve_http_requests_total',
    'Total HTTP requests by route decision',
    ['decision']
)


# ============================================
# Live Reload Metrics
# ============================================

FS_EVENTS = Counter(
    'webserve_fs_events_total',
    'Filesystem change events seen by the watcher',
    ['kind']
)

RELOAD_TICKS = Counter(
    'webserve_reload_ticks_total',
    'Debounced reload ticks emitted'
)

RELOAD_DELIVERIES = Counter(
    'webserve_reload_deliveries_total',
    'Reload signals handed to channels',
    ['status']
)

ACTIVE_RELOAD_CHANNELS = Gauge(
    'webserve_active_reload_channels',
    'Number of connected live-reload channels'
)


SERVICE_INFO = Info(
    'webserve',
    'Service information'
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
