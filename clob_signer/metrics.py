"""
Prometheus metrics for monitoring.

Counts API requests, signed orders and authentication headers.
Disabled unless a Metrics instance is created with enabled=True.
"""

from typing import Optional
import logging

from prometheus_client import CollectorRegistry, Counter, REGISTRY, start_http_server

logger = logging.getLogger(__name__)


class Metrics:
    """
    Prometheus metrics collector.

    Tracks:
    - API requests by method, endpoint and status
    - Signed orders by side and signature type
    - Authentication headers built, by level (L1/L2)
    """

    def __init__(
        self,
        enabled: bool = True,
        port: Optional[int] = None,
        registry: Optional[CollectorRegistry] = None
    ):
        """
        Initialize metrics.

        Args:
            enabled: Enable metrics collection
            port: Metrics HTTP server port (no server if None)
            registry: Prometheus registry (default: global registry)
        """
        self.enabled = enabled

        if not self.enabled:
            return

        registry = registry if registry is not None else REGISTRY

        self.api_requests = Counter(
            'clob_api_requests_total',
            'Total API requests',
            ['method', 'endpoint', 'status'],
            registry=registry
        )

        self.orders_signed = Counter(
            'clob_orders_signed_total',
            'Total orders signed',
            ['side', 'signature_type'],
            registry=registry
        )

        self.auth_headers = Counter(
            'clob_auth_headers_total',
            'Authentication header sets built',
            ['level'],
            registry=registry
        )

        if port is not None:
            try:
                start_http_server(port, registry=registry)
                logger.info(f"Metrics server started on port {port}")
            except OSError as e:
                logger.error(f"Failed to start metrics server: {e}")

    def track_api_request(self, method: str, endpoint: str, status: str) -> None:
        """Record API request."""
        if self.enabled:
            self.api_requests.labels(method=method, endpoint=endpoint, status=status).inc()

    def track_order_signed(self, side: str, signature_type: str) -> None:
        """Record signed order."""
        if self.enabled:
            self.orders_signed.labels(side=side, signature_type=signature_type).inc()

    def track_auth_headers(self, level: str) -> None:
        """Record auth header build."""
        if self.enabled:
            self.auth_headers.labels(level=level).inc()


# Global metrics instance
_metrics: Optional[Metrics] = None


def get_metrics(enabled: bool = True, port: Optional[int] = None) -> Metrics:
    """Get or create metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = Metrics(enabled=enabled, port=port)
    return _metrics


def track_api_request(method: str, endpoint: str, status: str) -> None:
    """Record API request if metrics are initialized."""
    if _metrics is not None:
        _metrics.track_api_request(method, endpoint, status)


def track_order_signed(side: str, signature_type: str) -> None:
    """Record signed order if metrics are initialized."""
    if _metrics is not None:
        _metrics.track_order_signed(side, signature_type)


def track_auth_headers(level: str) -> None:
    """Record auth header build if metrics are initialized."""
    if _metrics is not None:
        _metrics.track_auth_headers(level)
