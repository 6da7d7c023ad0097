"""HTTP server for exposing Prometheus metrics.

This module provides a simple HTTP server that exposes the /metrics endpoint
for Prometheus scraping. prometheus_client binds the socket in the calling
thread and serves from its own daemon thread, so a port that cannot be bound
is reported to the caller.
"""

import logging
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def start_metrics_server(port: int = 8000) -> None:
    """Start Prometheus metrics HTTP server.

    Exposes metrics at http://0.0.0.0:port/metrics.

    Args:
        port: Port to listen on (default: 8000)
    """
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except OSError as e:
        logger.error(f"Failed to start metrics server on port {port}: {e}")
        raise


def init_metrics_server(port: int = 8000) -> None:
    """Start the metrics server.

    Raises:
        OSError: ``port`` could not be bound.
    """
    start_metrics_server(port)
    logger.info(f"Metrics server initialization complete (port: {port})")
