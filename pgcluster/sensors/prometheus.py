"""Prometheus monitoring backend for the cluster operator.

This module provides PrometheusMonitor, which collects operator lifecycle events
and exposes them as Prometheus metrics:

1. Reconcile pass health - duration, throughput, errors
2. Managed object convergence - operation counts, latency, drift, conflicts
3. Discovery - optional resources skipped because their kind is not served

All metrics include labels for multi-dimensional analysis (cluster_name, namespace, etc.).
"""

from typing import Dict, Optional, Any
import time
import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from pgcluster.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the cluster operator.

    Exposes metrics via prometheus_client that can be scraped by Prometheus.

    Metrics are organized into categories:
    - pgcluster_reconcile_* - Reconcile pass metrics
    - pgcluster_resource_* - Managed object metrics
    - pgcluster_capability_* - Discovery metrics

    Example:
        monitor = PrometheusMonitor()

        state = monitor.on_reconcile_start("pg", "default", 5, "timer")
        monitor.on_reconcile_complete("pg", "default", state, True)
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """Initialize Prometheus metrics."""
        super().__init__()

        # =============================================================================
        # Reconcile Pass Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'pgcluster_reconcile_duration_seconds',
            'Time spent in a reconcile pass',
            labelnames=['cluster_name', 'namespace', 'trigger_source', 'result'],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        self.reconcile_total = Counter(
            'pgcluster_reconcile_total',
            'Total number of reconcile passes',
            labelnames=['cluster_name', 'namespace', 'trigger_source', 'result'],
            registry=registry,
        )

        self.reconcile_errors = Counter(
            'pgcluster_reconcile_errors_total',
            'Total number of failed reconcile passes',
            labelnames=['cluster_name', 'namespace', 'error_type'],
            registry=registry,
        )

        # =============================================================================
        # Managed Object Metrics
        # =============================================================================

        self.resource_sync_duration = Histogram(
            'pgcluster_resource_sync_duration_seconds',
            'Time spent converging managed objects',
            labelnames=['cluster_name', 'namespace', 'resource_type', 'operation', 'result'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry,
        )

        self.resource_sync_total = Counter(
            'pgcluster_resource_sync_total',
            'Total number of managed object convergence operations',
            labelnames=['cluster_name', 'resource_name', 'namespace', 'resource_type', 'operation', 'result'],
            registry=registry,
        )

        self.resource_sync_errors = Counter(
            'pgcluster_resource_sync_errors_total',
            'Total number of managed object convergence errors',
            labelnames=['cluster_name', 'resource_name', 'namespace', 'resource_type', 'error_type'],
            registry=registry,
        )

        self.resource_drift_detected = Counter(
            'pgcluster_resource_drift_detected_total',
            'Total number of drifted fields corrected',
            labelnames=['cluster_name', 'resource_name', 'namespace', 'resource_type', 'drift_field'],
            registry=registry,
        )

        self.resource_conflicts = Counter(
            'pgcluster_resource_conflicts_total',
            'Total number of writes rejected by optimistic concurrency',
            labelnames=['cluster_name', 'resource_name', 'namespace', 'resource_type'],
            registry=registry,
        )

        # =============================================================================
        # Discovery Metrics
        # =============================================================================

        self.capability_absent = Counter(
            'pgcluster_capability_absent_total',
            'Total number of optional resources skipped because the kind is not served',
            labelnames=['cluster_name', 'namespace', 'group_version', 'kind'],
            registry=registry,
        )

        # =============================================================================
        # Status Update Metrics
        # =============================================================================

        self.status_updates = Counter(
            'pgcluster_status_updates_total',
            'Total number of status updates',
            labelnames=['cluster_name', 'namespace', 'update_field'],
            registry=registry,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        cluster_name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Record reconcile start time."""
        return {
            'start_time': time.time(),
            'trigger_source': trigger_source,
        }

    def on_reconcile_complete(
        self,
        cluster_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record reconcile duration and result."""
        if state:
            duration = time.time() - state['start_time']
            trigger_source = state['trigger_source']
            result = 'success' if success else 'failure'

            self.reconcile_duration.labels(
                cluster_name=cluster_name,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).observe(duration)

            self.reconcile_total.labels(
                cluster_name=cluster_name,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).inc()

        if error:
            self.reconcile_errors.labels(
                cluster_name=cluster_name,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

    # =============================================================================
    # Resource Operation Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[str, Any]]:
        """Record resource sync start time."""
        return {
            'start_time': time.time(),
        }

    def on_resource_sync_complete(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record resource sync duration and result."""
        result = 'success' if success else 'failure'
        if state:
            self.resource_sync_duration.labels(
                cluster_name=cluster_name,
                namespace=namespace,
                resource_type=resource_type,
                operation=operation,
                result=result,
            ).observe(time.time() - state['start_time'])

        self.resource_sync_total.labels(
            cluster_name=cluster_name,
            resource_name=resource_name,
            namespace=namespace,
            resource_type=resource_type,
            operation=operation,
            result=result,
        ).inc()

        if error:
            self.resource_sync_errors.labels(
                cluster_name=cluster_name,
                resource_name=resource_name,
                namespace=namespace,
                resource_type=resource_type,
                error_type=error.__class__.__name__,
            ).inc()

    def on_resource_drift_detected(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: list[str],
    ) -> None:
        """Record resource drift detection."""
        for field in drift_fields:
            self.resource_drift_detected.labels(
                cluster_name=cluster_name,
                resource_name=resource_name,
                namespace=namespace,
                resource_type=resource_type,
                drift_field=field,
            ).inc()

    def on_conflict_retry(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        attempt: int,
    ) -> None:
        self.resource_conflicts.labels(
            cluster_name=cluster_name,
            resource_name=resource_name,
            namespace=namespace,
            resource_type=resource_type,
        ).inc()

    # =============================================================================
    # Discovery Hooks
    # =============================================================================

    def on_capability_absent(
        self,
        cluster_name: str,
        namespace: str,
        group_version: str,
        kind: str,
    ) -> None:
        self.capability_absent.labels(
            cluster_name=cluster_name,
            namespace=namespace,
            group_version=group_version,
            kind=kind,
        ).inc()

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        cluster_name: str,
        namespace: str,
        update_fields: list[str],
    ) -> None:
        """Record status update."""
        for field in update_fields:
            self.status_updates.labels(
                cluster_name=cluster_name,
                namespace=namespace,
                update_field=field,
            ).inc()
