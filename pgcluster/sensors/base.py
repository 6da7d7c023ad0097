"""Base sensor classes for operator monitoring.

This module defines the base OperatorSensor class that provides lifecycle hooks
for monitoring operator events. All hooks are no-ops by default, allowing
subclasses to override only the events they care about.

Hook conventions:
- Hooks come in pairs: on_X_start() and on_X_complete()
- Start hooks return an optional state dict for tracking multi-phase operations
- Complete hooks receive the state dict from their corresponding start hook
- All hooks are optional, sensors only implement what they need
"""

from typing import Dict, Optional, Any
import logging

logger = logging.getLogger(__name__)


class OperatorSensor:
    """Base sensor class for cluster operator monitoring.

    Hooks cover the reconcile pass of a cluster, the convergence of each
    managed object, and the discovery gate of optional resources.

    All methods are no-ops by default. Subclasses override only the hooks
    they need to monitor.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_reconcile_start(self, cluster_name, namespace, generation, trigger_source):
                return {'start_time': time.time()}

            def on_reconcile_complete(self, cluster_name, namespace, state, success, error=None):
                duration = time.time() - state['start_time']
                logger.info(f"Reconciled {cluster_name} in {duration}s")
    """

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
        """Called when a reconcile pass begins.

        Args:
            cluster_name: Cluster resource name
            namespace: Kubernetes namespace
            generation: Resource generation number
            trigger_source: What triggered the pass (create, update, resume, timer)

        Returns:
            Optional state dict passed to on_reconcile_complete
        """
        pass

    def on_reconcile_complete(
        self,
        cluster_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when a reconcile pass completes.

        Args:
            cluster_name: Cluster resource name
            namespace: Kubernetes namespace
            state: State dict returned from on_reconcile_start
            success: Whether the pass succeeded
            error: Exception if the pass failed
        """
        pass

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
        """Called when convergence of one managed object begins.

        Args:
            cluster_name: Owning cluster name
            resource_name: Name of the managed object
            namespace: Kubernetes namespace
            resource_type: Kind of the managed object (Service, Secret, etc.)

        Returns:
            Optional state dict passed to on_resource_sync_complete
        """
        pass

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
        """Called when convergence of one managed object completes.

        Args:
            cluster_name: Owning cluster name
            resource_name: Name of the managed object
            namespace: Kubernetes namespace
            resource_type: Kind of the managed object
            state: State dict returned from on_resource_sync_start
            operation: Operation performed (created, patched, unchanged, deleted)
            success: Whether the operation succeeded
            error: Exception if the operation failed
        """
        pass

    def on_resource_drift_detected(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: list[str],
    ) -> None:
        """Called when a live object differs from its desired state.

        Args:
            cluster_name: Owning cluster name
            resource_name: Name of the drifted object
            namespace: Kubernetes namespace
            resource_type: Kind of the drifted object
            drift_fields: Dotted paths of the fields being corrected
        """
        pass

    def on_conflict_retry(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        attempt: int,
    ) -> None:
        """Called when a write lost an optimistic concurrency race.

        Args:
            cluster_name: Owning cluster name
            resource_name: Name of the contended object
            namespace: Kubernetes namespace
            resource_type: Kind of the contended object
            attempt: Number of the attempt that conflicted (1-based)
        """
        pass

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
        """Called when an optional resource is skipped because its kind is not served.

        Args:
            cluster_name: Cluster resource name
            namespace: Kubernetes namespace
            group_version: API group/version that was probed
            kind: Kind that was probed
        """
        pass

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        cluster_name: str,
        namespace: str,
        update_fields: list[str],
    ) -> None:
        """Called when the cluster status is updated.

        Args:
            cluster_name: Cluster resource name
            namespace: Kubernetes namespace
            update_fields: List of status fields that were updated
        """
        pass

    # =============================================================================
    # Utility Methods
    # =============================================================================

    def asdict(self) -> Dict[str, Any]:
        """Return sensor state as dictionary.

        This method should be overridden by sensors that maintain state.

        Returns:
            Dictionary representation of sensor state
        """
        return {}
