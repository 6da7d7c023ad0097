from .base import ManagedResource, MetadataMerge, OptionalResource
from .cluster import Cluster
from .services import ClusterService, ServiceRole
from .service_account import ClusterServiceAccount
from .budgets import (
    BudgetRequirements,
    PrimaryDisruptionBudget,
    ReplicaDisruptionBudget,
    budget_requirements,
)
from .secrets import ApplicationSecret, PoolerSecret, SuperuserSecret
from .pod_monitor import PodMonitorManager

__all__ = [
    "ManagedResource",
    "MetadataMerge",
    "OptionalResource",
    "Cluster",
    "ClusterService",
    "ServiceRole",
    "ClusterServiceAccount",
    "BudgetRequirements",
    "PrimaryDisruptionBudget",
    "ReplicaDisruptionBudget",
    "budget_requirements",
    "ApplicationSecret",
    "PoolerSecret",
    "SuperuserSecret",
    "PodMonitorManager",
]
