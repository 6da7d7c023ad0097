from .resource_template import MetadataTemplate, ResourceTemplate
from .cluster_spec import (
    LocalObjectReference,
    NodeMaintenanceWindow,
    MonitoringConfiguration,
    BootstrapInitDB,
    BootstrapConfiguration,
    ClusterSpec,
)
from .cluster_status import (
    PgBouncerIntegrationStatus,
    PoolerIntegrations,
    ClusterStatus,
)
from .cluster_resources import ClusterResources

__all__ = [
    "MetadataTemplate",
    "ResourceTemplate",
    "LocalObjectReference",
    "NodeMaintenanceWindow",
    "MonitoringConfiguration",
    "BootstrapInitDB",
    "BootstrapConfiguration",
    "ClusterSpec",
    "PgBouncerIntegrationStatus",
    "PoolerIntegrations",
    "ClusterStatus",
    "ClusterResources",
]
