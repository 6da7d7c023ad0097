from .resource_template import MetadataTemplateSchema, ResourceTemplateSchema
from .cluster_spec import (
    LocalObjectReferenceSchema,
    NodeMaintenanceWindowSchema,
    MonitoringConfigurationSchema,
    BootstrapInitDBSchema,
    BootstrapConfigurationSchema,
    ClusterSpecSchema,
)
from .cluster_status import (
    PgBouncerIntegrationStatusSchema,
    PoolerIntegrationsSchema,
    ClusterStatusSchema,
)

__all__ = [
    "MetadataTemplateSchema",
    "ResourceTemplateSchema",
    "LocalObjectReferenceSchema",
    "NodeMaintenanceWindowSchema",
    "MonitoringConfigurationSchema",
    "BootstrapInitDBSchema",
    "BootstrapConfigurationSchema",
    "ClusterSpecSchema",
    "PgBouncerIntegrationStatusSchema",
    "PoolerIntegrationsSchema",
    "ClusterStatusSchema",
]
