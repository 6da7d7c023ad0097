from typing import List, Optional
from pgcluster.types.base import BaseModel
from pgcluster.types.models.resource_template import ResourceTemplate


class LocalObjectReference(BaseModel):
    """Reference to an object in the cluster namespace."""

    name: str


class NodeMaintenanceWindow(BaseModel):
    """Planned node maintenance settings."""

    in_progress: bool
    reuse_pvc: bool


class MonitoringConfiguration(BaseModel):
    enable_pod_monitor: bool


class BootstrapInitDB(BaseModel):
    """Application database created by initdb."""

    database: str
    owner: str
    secret: Optional[LocalObjectReference]


class BootstrapConfiguration(BaseModel):
    initdb: Optional[BootstrapInitDB]


class ClusterSpec(BaseModel):
    """Cluster CRD spec"""

    instances: int
    image_pull_secrets: List[LocalObjectReference]
    node_maintenance_window: Optional[NodeMaintenanceWindow]
    service_account_template: Optional[ResourceTemplate]
    monitoring: Optional[MonitoringConfiguration]
    enable_superuser_access: bool
    superuser_secret: Optional[LocalObjectReference]
    bootstrap: Optional[BootstrapConfiguration]
