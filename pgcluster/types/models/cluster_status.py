from typing import List, Optional
from pgcluster.types.base import BaseModel


class PgBouncerIntegrationStatus(BaseModel):
    #: Secrets the registered poolers expect the cluster to provide
    secrets: List[str]


class PoolerIntegrations(BaseModel):
    pgbouncer_integration: Optional[PgBouncerIntegrationStatus]


class ClusterStatus(BaseModel):
    """Cluster CRD status (fields read by the operator only)"""

    pooler_integrations: Optional[PoolerIntegrations]
