from marshmallow import fields
from pgcluster.types.base import BaseSchema
from pgcluster.types.models.cluster_status import (
    PgBouncerIntegrationStatus,
    PoolerIntegrations,
    ClusterStatus,
)


class PgBouncerIntegrationStatusSchema(BaseSchema):
    __model__ = PgBouncerIntegrationStatus

    secrets = fields.List(fields.Str(), data_key="secrets", load_default=list)


class PoolerIntegrationsSchema(BaseSchema):
    __model__ = PoolerIntegrations

    pgbouncer_integration = fields.Nested(
        PgBouncerIntegrationStatusSchema(),
        data_key="pgBouncerIntegration",
        allow_none=True,
        load_default=None,
    )


class ClusterStatusSchema(BaseSchema):
    __model__ = ClusterStatus

    pooler_integrations = fields.Nested(
        PoolerIntegrationsSchema(),
        data_key="poolerIntegrations",
        allow_none=True,
        load_default=None,
    )
