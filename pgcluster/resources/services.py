from typing import Any, Dict, List
from pgcluster.common.models.labels import Labels
from pgcluster.resources.base import ManagedResource, MetadataMerge
from pgcluster.types.models import ClusterResources


class ServiceRole:
    READ_WRITE = "rw"
    READ_ONLY = "ro"
    READ = "r"
    ANY = "any"


class ClusterService(ManagedResource):
    """Service routing client connections to a subset of the cluster instances.

    The selector is the operator's routing decision and is forced back on
    every pass; labels and annotations added by others are preserved.
    """

    API_VERSION = "v1"
    KIND = "Service"
    PORT_NAME = "postgres"

    METADATA_MERGE = MetadataMerge.INHERIT
    PAYLOAD_FIELDS = [("spec", "selector"), ("spec", "ports")]
    REQUIRED_FIELDS = [("spec", "selector"), ("spec", "ports")]

    _NAMES = {
        ServiceRole.READ_WRITE: ClusterResources.service_read_write_name,
        ServiceRole.READ_ONLY: ClusterResources.service_read_only_name,
        ServiceRole.READ: ClusterResources.service_read_name,
        ServiceRole.ANY: ClusterResources.service_any_name,
    }

    def __init__(self, cluster, role: str):
        if role not in self._NAMES:
            raise ValueError(f"Unknown service role {role!r}")
        super().__init__(cluster)
        self.role = role

    @property
    def name(self) -> str:
        return self._NAMES[self.role](self.cluster.name)

    def prepare_selector(self) -> Dict[str, str]:
        if self.role == ServiceRole.READ_WRITE:
            return Labels.primary_selector(self.cluster.name).as_dict()
        if self.role == ServiceRole.READ_ONLY:
            return Labels.replica_selector(self.cluster.name).as_dict()
        return Labels.instance_selector(self.cluster.name).as_dict()

    def prepare_payload(self) -> Dict[str, Any]:
        port = self.cluster.POSTGRES_PORT
        return {
            "spec": {
                "type": "ClusterIP",
                "selector": self.prepare_selector(),
                "ports": [
                    {
                        "name": self.PORT_NAME,
                        "protocol": "TCP",
                        "port": port,
                        "targetPort": port,
                    }
                ],
            }
        }


def required_services(cluster) -> List[ClusterService]:
    """Services every cluster gets, whatever the operator configuration."""
    return [
        ClusterService(cluster, ServiceRole.READ_WRITE),
        ClusterService(cluster, ServiceRole.READ_ONLY),
        ClusterService(cluster, ServiceRole.READ),
    ]
