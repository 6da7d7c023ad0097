from typing import Dict


class ResourceLabels:
    PGCLUSTER_DOMAIN: str = "pgcluster.io/"

    CLUSTER_LABEL = PGCLUSTER_DOMAIN + "cluster"

    POD_ROLE_LABEL = PGCLUSTER_DOMAIN + "podRole"

    INSTANCE_ROLE_LABEL = "role"

    POD_ROLE_INSTANCE = "instance"

    ROLE_PRIMARY = "primary"

    ROLE_REPLICA = "replica"

    POOLER_SECRET_LABEL = PGCLUSTER_DOMAIN + "poolerSecret"


class Labels(ResourceLabels):
    KUBERNETES_DOMAIN = "app.kubernetes.io/"

    KUBERNETES_MANAGED_BY_LABEL = KUBERNETES_DOMAIN + "managed-by"

    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = dict(labels) if labels else dict()

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels.copy())
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return labels as a dictionary."""
        return self._labels.copy()

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_cluster(self, cluster: str) -> "Labels":
        return self.include(self.CLUSTER_LABEL, cluster)

    def include_instance_role(self, role: str) -> "Labels":
        return self.include(self.INSTANCE_ROLE_LABEL, role)

    def include_pod_role(self, role: str) -> "Labels":
        return self.include(self.POD_ROLE_LABEL, role)

    def include_pooler_secret(self) -> "Labels":
        return self.include(self.POOLER_SECRET_LABEL, "true")

    def include_kubernetes_managed_by(self, operator_name: str) -> "Labels":
        return self.include(self.KUBERNETES_MANAGED_BY_LABEL, operator_name)

    def __str__(self):
        return f"Labels<{self._labels}>"

    @classmethod
    def primary_selector(cls, cluster: str) -> "Labels":
        """Pods currently acting as primary of ``cluster``."""
        return Labels().include_cluster(cluster).include_instance_role(cls.ROLE_PRIMARY)

    @classmethod
    def replica_selector(cls, cluster: str) -> "Labels":
        """Pods currently acting as replicas of ``cluster``."""
        return Labels().include_cluster(cluster).include_instance_role(cls.ROLE_REPLICA)

    @classmethod
    def instance_selector(cls, cluster: str) -> "Labels":
        """Every instance pod of ``cluster``, whatever its role."""
        return (
            Labels().include_cluster(cluster).include_pod_role(cls.POD_ROLE_INSTANCE)
        )

    @classmethod
    def pooler_secret_selector(cls, cluster: str) -> "Labels":
        """Pooler secrets generated for ``cluster``."""
        return Labels().include_cluster(cluster).include_pooler_secret()

    def as_selector(self) -> str:
        """Render as a ``key=value,...`` label selector."""
        return ",".join(f"{key}={value}" for key, value in sorted(self._labels.items()))
