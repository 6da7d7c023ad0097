from typing import Dict, List, Optional
from pgcluster.types.settings import Settings
from pgcluster.types.models import ClusterResources, ClusterSpec, ClusterStatus


class Cluster:
    """Read-only view of a Cluster custom resource used to derive managed objects."""

    API_VERSION = "pgcluster.io/v1"
    KIND = "Cluster"
    GROUP = "pgcluster.io"
    VERSION = "v1"
    PLURAL = "clusters"

    POSTGRES_PORT = 5432
    DEFAULT_INSTANCES = 1
    DEFAULT_DATABASE = "app"
    SUPERUSER = "postgres"

    conf: Settings

    name: str
    namespace: str
    uid: str
    generation: int
    labels: Dict[str, str]
    annotations: Dict[str, str]
    spec: ClusterSpec
    status: Optional[ClusterStatus]

    def __init__(self, name: str, namespace: str, uid: str, conf: Settings = None):
        self.name = name
        self.namespace = namespace
        self.uid = uid
        self.conf = conf or Settings()
        self.generation = 0
        self.labels = {}
        self.annotations = {}
        self.status = None

    @classmethod
    def from_spec(
        self,
        name: str,
        namespace: str,
        uid: str,
        spec: ClusterSpec,
        status: Optional[ClusterStatus] = None,
        labels: Optional[Dict[str, str]] = None,
        annotations: Optional[Dict[str, str]] = None,
        generation: int = 0,
        conf: Settings = None,
    ) -> "Cluster":
        cluster = Cluster(name, namespace, uid, conf)
        cluster.spec = spec
        cluster.status = status
        cluster.labels = dict(labels or {})
        cluster.annotations = dict(annotations or {})
        cluster.generation = generation
        return cluster

    def owner_reference(self) -> Dict:
        return {
            "apiVersion": self.API_VERSION,
            "kind": self.KIND,
            "name": self.name,
            "uid": self.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }

    def inherited_labels(self) -> Dict[str, str]:
        """Cluster labels that every managed object carries."""
        return {
            key: value
            for key, value in self.labels.items()
            if self.conf.is_label_inherited(key)
        }

    def inherited_annotations(self) -> Dict[str, str]:
        """Cluster annotations that every managed object carries."""
        return {
            key: value
            for key, value in self.annotations.items()
            if self.conf.is_annotation_inherited(key)
        }

    @property
    def instances(self) -> int:
        if self.spec.instances is None:
            return self.DEFAULT_INSTANCES
        return self.spec.instances

    @property
    def maintenance_in_progress(self) -> bool:
        window = self.spec.node_maintenance_window
        return bool(window and window.in_progress)

    @property
    def reuse_pvc(self) -> bool:
        window = self.spec.node_maintenance_window
        if window is None or window.reuse_pvc is None:
            return True
        return window.reuse_pvc

    @property
    def image_pull_secret_names(self) -> List[str]:
        return [ref.name for ref in self.spec.image_pull_secrets or []]

    @property
    def service_account_labels(self) -> Dict[str, str]:
        template = self.spec.service_account_template
        if template and template.metadata and template.metadata.labels:
            return dict(template.metadata.labels)
        return {}

    @property
    def service_account_annotations(self) -> Dict[str, str]:
        template = self.spec.service_account_template
        if template and template.metadata and template.metadata.annotations:
            return dict(template.metadata.annotations)
        return {}

    @property
    def monitoring_enabled(self) -> bool:
        return bool(self.spec.monitoring and self.spec.monitoring.enable_pod_monitor)

    @property
    def superuser_access_enabled(self) -> bool:
        return self.spec.enable_superuser_access is not False

    @property
    def user_superuser_secret(self) -> Optional[str]:
        if self.spec.superuser_secret:
            return self.spec.superuser_secret.name
        return None

    @property
    def application_database(self) -> str:
        initdb = self.spec.bootstrap.initdb if self.spec.bootstrap else None
        if initdb and initdb.database:
            return initdb.database
        return self.DEFAULT_DATABASE

    @property
    def application_owner(self) -> str:
        initdb = self.spec.bootstrap.initdb if self.spec.bootstrap else None
        if initdb and initdb.owner:
            return initdb.owner
        return self.application_database

    @property
    def user_application_secret(self) -> Optional[str]:
        initdb = self.spec.bootstrap.initdb if self.spec.bootstrap else None
        if initdb and initdb.secret:
            return initdb.secret.name
        return None

    @property
    def pooler_secret_names(self) -> List[str]:
        integrations = self.status.pooler_integrations if self.status else None
        if integrations and integrations.pgbouncer_integration:
            return list(integrations.pgbouncer_integration.secrets or [])
        return []

    @property
    def read_write_service_name(self) -> str:
        return ClusterResources.service_read_write_name(self.name)

    def __str__(self):
        return f"{self.KIND} {self.namespace}/{self.name}"
