import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING
from pgcluster.common.models.labels import Labels
from pgcluster.store import ObjectKey
from pgcluster.utils.helpers import deep_compare_dict, get_path

if TYPE_CHECKING:
    from pgcluster.resources.cluster import Cluster

Path = Tuple[str, ...]


class MetadataMerge(Enum):
    """How labels and annotations of an existing object are converged."""

    #: Add or update the desired keys; keys set by others are left alone.
    INHERIT = "inherit"
    #: The desired keys are the whole map; any other key is removed.
    REPLACE = "replace"


def replacement_patch(current: Any, desired: Any) -> Any:
    """Merge patch value that turns ``current`` into exactly ``desired``."""
    if isinstance(current, dict) and isinstance(desired, dict):
        patch = {
            key: replacement_patch(current.get(key), value)
            for key, value in desired.items()
        }
        patch.update({key: None for key in current if key not in desired})
        return patch
    return copy.deepcopy(desired)


class ManagedResource:
    """An object the operator keeps converged on behalf of a cluster.

    Subclasses describe the identity, the full desired manifest and which of
    its fields are recomputed on every pass. Ownership references are written
    when the object is created and never patched afterwards.
    """

    OPERATOR_NAME = "pgcluster-operator"

    API_VERSION: str
    KIND: str

    METADATA_MERGE: MetadataMerge = MetadataMerge.INHERIT

    #: Fields overwritten on every pass when they drift
    PAYLOAD_FIELDS: List[Path] = []

    #: Fields a desired manifest cannot be applied without
    REQUIRED_FIELDS: List[Path] = []

    cluster: "Cluster"

    def __init__(self, cluster: "Cluster"):
        self.cluster = cluster

    @property
    def name(self) -> str:
        raise NotImplementedError()

    @property
    def namespace(self) -> str:
        return self.cluster.namespace

    @property
    def ref(self) -> str:
        """Short ``Kind/name`` reference used in logs and pass summaries."""
        return f"{self.KIND}/{self.name}"

    def identity(self) -> ObjectKey:
        return ObjectKey(self.API_VERSION, self.KIND, self.namespace, self.name)

    def prepare_labels(self) -> Dict[str, str]:
        """Labels of the object: inherited, then operator labels."""
        labels = Labels(self.cluster.inherited_labels())
        labels.include_cluster(self.cluster.name)
        labels.include_kubernetes_managed_by(self.OPERATOR_NAME)
        return labels.as_dict()

    def prepare_annotations(self) -> Dict[str, str]:
        return self.cluster.inherited_annotations()

    def prepare_payload(self) -> Dict[str, Any]:
        """Everything in the manifest besides apiVersion, kind and metadata."""
        return {}

    def build_desired(self) -> Dict[str, Any]:
        manifest = {
            "apiVersion": self.API_VERSION,
            "kind": self.KIND,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": self.prepare_labels(),
                "annotations": self.prepare_annotations(),
                "ownerReferences": [self.cluster.owner_reference()],
            },
        }
        manifest.update(self.prepare_payload())
        return manifest

    def prepare_payload_patch(
        self, current: Dict[str, Any], desired: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Merge patch overwriting every payload field that drifted."""
        patch = {}
        for path in self.PAYLOAD_FIELDS:
            actual = get_path(current, path)
            wanted = get_path(desired, path)
            if deep_compare_dict(actual, wanted):
                continue
            target = patch
            for key in path[:-1]:
                target = target.setdefault(key, {})
            target[path[-1]] = replacement_patch(actual, wanted)
        return patch

    def __str__(self):
        return str(self.identity())


class OptionalResource(ManagedResource):
    """A managed object whose kind might not be served by the API server.

    Its labels and annotations are entirely owned by the operator.
    """

    METADATA_MERGE = MetadataMerge.REPLACE

    @property
    def group_version(self) -> str:
        return self.API_VERSION

    def is_enabled(self) -> bool:
        raise NotImplementedError()


def owner_uids(obj: Optional[Dict[str, Any]]) -> List[str]:
    references = get_path(obj, ("metadata", "ownerReferences")) or []
    return [ref.get("uid") for ref in references]
