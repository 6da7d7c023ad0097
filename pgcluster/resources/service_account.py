from typing import Any, Dict
from pgcluster.resources.base import ManagedResource, MetadataMerge
from pgcluster.types.models import ClusterResources


class ClusterServiceAccount(ManagedResource):
    """Service account the instance pods run as.

    Pull secrets are merged by union: the cluster's own secrets are added and
    entries added by others (e.g. an admission controller) are kept.
    """

    API_VERSION = "v1"
    KIND = "ServiceAccount"

    METADATA_MERGE = MetadataMerge.INHERIT
    PAYLOAD_FIELDS = [("imagePullSecrets",)]

    @property
    def name(self) -> str:
        return ClusterResources.service_account_name(self.cluster.name)

    def prepare_labels(self) -> Dict[str, str]:
        labels = super().prepare_labels()
        labels.update(self.cluster.service_account_labels)
        return labels

    def prepare_annotations(self) -> Dict[str, str]:
        annotations = super().prepare_annotations()
        annotations.update(self.cluster.service_account_annotations)
        return annotations

    def prepare_payload(self) -> Dict[str, Any]:
        return {
            "imagePullSecrets": [
                {"name": name} for name in self.cluster.image_pull_secret_names
            ]
        }

    def prepare_payload_patch(
        self, current: Dict[str, Any], desired: Dict[str, Any]
    ) -> Dict[str, Any]:
        existing = list(current.get("imagePullSecrets") or [])
        known = {ref.get("name") for ref in existing}
        missing = [
            ref
            for ref in desired.get("imagePullSecrets") or []
            if ref.get("name") not in known
        ]
        if not missing:
            return {}
        return {"imagePullSecrets": existing + missing}
