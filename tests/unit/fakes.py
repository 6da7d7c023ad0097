"""In-memory doubles of the object store and discovery used by the unit tests."""
import copy
import itertools
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
from pgcluster.discovery import CapabilityDiscovery
from pgcluster.resources.cluster import Cluster
from pgcluster.store import ObjectKey, ObjectStore
from pgcluster.types.schemas import ClusterSpecSchema, ClusterStatusSchema
from pgcluster.types.settings import Settings
from pgcluster.utils.errors import AlreadyExistsError, ConflictError, NotFoundError


def apply_merge_patch(target: Any, patch: Any) -> Any:
    """JSON merge patch (RFC 7386)."""
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = copy.deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = apply_merge_patch(result.get(key), value)
    return result


class FakeStore(ObjectStore):
    """Object store keeping objects in a dict, with resource versions."""

    def __init__(self, objects: List[Dict] = None):
        self.objects: Dict[ObjectKey, Dict] = {}
        self.calls: List[Tuple[str, ObjectKey]] = []
        self.patches: List[Dict] = []
        self._versions = itertools.count(1)
        #: Called with (store, obj) before a create is applied
        self.on_create: Optional[Callable] = None
        #: Called with (store, key) before a patch is applied
        self.on_patch: Optional[Callable] = None
        #: Raised by every call when set
        self.fail_with: Optional[Exception] = None
        for obj in objects or []:
            self.put(obj)

    def put(self, obj: Dict) -> Dict:
        """Insert or replace an object directly, as another writer would."""
        obj = copy.deepcopy(obj)
        obj.setdefault("metadata", {})["resourceVersion"] = str(next(self._versions))
        self.objects[ObjectKey.of(obj)] = obj
        return copy.deepcopy(obj)

    def touch(self, key: ObjectKey) -> None:
        """Bump the resource version of ``key`` as a concurrent writer would."""
        self.put(self.objects[key])

    def edit(self, key: ObjectKey, patch: Dict) -> Dict:
        """Apply a merge patch out of band."""
        return self.put(apply_merge_patch(self.objects[key], patch))

    def find(self, kind: str, namespace: str, name: str) -> Optional[Dict]:
        for key, obj in self.objects.items():
            if (key.kind, key.namespace, key.name) == (kind, namespace, name):
                return copy.deepcopy(obj)
        return None

    @property
    def writes(self) -> List[Tuple[str, ObjectKey]]:
        return [call for call in self.calls if call[0] not in ("get", "list")]

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def get(self, key: ObjectKey) -> Dict:
        self.calls.append(("get", key))
        self._check()
        if key not in self.objects:
            raise NotFoundError(str(key))
        return copy.deepcopy(self.objects[key])

    async def create(self, obj: Dict) -> Dict:
        key = ObjectKey.of(obj)
        self.calls.append(("create", key))
        self._check()
        if self.on_create:
            self.on_create(self, obj)
        if key in self.objects:
            raise AlreadyExistsError(str(key))
        return self.put(obj)

    async def patch(self, key: ObjectKey, patch: Dict, resource_version: Optional[str]) -> Dict:
        self.calls.append(("patch", key))
        self.patches.append(copy.deepcopy(patch))
        self._check()
        if self.on_patch:
            self.on_patch(self, key)
        if key not in self.objects:
            raise NotFoundError(str(key))
        current = self.objects[key]
        if resource_version and current["metadata"]["resourceVersion"] != resource_version:
            raise ConflictError(str(key))
        return self.put(apply_merge_patch(current, patch))

    async def delete(self, key: ObjectKey) -> None:
        self.calls.append(("delete", key))
        self._check()
        if key not in self.objects:
            raise NotFoundError(str(key))
        del self.objects[key]

    async def list(
        self, api_version: str, kind: str, namespace: str, label_selector: str
    ) -> List[Dict]:
        self.calls.append(("list", ObjectKey(api_version, kind, namespace, None)))
        self._check()
        wanted = dict(term.split("=", 1) for term in label_selector.split(",") if term)
        return [
            copy.deepcopy(obj)
            for key, obj in self.objects.items()
            if (key.api_version, key.kind, key.namespace) == (api_version, kind, namespace)
            and wanted.items() <= (obj["metadata"].get("labels") or {}).items()
        ]


class FakeDiscovery(CapabilityDiscovery):
    def __init__(self, served: Set[Tuple[str, str]] = None):
        self.served = set(served or ())
        self.calls: List[Tuple[str, str]] = []

    async def has_resource(self, group_version: str, kind: str) -> bool:
        self.calls.append((group_version, kind))
        return (group_version, kind) in self.served


POD_MONITOR = ("monitoring.coreos.com/v1", "PodMonitor")


def make_cluster(
    spec: Dict = None,
    status: Dict = None,
    name: str = "pg",
    namespace: str = "db",
    uid: str = "cluster-uid",
    labels: Dict = None,
    annotations: Dict = None,
    conf: Settings = None,
) -> Cluster:
    return Cluster.from_spec(
        name,
        namespace,
        uid,
        ClusterSpecSchema().load(spec or {}),
        status=ClusterStatusSchema().load(status or {}),
        labels=labels,
        annotations=annotations,
        conf=conf or Settings(inherited_labels=[], inherited_annotations=[]),
    )
