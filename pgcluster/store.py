"""Object store used by the reconciler to read and write cluster resources.

Objects travel as JSON-form dictionaries (camelCase keys, exactly as the API
server serves them). Writes to existing objects are JSON merge patches that
carry the last observed ``metadata.resourceVersion`` so that a write based on
a stale read is rejected with ``ConflictError``.
"""
import asyncio
import copy
import aiohttp
from typing import Any, Dict, List, NamedTuple, Optional
from kubernetes_asyncio.client import (
    ApiClient,
    ApiException,
    CoreV1Api,
    CustomObjectsApi,
    PolicyV1Api,
)
from pgcluster.utils.errors import TransportError, translate_api_exception

MERGE_PATCH = "application/merge-patch+json"


class ObjectKey(NamedTuple):
    """Identity of a namespaced object."""

    api_version: str
    kind: str
    namespace: str
    name: str

    @classmethod
    def of(cls, obj: Dict[str, Any]) -> "ObjectKey":
        metadata = obj.get("metadata") or {}
        return cls(
            obj.get("apiVersion"),
            obj.get("kind"),
            metadata.get("namespace"),
            metadata.get("name"),
        )

    def __str__(self):
        return f"{self.kind} {self.namespace}/{self.name}"


class ObjectStore:
    """Abstract object store.

    Every method raises one of ``NotFoundError``, ``AlreadyExistsError``,
    ``ConflictError``, ``TransportError`` or ``MalformedDesiredStateError``.
    """

    async def get(self, key: ObjectKey) -> Dict[str, Any]:
        raise NotImplementedError()

    async def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError()

    async def patch(
        self, key: ObjectKey, patch: Dict[str, Any], resource_version: Optional[str]
    ) -> Dict[str, Any]:
        raise NotImplementedError()

    async def delete(self, key: ObjectKey) -> None:
        raise NotImplementedError()

    async def list(
        self, api_version: str, kind: str, namespace: str, label_selector: str
    ) -> List[Dict[str, Any]]:
        """Objects of a kind in ``namespace`` matching ``label_selector``."""
        raise NotImplementedError()


def with_resource_version(
    patch: Dict[str, Any], resource_version: Optional[str]
) -> Dict[str, Any]:
    """Return a copy of ``patch`` guarded by ``resource_version``."""
    guarded = copy.deepcopy(patch)
    if resource_version:
        metadata = guarded.get("metadata") or {}
        metadata["resourceVersion"] = resource_version
        guarded["metadata"] = metadata
    return guarded


class _CoreKind(NamedTuple):
    api: str
    suffix: str


class _CustomKind(NamedTuple):
    group: str
    version: str
    plural: str


class KubeStore(ObjectStore):
    """Object store backed by the Kubernetes API."""

    KINDS = {
        ("v1", "Secret"): _CoreKind("core_v1_api", "secret"),
        ("v1", "Service"): _CoreKind("core_v1_api", "service"),
        ("v1", "ServiceAccount"): _CoreKind("core_v1_api", "service_account"),
        ("policy/v1", "PodDisruptionBudget"): _CoreKind(
            "policy_v1_api", "pod_disruption_budget"
        ),
        ("monitoring.coreos.com/v1", "PodMonitor"): _CustomKind(
            "monitoring.coreos.com", "v1", "podmonitors"
        ),
    }

    api_client: ApiClient

    def __init__(self, api_client: ApiClient = None):
        self.api_client = api_client or ApiClient()
        self.core_v1_api = CoreV1Api(self.api_client)
        self.policy_v1_api = PolicyV1Api(self.api_client)
        self.custom_objects_api = CustomObjectsApi(self.api_client)

    def _binding(self, api_version: str, kind: str):
        try:
            return self.KINDS[(api_version, kind)]
        except KeyError:
            raise ValueError(f"Unsupported kind {api_version}/{kind}") from None

    def _serialize(self, obj) -> Dict[str, Any]:
        return self.api_client.sanitize_for_serialization(obj)

    async def _call(self, coro):
        try:
            return await coro
        except ApiException as ex:
            raise translate_api_exception(ex) from ex
        except (aiohttp.ClientError, asyncio.TimeoutError) as ex:
            raise TransportError(f"Kubernetes API unreachable: {ex}") from ex

    async def get(self, key: ObjectKey) -> Dict[str, Any]:
        binding = self._binding(key.api_version, key.kind)
        if isinstance(binding, _CustomKind):
            obj = await self._call(
                self.custom_objects_api.get_namespaced_custom_object(
                    binding.group,
                    binding.version,
                    key.namespace,
                    binding.plural,
                    key.name,
                )
            )
        else:
            api = getattr(self, binding.api)
            read = getattr(api, f"read_namespaced_{binding.suffix}")
            obj = await self._call(read(name=key.name, namespace=key.namespace))
        return self._serialize(obj)

    async def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        key = ObjectKey.of(obj)
        binding = self._binding(key.api_version, key.kind)
        if isinstance(binding, _CustomKind):
            created = await self._call(
                self.custom_objects_api.create_namespaced_custom_object(
                    binding.group,
                    binding.version,
                    key.namespace,
                    binding.plural,
                    obj,
                )
            )
        else:
            api = getattr(self, binding.api)
            create = getattr(api, f"create_namespaced_{binding.suffix}")
            created = await self._call(create(namespace=key.namespace, body=obj))
        return self._serialize(created)

    async def patch(
        self, key: ObjectKey, patch: Dict[str, Any], resource_version: Optional[str]
    ) -> Dict[str, Any]:
        binding = self._binding(key.api_version, key.kind)
        body = with_resource_version(patch, resource_version)
        if isinstance(binding, _CustomKind):
            patched = await self._call(
                self.custom_objects_api.patch_namespaced_custom_object(
                    binding.group,
                    binding.version,
                    key.namespace,
                    binding.plural,
                    key.name,
                    body,
                    _content_type=MERGE_PATCH,
                )
            )
        else:
            api = getattr(self, binding.api)
            patch_fn = getattr(api, f"patch_namespaced_{binding.suffix}")
            patched = await self._call(
                patch_fn(
                    name=key.name,
                    namespace=key.namespace,
                    body=body,
                    _content_type=MERGE_PATCH,
                )
            )
        return self._serialize(patched)

    async def delete(self, key: ObjectKey) -> None:
        binding = self._binding(key.api_version, key.kind)
        if isinstance(binding, _CustomKind):
            await self._call(
                self.custom_objects_api.delete_namespaced_custom_object(
                    binding.group,
                    binding.version,
                    key.namespace,
                    binding.plural,
                    key.name,
                )
            )
        else:
            api = getattr(self, binding.api)
            delete = getattr(api, f"delete_namespaced_{binding.suffix}")
            await self._call(delete(name=key.name, namespace=key.namespace))

    async def list(
        self, api_version: str, kind: str, namespace: str, label_selector: str
    ) -> List[Dict[str, Any]]:
        binding = self._binding(api_version, kind)
        if isinstance(binding, _CustomKind):
            listed = await self._call(
                self.custom_objects_api.list_namespaced_custom_object(
                    binding.group,
                    binding.version,
                    namespace,
                    binding.plural,
                    label_selector=label_selector,
                )
            )
        else:
            api = getattr(self, binding.api)
            list_fn = getattr(api, f"list_namespaced_{binding.suffix}")
            listed = await self._call(
                list_fn(namespace=namespace, label_selector=label_selector)
            )
        items = self._serialize(listed).get("items") or []
        # list responses omit apiVersion and kind on their items
        for item in items:
            item.setdefault("apiVersion", api_version)
            item.setdefault("kind", kind)
        return items
