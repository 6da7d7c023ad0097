"""Runtime discovery of the resource kinds served by the API server."""
import asyncio
import logging
import aiohttp
from typing import Dict, Tuple
from kubernetes_asyncio.client import ApiClient, ApiException, CoreV1Api, CustomObjectsApi
from pgcluster.utils.errors import TransportError, not_found_error, translate_api_exception


class CapabilityDiscovery:
    """Answers whether a kind is served under a group/version."""

    async def has_resource(self, group_version: str, kind: str) -> bool:
        raise NotImplementedError()


class KubeDiscovery(CapabilityDiscovery):
    """Discovery through the ``/api/v1`` and ``/apis/<group>/<version>`` documents."""

    def __init__(self, api_client: ApiClient = None, logger: logging.Logger = None):
        self.api_client = api_client or ApiClient()
        self.logger = logger or logging.getLogger(__name__)
        self.core_v1_api = CoreV1Api(self.api_client)
        self.custom_objects_api = CustomObjectsApi(self.api_client)

    async def fetch_resource_list(self, group_version: str):
        if group_version == "v1":
            return await self.core_v1_api.get_api_resources()
        group, _, version = group_version.partition("/")
        return await self.custom_objects_api.get_api_resources(group, version)

    async def has_resource(self, group_version: str, kind: str) -> bool:
        try:
            resource_list = await self.fetch_resource_list(group_version)
        except ApiException as ex:
            if not_found_error(ex):
                self.logger.debug(f"API group {group_version} is not served")
                return False
            raise translate_api_exception(ex) from ex
        except (aiohttp.ClientError, asyncio.TimeoutError) as ex:
            raise TransportError(f"Discovery of {group_version} failed: {ex}") from ex
        if resource_list is None:
            return False
        return any(
            resource.kind == kind for resource in (resource_list.resources or [])
        )


class DiscoverySession(CapabilityDiscovery):
    """Caches discovery answers for the lifetime of one reconcile pass.

    A fresh session must be opened per pass: kinds can be installed or
    removed between passes.
    """

    _answers: Dict[Tuple[str, str], bool]

    def __init__(self, discovery: CapabilityDiscovery):
        self.discovery = discovery
        self._answers = {}

    async def has_resource(self, group_version: str, kind: str) -> bool:
        key = (group_version, kind)
        if key not in self._answers:
            self._answers[key] = await self.discovery.has_resource(group_version, kind)
        return self._answers[key]
