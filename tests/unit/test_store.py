"""Unit tests for the Kubernetes backed object store."""

import asyncio
import json
import aiohttp
import pytest
from unittest.mock import AsyncMock, Mock
from kubernetes_asyncio.client import ApiException
from pgcluster.store import MERGE_PATCH, KubeStore, ObjectKey, with_resource_version
from pgcluster.utils.errors import (
    AlreadyExistsError,
    ConflictError,
    MalformedDesiredStateError,
    NotFoundError,
    TransportError,
)

SERVICE = ObjectKey("v1", "Service", "db", "pg-rw")
BUDGET = ObjectKey("policy/v1", "PodDisruptionBudget", "db", "pg")
MONITOR = ObjectKey("monitoring.coreos.com/v1", "PodMonitor", "db", "pg")


def run(coro):
    return asyncio.run(coro)


def api_exception(status, reason=None):
    ex = ApiException(status=status, reason=reason or "error")
    ex.body = json.dumps({"reason": reason, "message": "from server"}) if reason else None
    return ex


@pytest.fixture
def store():
    api_client = Mock()
    api_client.sanitize_for_serialization.side_effect = lambda obj: obj
    store = KubeStore(api_client=api_client)
    store.core_v1_api = AsyncMock()
    store.policy_v1_api = AsyncMock()
    store.custom_objects_api = AsyncMock()
    return store


class TestRouting:
    def test_core_kind(self, store):
        store.core_v1_api.read_namespaced_service.return_value = {"kind": "Service"}

        assert run(store.get(SERVICE)) == {"kind": "Service"}
        store.core_v1_api.read_namespaced_service.assert_awaited_once_with(
            name="pg-rw", namespace="db"
        )

    def test_policy_kind(self, store):
        run(store.delete(BUDGET))

        store.policy_v1_api.delete_namespaced_pod_disruption_budget.assert_awaited_once_with(
            name="pg", namespace="db"
        )

    def test_custom_kind(self, store):
        body = {
            "apiVersion": "monitoring.coreos.com/v1",
            "kind": "PodMonitor",
            "metadata": {"name": "pg", "namespace": "db"},
        }

        run(store.create(body))

        store.custom_objects_api.create_namespaced_custom_object.assert_awaited_once_with(
            "monitoring.coreos.com", "v1", "db", "podmonitors", body
        )

    def test_unsupported_kind(self, store):
        with pytest.raises(ValueError):
            run(store.get(ObjectKey("apps/v1", "Deployment", "db", "pg")))


class TestList:
    def test_core_kind_items_get_identity(self, store):
        store.core_v1_api.list_namespaced_secret.return_value = {
            "items": [{"metadata": {"name": "pg-pooler", "namespace": "db"}}]
        }

        items = run(store.list("v1", "Secret", "db", "pgcluster.io/cluster=pg"))

        store.core_v1_api.list_namespaced_secret.assert_awaited_once_with(
            namespace="db", label_selector="pgcluster.io/cluster=pg"
        )
        assert [ObjectKey.of(item) for item in items] == [
            ObjectKey("v1", "Secret", "db", "pg-pooler")
        ]

    def test_custom_kind(self, store):
        store.custom_objects_api.list_namespaced_custom_object.return_value = {"items": []}

        assert run(store.list("monitoring.coreos.com/v1", "PodMonitor", "db", "a=b")) == []
        store.custom_objects_api.list_namespaced_custom_object.assert_awaited_once_with(
            "monitoring.coreos.com", "v1", "db", "podmonitors", label_selector="a=b"
        )


class TestPatch:
    def test_patch_is_guarded_by_resource_version(self, store):
        run(store.patch(SERVICE, {"spec": {"selector": {"role": "primary"}}}, "42"))

        store.core_v1_api.patch_namespaced_service.assert_awaited_once_with(
            name="pg-rw",
            namespace="db",
            body={
                "spec": {"selector": {"role": "primary"}},
                "metadata": {"resourceVersion": "42"},
            },
            _content_type=MERGE_PATCH,
        )

    def test_guard_does_not_mutate_patch(self):
        patch = {"metadata": {"labels": {"a": "1"}}}

        guarded = with_resource_version(patch, "7")

        assert guarded["metadata"] == {"labels": {"a": "1"}, "resourceVersion": "7"}
        assert patch == {"metadata": {"labels": {"a": "1"}}}


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status,reason,expected",
        [
            (404, "NotFound", NotFoundError),
            (409, "AlreadyExists", AlreadyExistsError),
            (409, "Conflict", ConflictError),
            (422, "Invalid", MalformedDesiredStateError),
            (500, "InternalError", TransportError),
            (429, "TooManyRequests", TransportError),
        ],
    )
    def test_api_exceptions(self, store, status, reason, expected):
        store.core_v1_api.read_namespaced_service.side_effect = api_exception(status, reason)

        with pytest.raises(expected):
            run(store.get(SERVICE))

    def test_connection_failure(self, store):
        store.core_v1_api.read_namespaced_service.side_effect = aiohttp.ClientConnectionError(
            "refused"
        )

        with pytest.raises(TransportError):
            run(store.get(SERVICE))

    def test_timeout(self, store):
        store.custom_objects_api.get_namespaced_custom_object.side_effect = asyncio.TimeoutError()

        with pytest.raises(TransportError):
            run(store.get(MONITOR))
