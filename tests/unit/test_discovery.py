"""Unit tests for API discovery."""

import asyncio
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from kubernetes_asyncio.client import ApiException
from fakes import POD_MONITOR, FakeDiscovery
from pgcluster.discovery import DiscoverySession, KubeDiscovery
from pgcluster.utils.errors import TransportError


def run(coro):
    return asyncio.run(coro)


def resource_list(*kinds):
    return SimpleNamespace(resources=[SimpleNamespace(kind=kind) for kind in kinds])


@pytest.fixture
def discovery():
    discovery = KubeDiscovery(api_client=Mock())
    discovery.core_v1_api = Mock(get_api_resources=AsyncMock())
    discovery.custom_objects_api = Mock(get_api_resources=AsyncMock())
    return discovery


class TestKubeDiscovery:
    def test_core_group(self, discovery):
        discovery.core_v1_api.get_api_resources.return_value = resource_list(
            "Service", "Secret"
        )

        assert run(discovery.has_resource("v1", "Secret"))
        assert not run(discovery.has_resource("v1", "PodMonitor"))
        discovery.custom_objects_api.get_api_resources.assert_not_called()

    def test_named_group(self, discovery):
        discovery.custom_objects_api.get_api_resources.return_value = resource_list(
            "PodMonitor", "ServiceMonitor"
        )

        assert run(discovery.has_resource("monitoring.coreos.com/v1", "PodMonitor"))
        discovery.custom_objects_api.get_api_resources.assert_called_with(
            "monitoring.coreos.com", "v1"
        )

    def test_group_not_served(self, discovery):
        discovery.custom_objects_api.get_api_resources.side_effect = ApiException(
            status=404, reason="Not Found"
        )

        assert not run(discovery.has_resource("monitoring.coreos.com/v1", "PodMonitor"))

    def test_server_failure(self, discovery):
        discovery.custom_objects_api.get_api_resources.side_effect = ApiException(
            status=503, reason="Service Unavailable"
        )

        with pytest.raises(TransportError):
            run(discovery.has_resource("monitoring.coreos.com/v1", "PodMonitor"))


class TestDiscoverySession:
    def test_answers_are_cached(self):
        backend = FakeDiscovery({POD_MONITOR})
        session = DiscoverySession(backend)

        assert run(session.has_resource(*POD_MONITOR))
        assert run(session.has_resource(*POD_MONITOR))
        assert not run(session.has_resource("v1", "Missing"))
        assert backend.calls == [POD_MONITOR, ("v1", "Missing")]

    def test_new_session_asks_again(self):
        backend = FakeDiscovery()
        assert not run(DiscoverySession(backend).has_resource(*POD_MONITOR))

        backend.served.add(POD_MONITOR)
        assert run(DiscoverySession(backend).has_resource(*POD_MONITOR))
