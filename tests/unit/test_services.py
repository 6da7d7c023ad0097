"""Unit tests for the routing services of a cluster."""

import asyncio
import pytest
from fakes import FakeDiscovery, FakeStore, make_cluster
from pgcluster.reconciler import ClusterReconciler
from pgcluster.types.settings import Settings


def run(coro):
    return asyncio.run(coro)


def reconciler_for(store, create_any_service=False):
    conf = Settings(
        inherited_labels=[],
        inherited_annotations=[],
        create_any_service=create_any_service,
    )
    return ClusterReconciler(store, FakeDiscovery(), conf)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def cluster():
    return make_cluster()


class TestReconcileServices:
    def test_creates_routing_services(self, store, cluster):
        results = run(reconciler_for(store).reconcile_services(cluster))

        assert results == {
            "Service/pg-rw": "created",
            "Service/pg-ro": "created",
            "Service/pg-r": "created",
        }
        selectors = {
            name: store.find("Service", "db", name)["spec"]["selector"]
            for name in ("pg-rw", "pg-ro", "pg-r")
        }
        assert selectors == {
            "pg-rw": {"pgcluster.io/cluster": "pg", "role": "primary"},
            "pg-ro": {"pgcluster.io/cluster": "pg", "role": "replica"},
            "pg-r": {"pgcluster.io/cluster": "pg", "pgcluster.io/podRole": "instance"},
        }
        assert store.find("Service", "db", "pg-any") is None

    def test_selector_is_forced_and_metadata_preserved(self, store, cluster):
        reconciler = reconciler_for(store)
        run(reconciler.reconcile_services(cluster))
        rw = store.find("Service", "db", "pg-rw")
        key = next(k for k in store.objects if k.name == "pg-rw")
        store.edit(
            key,
            {
                "metadata": {
                    "labels": {"mesh": "enabled"},
                    "annotations": {"lb.example.com/scheme": "internal"},
                },
                "spec": {"selector": {"role": "replica", "hijacked": "true"}},
            },
        )

        results = run(reconciler.reconcile_services(cluster))

        assert results["Service/pg-rw"] == "patched"
        assert results["Service/pg-ro"] == "unchanged"
        live = store.objects[key]
        assert live["spec"]["selector"] == rw["spec"]["selector"]
        assert live["metadata"]["labels"]["mesh"] == "enabled"
        assert live["metadata"]["annotations"] == {"lb.example.com/scheme": "internal"}

    def test_any_service_when_enabled(self, store, cluster):
        results = run(
            reconciler_for(store, create_any_service=True).reconcile_services(cluster)
        )

        assert results["Service/pg-any"] == "created"
        assert store.find("Service", "db", "pg-any")["spec"]["selector"] == {
            "pgcluster.io/cluster": "pg",
            "pgcluster.io/podRole": "instance",
        }

    def test_any_service_removed_when_disabled(self, store, cluster):
        run(reconciler_for(store, create_any_service=True).reconcile_services(cluster))

        results = run(reconciler_for(store).reconcile_services(cluster))

        assert results["Service/pg-any"] == "deleted"
        assert store.find("Service", "db", "pg-any") is None

    def test_foreign_any_service_is_left_alone(self, store, cluster):
        store.put(
            {
                "apiVersion": "v1",
                "kind": "Service",
                "metadata": {"name": "pg-any", "namespace": "db"},
                "spec": {"selector": {"app": "other"}},
            }
        )

        results = run(reconciler_for(store).reconcile_services(cluster))

        assert "Service/pg-any" not in results
        assert store.find("Service", "db", "pg-any")["spec"]["selector"] == {
            "app": "other"
        }
