from typing import Any, Dict
from pgcluster.common.models.labels import Labels
from pgcluster.resources.base import OptionalResource
from pgcluster.types.models import ClusterResources


class PodMonitorManager(OptionalResource):
    """PodMonitor scraping the metrics exporter of every instance.

    Only managed when the Prometheus operator is installed.
    """

    API_VERSION = "monitoring.coreos.com/v1"
    KIND = "PodMonitor"
    METRICS_PORT_NAME = "metrics"

    PAYLOAD_FIELDS = [("spec",)]
    REQUIRED_FIELDS = [("spec", "selector"), ("spec", "podMetricsEndpoints")]

    @property
    def name(self) -> str:
        return ClusterResources.pod_monitor_name(self.cluster.name)

    def is_enabled(self) -> bool:
        return self.cluster.monitoring_enabled

    def prepare_payload(self) -> Dict[str, Any]:
        return {
            "spec": {
                "selector": {
                    "matchLabels": Labels.instance_selector(self.cluster.name).as_dict()
                },
                "podMetricsEndpoints": [{"port": self.METRICS_PORT_NAME}],
            }
        }
