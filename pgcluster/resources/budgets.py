"""Pod disruption budgets protecting the primary and the replicas.

Which budgets exist is a pure function of the instance count and the node
maintenance flags:

===========  ===========  =========  =======  =======
instances    maintenance  reusePVC   primary  replica
===========  ===========  =========  =======  =======
<= 1         any          any        no       no
> 1          no           any        yes      yes
> 1          yes          true       yes      no
> 1          yes          false      yes      yes
===========  ===========  =========  =======  =======
"""
from typing import Any, Dict, NamedTuple
from pgcluster.common.models.labels import Labels
from pgcluster.resources.base import ManagedResource, MetadataMerge
from pgcluster.types.models import ClusterResources


class BudgetRequirements(NamedTuple):
    primary: bool
    replica: bool


def budget_requirements(
    instances: int, maintenance_in_progress: bool, reuse_pvc: bool
) -> BudgetRequirements:
    if instances <= 1:
        return BudgetRequirements(primary=False, replica=False)
    if maintenance_in_progress and reuse_pvc:
        # replicas may be drained while their nodes are serviced
        return BudgetRequirements(primary=True, replica=False)
    return BudgetRequirements(primary=True, replica=True)


class DisruptionBudget(ManagedResource):
    API_VERSION = "policy/v1"
    KIND = "PodDisruptionBudget"

    METADATA_MERGE = MetadataMerge.INHERIT
    PAYLOAD_FIELDS = [("spec",)]
    REQUIRED_FIELDS = [("spec", "selector"), ("spec", "minAvailable")]

    def prepare_selector(self) -> Dict[str, str]:
        raise NotImplementedError()

    def min_available(self) -> int:
        raise NotImplementedError()

    def prepare_payload(self) -> Dict[str, Any]:
        return {
            "spec": {
                "selector": {"matchLabels": self.prepare_selector()},
                "minAvailable": self.min_available(),
            }
        }


class PrimaryDisruptionBudget(DisruptionBudget):
    """Keeps the primary from being evicted by a voluntary disruption."""

    @property
    def name(self) -> str:
        return ClusterResources.primary_budget_name(self.cluster.name)

    def prepare_selector(self) -> Dict[str, str]:
        return Labels.primary_selector(self.cluster.name).as_dict()

    def min_available(self) -> int:
        return 1


class ReplicaDisruptionBudget(DisruptionBudget):
    """Allows one replica at a time to be disrupted."""

    @property
    def name(self) -> str:
        return ClusterResources.replica_budget_name(self.cluster.name)

    def prepare_selector(self) -> Dict[str, str]:
        return Labels.replica_selector(self.cluster.name).as_dict()

    def min_available(self) -> int:
        # the primary is excluded by the selector and one replica may go down
        return max(self.cluster.instances - 2, 0)
