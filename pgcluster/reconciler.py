import functools
import logging
from typing import Dict, List, Optional
from pgcluster.convergence import (
    ABSENT,
    CAPABILITY_ABSENT,
    DELETED,
    UNCHANGED,
    ensure,
    ensure_optional,
    delete_if_exists,
    delete_if_owned,
)
from pgcluster.common.models.labels import Labels
from pgcluster.discovery import CapabilityDiscovery, DiscoverySession
from pgcluster.resources.base import OptionalResource
from pgcluster.resources.budgets import (
    PrimaryDisruptionBudget,
    ReplicaDisruptionBudget,
    budget_requirements,
)
from pgcluster.resources.cluster import Cluster
from pgcluster.resources.pod_monitor import PodMonitorManager
from pgcluster.resources.secrets import ApplicationSecret, SuperuserSecret, pooler_secrets
from pgcluster.resources.service_account import ClusterServiceAccount
from pgcluster.resources.services import ClusterService, ServiceRole, required_services
from pgcluster.sensors.base import OperatorSensor
from pgcluster.store import ObjectKey, ObjectStore
from pgcluster.types.settings import Settings
from pgcluster.utils.errors import MalformedDesiredStateError, StoreError


class ClusterReconciler:
    """Drives the auxiliary objects of a cluster toward their desired state.

    Each ``reconcile_*`` method converges one family of objects and returns a
    mapping of ``Kind/name`` to the operation performed. Errors propagate to
    the caller, which decides when to retry.
    """

    store: ObjectStore
    discovery: CapabilityDiscovery
    conf: Settings
    sensor: OperatorSensor
    logger: logging.Logger

    def __init__(
        self,
        store: ObjectStore,
        discovery: CapabilityDiscovery,
        conf: Settings = None,
        sensor: OperatorSensor = None,
        logger: logging.Logger = None,
    ):
        self.store = store
        self.discovery = discovery
        self.conf = conf or Settings()
        self.sensor = sensor or OperatorSensor()
        self.logger = logger or logging.getLogger(__name__)

    async def _ensure(self, resource) -> str:
        return await ensure(
            self.store,
            resource,
            sensor=self.sensor,
            logger=self.logger,
            retries=self.conf.conflict_retry_limit,
        )

    async def reconcile_secrets(self, cluster: Cluster) -> Dict[str, str]:
        results = {}
        superuser = SuperuserSecret(cluster)
        if cluster.superuser_access_enabled:
            if not cluster.user_superuser_secret:
                results[superuser.ref] = await self._ensure(superuser)
        elif await delete_if_owned(
            self.store, superuser.identity(), cluster.uid, logger=self.logger
        ):
            results[superuser.ref] = DELETED

        if not cluster.user_application_secret:
            application = ApplicationSecret(cluster)
            results[application.ref] = await self._ensure(application)

        pooled = pooler_secrets(cluster)
        for secret in pooled:
            results[secret.ref] = await self._ensure(secret)
        results.update(
            await self._remove_stale_pooler_secrets(
                cluster, {secret.name for secret in pooled}
            )
        )
        return results

    async def _remove_stale_pooler_secrets(self, cluster: Cluster, wanted) -> Dict[str, str]:
        """Delete pooler secrets of integrations no longer registered."""
        results = {}
        selector = Labels.pooler_secret_selector(cluster.name).as_selector()
        for obj in await self.store.list("v1", "Secret", cluster.namespace, selector):
            key = ObjectKey.of(obj)
            if key.name in wanted:
                continue
            if await delete_if_owned(self.store, key, cluster.uid, logger=self.logger):
                results[f"{key.kind}/{key.name}"] = DELETED
        return results

    async def reconcile_services(self, cluster: Cluster) -> Dict[str, str]:
        results = {}
        for service in required_services(cluster):
            results[service.ref] = await self._ensure(service)

        any_service = ClusterService(cluster, ServiceRole.ANY)
        if self.conf.create_any_service:
            results[any_service.ref] = await self._ensure(any_service)
        elif await delete_if_owned(
            self.store, any_service.identity(), cluster.uid, logger=self.logger
        ):
            results[any_service.ref] = DELETED
        return results

    async def reconcile_service_account(self, cluster: Cluster) -> Dict[str, str]:
        service_account = ClusterServiceAccount(cluster)
        return {service_account.ref: await self._ensure(service_account)}

    async def reconcile_availability_budgets(self, cluster: Cluster) -> Dict[str, str]:
        required = budget_requirements(
            cluster.instances, cluster.maintenance_in_progress, cluster.reuse_pvc
        )
        results = {}
        for budget, wanted in (
            (PrimaryDisruptionBudget(cluster), required.primary),
            (ReplicaDisruptionBudget(cluster), required.replica),
        ):
            if wanted:
                results[budget.ref] = await self._ensure(budget)
            elif await delete_if_exists(
                self.store, budget.identity(), logger=self.logger
            ):
                results[budget.ref] = DELETED
        return results

    async def reconcile_optional_monitor(
        self,
        cluster: Cluster,
        manager: Optional[OptionalResource] = None,
        discovery: Optional[CapabilityDiscovery] = None,
    ) -> Dict[str, str]:
        manager = manager or PodMonitorManager(cluster)
        outcome = await ensure_optional(
            self.store,
            discovery or self.discovery,
            manager,
            sensor=self.sensor,
            logger=self.logger,
            retries=self.conf.conflict_retry_limit,
        )
        return {manager.ref: outcome}

    async def synchronize(
        self, cluster: Cluster, trigger_source: str = "timer"
    ) -> Dict[str, str]:
        """Run every reconcile family for ``cluster`` in one pass.

        A failing family does not keep the others from running. Once all of
        them ran, the most severe error of the pass is raised.
        """
        session = DiscoverySession(self.discovery)
        sensor_state = self.sensor.on_reconcile_start(
            cluster.name, cluster.namespace, cluster.generation, trigger_source
        )
        families = (
            ("secrets", self.reconcile_secrets),
            ("services", self.reconcile_services),
            ("service account", self.reconcile_service_account),
            ("availability budgets", self.reconcile_availability_budgets),
            (
                "monitor",
                functools.partial(self.reconcile_optional_monitor, discovery=session),
            ),
        )
        results, errors = {}, []
        for family, reconcile in families:
            try:
                results.update(await reconcile(cluster))
            except Exception as ex:
                self.logger.error(f"Reconciling {family} of {cluster.name} failed: {ex}")
                errors.append(ex)

        error = most_severe(errors)
        self.sensor.on_reconcile_complete(
            cluster.name, cluster.namespace, sensor_state, error is None, error
        )
        if error is not None:
            raise error
        return results

    @staticmethod
    def changed(results: Dict[str, str]) -> List[str]:
        """Objects the pass wrote to or removed."""
        idle = (UNCHANGED, ABSENT, CAPABILITY_ABSENT)
        return sorted(ref for ref, operation in results.items() if operation not in idle)


def _severity(ex: Exception) -> int:
    if isinstance(ex, MalformedDesiredStateError):
        return 0
    if not isinstance(ex, StoreError):
        return 1
    return 2


def most_severe(errors: List[Exception]) -> Optional[Exception]:
    """Pick the error deciding how a failed pass is retried.

    Malformed desired state outranks unexpected errors, which outrank store
    failures. Ties go to the earliest.
    """
    if not errors:
        return None
    return min(errors, key=_severity)
