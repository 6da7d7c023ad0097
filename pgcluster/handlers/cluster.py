import kopf
from logging import Logger
from typing import Dict
from marshmallow import ValidationError
from pgcluster.discovery import CapabilityDiscovery
from pgcluster.reconciler import ClusterReconciler
from pgcluster.resources.cluster import Cluster
from pgcluster.sensors.base import OperatorSensor
from pgcluster.store import ObjectStore
from pgcluster.types.models import ClusterSpec, ClusterStatus
from pgcluster.types.schemas import ClusterSpecSchema, ClusterStatusSchema
from pgcluster.types.settings import RECONCILE_INTERVAL_SECONDS, Settings
from pgcluster.utils.errors import convert_error
from pgcluster.utils.helpers import upsert_condition

GROUP, VERSION, PLURAL = Cluster.GROUP, Cluster.VERSION, Cluster.PLURAL


def load_cluster(
    name, namespace, meta, spec, status, conf: Settings, logger: Logger
) -> Cluster:
    """Build the cluster view from a kopf body."""
    try:
        spec_model: ClusterSpec = ClusterSpecSchema().load(dict(spec or {}))
        status_model: ClusterStatus = ClusterStatusSchema().load(dict(status or {}))
    except ValidationError as ex:
        logger.error(f"Cluster {namespace}/{name} failed validation: {ex.messages}")
        raise kopf.PermanentError(f"Invalid cluster definition: {ex.messages}") from ex
    return Cluster.from_spec(
        name,
        namespace,
        meta.get("uid"),
        spec_model,
        status=status_model,
        labels=meta.get("labels"),
        annotations=meta.get("annotations"),
        generation=meta.get("generation", 0),
        conf=conf,
    )


def on_error(error, meta, status, patch):
    """Record a failed pass on the cluster status."""
    conds = upsert_condition(
        (status or {}).get("conditions", []),
        {
            "type": "Ready",
            "status": "False",
            "reason": error.__class__.__name__,
            "message": str(error) or "Reconcile failed; see events/logs",
            "observedGeneration": meta.get("generation", 0),
        },
    )
    patch.status["conditions"] = conds


def on_success(results: Dict[str, str], meta, status, patch):
    changed = ClusterReconciler.changed(results)
    message = (
        f"Converged {', '.join(changed)}" if changed else "All managed resources are up to date"
    )
    conds = upsert_condition(
        (status or {}).get("conditions", []),
        {
            "type": "Ready",
            "status": "True",
            "reason": "Reconciled",
            "message": message,
            "observedGeneration": meta.get("generation", 0),
        },
    )
    patch.status["conditions"] = conds


async def reconcile(
    trigger_source: str,
    name,
    namespace,
    meta,
    spec,
    status,
    patch,
    memo: kopf.Memo,
    logger: Logger,
):
    conf: Settings = memo.conf
    store: ObjectStore = memo.store
    discovery: CapabilityDiscovery = memo.discovery
    sensor: OperatorSensor = memo.sensor

    cluster = load_cluster(name, namespace, meta, spec, status, conf, logger)
    reconciler = ClusterReconciler(store, discovery, conf, sensor, logger)
    try:
        results = await reconciler.synchronize(cluster, trigger_source)
    except Exception as ex:
        logger.error(f"Failed to reconcile {cluster}: {ex}")
        on_error(ex, meta, status, patch)
        sensor.on_status_update(name, namespace, ["conditions"])
        convert_error(ex, delay=conf.transport_retry_delay_seconds)
    on_success(results, meta, status, patch)
    sensor.on_status_update(name, namespace, ["conditions"])


@kopf.on.resume(GROUP, VERSION, PLURAL)
@kopf.on.create(GROUP, VERSION, PLURAL)
async def on_create(
    name, namespace, meta, spec, status, patch, memo: kopf.Memo, logger: Logger, **kwargs
):
    """Create the managed resources of a cluster."""
    reason = kwargs.get("reason")
    await reconcile(
        getattr(reason, "value", None) or "create",
        name,
        namespace,
        meta,
        spec,
        status,
        patch,
        memo,
        logger,
    )


@kopf.on.update(GROUP, VERSION, PLURAL, field="spec")
@kopf.on.update(GROUP, VERSION, PLURAL, field="metadata.labels")
@kopf.on.update(GROUP, VERSION, PLURAL, field="metadata.annotations")
@kopf.on.update(GROUP, VERSION, PLURAL, field="status.poolerIntegrations")
async def on_update(
    name, namespace, meta, spec, status, patch, memo: kopf.Memo, logger: Logger, **kwargs
):
    """Converge the managed resources after the cluster changed."""
    await reconcile(
        "update", name, namespace, meta, spec, status, patch, memo, logger
    )


@kopf.timer(GROUP, VERSION, PLURAL, interval=RECONCILE_INTERVAL_SECONDS, idle=10)
async def on_timer(
    name, namespace, meta, spec, status, patch, memo: kopf.Memo, logger: Logger, **kwargs
):
    """Periodic pass correcting drift introduced outside the operator."""
    await reconcile(
        "timer", name, namespace, meta, spec, status, patch, memo, logger
    )
