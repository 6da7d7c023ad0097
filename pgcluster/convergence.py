"""Idempotent create-or-patch of a single managed object.

``ensure`` reads the live object, creates it verbatim when missing and
otherwise patches only what drifted. Each write carries the resourceVersion
it was computed from; when another writer got there first the object is read
again and the patch recomputed.
"""
import logging
from typing import Any, Dict, List, Optional
from pgcluster.discovery import CapabilityDiscovery
from pgcluster.resources.base import (
    ManagedResource,
    MetadataMerge,
    OptionalResource,
    owner_uids,
)
from pgcluster.sensors.base import OperatorSensor
from pgcluster.store import ObjectKey, ObjectStore
from pgcluster.types.settings import CONFLICT_RETRY_LIMIT
from pgcluster.utils.errors import (
    AlreadyExistsError,
    ConflictError,
    ConflictRetriesExhaustedError,
    MalformedDesiredStateError,
    NotFoundError,
)
from pgcluster.utils.helpers import get_path

CREATED = "created"
PATCHED = "patched"
UNCHANGED = "unchanged"
DELETED = "deleted"
ABSENT = "absent"
CAPABILITY_ABSENT = "capability_absent"

_METADATA_MAPS = ("labels", "annotations")


def merge_metadata(
    current: Optional[Dict[str, str]],
    desired: Optional[Dict[str, str]],
    strategy: MetadataMerge,
) -> Dict[str, Optional[str]]:
    """Merge patch turning the ``current`` label/annotation map into the desired one."""
    current = current or {}
    desired = desired or {}
    patch = {key: value for key, value in desired.items() if current.get(key) != value}
    if strategy is MetadataMerge.REPLACE:
        patch.update({key: None for key in current if key not in desired})
    return patch


def prepare_patch(
    resource: ManagedResource, current: Dict[str, Any], desired: Dict[str, Any]
) -> Dict[str, Any]:
    """Compute the merge patch converging ``current`` toward ``desired``.

    Ownership references are never part of the patch, they are only written on
    creation. An empty dict means the object is converged.
    """
    patch = resource.prepare_payload_patch(current, desired)
    metadata = {}
    for field in _METADATA_MAPS:
        changes = merge_metadata(
            get_path(current, ("metadata", field)),
            get_path(desired, ("metadata", field)),
            resource.METADATA_MERGE,
        )
        if changes:
            metadata[field] = changes
    if metadata:
        patch["metadata"] = metadata
    return patch


def drift_fields(patch: Dict[str, Any]) -> List[str]:
    """Dotted names of the fields a patch touches, two levels deep."""
    fields = []
    for key, value in patch.items():
        if isinstance(value, dict) and value:
            fields.extend(f"{key}.{child}" for child in value)
        else:
            fields.append(key)
    return sorted(fields)


def validate_desired(resource: ManagedResource, desired: Dict[str, Any]) -> None:
    """Reject a desired manifest that can never be applied.

    Raises:
        MalformedDesiredStateError: identity is incomplete or does not match
            ``resource.identity()``, or a required field is missing.
    """
    key = resource.identity()
    if not isinstance(desired, dict):
        raise MalformedDesiredStateError(f"{key}: desired state is not an object")
    missing = [
        name
        for name, value in (
            ("apiVersion", desired.get("apiVersion")),
            ("kind", desired.get("kind")),
            ("metadata.name", get_path(desired, ("metadata", "name"))),
            ("metadata.namespace", get_path(desired, ("metadata", "namespace"))),
        )
        if not value
    ]
    if missing:
        raise MalformedDesiredStateError(
            f"{key}: desired state is missing {', '.join(missing)}"
        )
    if ObjectKey.of(desired) != key:
        raise MalformedDesiredStateError(
            f"{key}: desired state describes {ObjectKey.of(desired)}"
        )
    for path in resource.REQUIRED_FIELDS:
        if get_path(desired, path) is None:
            raise MalformedDesiredStateError(
                f"{key}: desired state is missing {'.'.join(path)}"
            )


async def ensure(
    store: ObjectStore,
    resource: ManagedResource,
    sensor: OperatorSensor = None,
    logger: logging.Logger = None,
    retries: int = CONFLICT_RETRY_LIMIT,
) -> str:
    """Converge one managed object.

    Returns:
        ``CREATED``, ``PATCHED`` or ``UNCHANGED``.

    Raises:
        MalformedDesiredStateError: the desired manifest is unusable.
        ConflictRetriesExhaustedError: every attempt lost a concurrency race.
        TransportError: the store is unreachable.
    """
    sensor = sensor or OperatorSensor()
    logger = logger or logging.getLogger(__name__)
    key = resource.identity()
    desired = resource.build_desired()
    validate_desired(resource, desired)

    sensor_state = sensor.on_resource_sync_start(
        resource.cluster.name, key.name, key.namespace, key.kind
    )
    operation, success, error = UNCHANGED, True, None
    try:
        operation = await _converge(store, resource, key, desired, sensor, logger, retries)
        return operation
    except Exception as ex:
        success, error = False, ex
        raise
    finally:
        sensor.on_resource_sync_complete(
            resource.cluster.name,
            key.name,
            key.namespace,
            key.kind,
            sensor_state,
            operation,
            success,
            error,
        )


async def _converge(store, resource, key, desired, sensor, logger, retries) -> str:
    for attempt in range(1, retries + 2):
        try:
            current = await store.get(key)
        except NotFoundError:
            try:
                await store.create(desired)
            except AlreadyExistsError:
                logger.info(f"{key} was created concurrently, reading it again")
                continue
            logger.info(f"Created {key}")
            return CREATED

        patch = prepare_patch(resource, current, desired)
        if not patch:
            logger.debug(f"{key} is up to date")
            return UNCHANGED

        fields = drift_fields(patch)
        sensor.on_resource_drift_detected(
            resource.cluster.name, key.name, key.namespace, key.kind, fields
        )
        try:
            await store.patch(
                key, patch, get_path(current, ("metadata", "resourceVersion"))
            )
        except (ConflictError, NotFoundError) as ex:
            sensor.on_conflict_retry(
                resource.cluster.name, key.name, key.namespace, key.kind, attempt
            )
            logger.info(f"{key} changed while patching ({ex}), retrying")
            continue
        logger.info(f"Patched {key}: {', '.join(fields)}")
        return PATCHED

    raise ConflictRetriesExhaustedError(
        f"{key}: gave up after {retries + 1} conflicting attempts"
    )


async def delete_if_exists(
    store: ObjectStore, key: ObjectKey, logger: logging.Logger = None
) -> bool:
    """Delete ``key``; returns False when there was nothing to delete."""
    logger = logger or logging.getLogger(__name__)
    try:
        await store.delete(key)
    except NotFoundError:
        return False
    logger.info(f"Deleted {key}")
    return True


async def delete_if_owned(
    store: ObjectStore, key: ObjectKey, owner_uid: str, logger: logging.Logger = None
) -> bool:
    """Delete ``key`` only when it is owned by ``owner_uid``."""
    logger = logger or logging.getLogger(__name__)
    try:
        current = await store.get(key)
    except NotFoundError:
        return False
    if owner_uid not in owner_uids(current):
        logger.info(f"Leaving {key} in place, it is not owned by this cluster")
        return False
    return await delete_if_exists(store, key, logger=logger)


async def ensure_optional(
    store: ObjectStore,
    discovery: CapabilityDiscovery,
    resource: OptionalResource,
    sensor: OperatorSensor = None,
    logger: logging.Logger = None,
    retries: int = CONFLICT_RETRY_LIMIT,
) -> str:
    """Converge an object whose kind may not be installed.

    Returns ``CAPABILITY_ABSENT`` without touching the store when the kind is
    not served, ``DELETED``/``ABSENT`` when the object is disabled, and the
    ``ensure`` outcome otherwise.
    """
    sensor = sensor or OperatorSensor()
    logger = logger or logging.getLogger(__name__)
    if not await discovery.has_resource(resource.group_version, resource.KIND):
        logger.info(
            f"{resource.group_version}/{resource.KIND} is not served, skipping {resource}"
        )
        sensor.on_capability_absent(
            resource.cluster.name,
            resource.namespace,
            resource.group_version,
            resource.KIND,
        )
        return CAPABILITY_ABSENT

    if not resource.is_enabled():
        deleted = await delete_if_exists(store, resource.identity(), logger=logger)
        return DELETED if deleted else ABSENT

    return await ensure(store, resource, sensor=sensor, logger=logger, retries=retries)
