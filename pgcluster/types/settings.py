import os
from typing import Any, List
from pgcluster.utils.patterns import is_inherited

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}
_FLAG_TRUE = {"true", "yes", "on", "1"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


def _getenv_flag(name: str, default: bool = False) -> bool:
    """Read an on/off switch; any value outside the true set turns it off."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _FLAG_TRUE


def _getenv_list(name: str) -> List[str]:
    """Read a comma separated list, dropping blank entries."""
    value = os.environ.get(name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Glob patterns of cluster annotations copied to every managed resource
INHERITED_ANNOTATIONS = _getenv_list("INHERITED_ANNOTATIONS")

#: Glob patterns of cluster labels copied to every managed resource
INHERITED_LABELS = _getenv_list("INHERITED_LABELS")

#: Create the `<cluster>-any` service that routes to every instance
CREATE_ANY_SERVICE = _getenv_flag("CREATE_ANY_SERVICE")

#: Times a write is recomputed after losing an optimistic concurrency race
CONFLICT_RETRY_LIMIT = int(_getenv("CONFLICT_RETRY_LIMIT", 5))

#: Seconds between periodic reconcile passes of a cluster, read when the
#: timer handler is registered
RECONCILE_INTERVAL_SECONDS = float(_getenv("RECONCILE_INTERVAL_SECONDS", 30.0))

#: Seconds kopf waits before retrying a pass that hit a transport failure
TRANSPORT_RETRY_DELAY_SECONDS = float(_getenv("TRANSPORT_RETRY_DELAY_SECONDS", 30.0))

#: Port of the Prometheus metrics endpoint
METRICS_PORT = int(_getenv("METRICS_PORT", 8000))


class Settings:
    """Operator settings"""

    inherited_annotations: List[str] = INHERITED_ANNOTATIONS
    inherited_labels: List[str] = INHERITED_LABELS
    create_any_service: bool = CREATE_ANY_SERVICE
    conflict_retry_limit: int = CONFLICT_RETRY_LIMIT
    transport_retry_delay_seconds: float = TRANSPORT_RETRY_DELAY_SECONDS
    metrics_port: int = METRICS_PORT

    def __init__(
        self,
        *args,
        inherited_annotations: List[str] = None,
        inherited_labels: List[str] = None,
        create_any_service: bool = None,
        conflict_retry_limit: int = None,
        transport_retry_delay_seconds: float = None,
        metrics_port: int = None,
        **kwargs,
    ):
        if inherited_annotations is not None:
            self.inherited_annotations = list(inherited_annotations)

        if inherited_labels is not None:
            self.inherited_labels = list(inherited_labels)

        if create_any_service is not None:
            self.create_any_service = create_any_service

        if conflict_retry_limit is not None:
            self.conflict_retry_limit = conflict_retry_limit

        if transport_retry_delay_seconds is not None:
            self.transport_retry_delay_seconds = transport_retry_delay_seconds

        if metrics_port is not None:
            self.metrics_port = metrics_port

    def is_annotation_inherited(self, key: str) -> bool:
        return is_inherited(self.inherited_annotations, key)

    def is_label_inherited(self, key: str) -> bool:
        return is_inherited(self.inherited_labels, key)
