import json
import kopf
import kubernetes_asyncio

_ALREADY_EXISTS = "alreadyexists"
_NOT_FOUND = "notfound"
_CONFLICT = "conflict"
_INVALID = "invalid"

#: Status codes worth retrying even though they are in the 4xx range
_RETRYABLE_CLIENT_STATUSES = (408, 429)


class StoreError(Exception):
    """Base class for object store failures."""


class NotFoundError(StoreError):
    """Object does not exist."""


class AlreadyExistsError(StoreError):
    """Object was created concurrently."""


class ConflictError(StoreError):
    """Write rejected because the object changed since it was read."""


class TransportError(StoreError):
    """Object store unreachable or failing; retry later with backoff."""


class ConflictRetriesExhaustedError(TransportError):
    """Conflicting writers kept winning; let the next pass try again."""


class MalformedDesiredStateError(Exception):
    """A builder produced an object that can never be applied."""


def _reason(ex: kubernetes_asyncio.client.ApiException) -> str:
    try:
        err = json.loads(ex.body) if ex.body else {}
    except (json.JSONDecodeError, TypeError):
        return ""
    return (err.get("reason") or "").lower()


def _message(ex: kubernetes_asyncio.client.ApiException) -> str:
    msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
    try:
        if ex.body:
            body = json.loads(ex.body)
            if "message" in body:
                msg = f"{msg} - {body['message']}"
    except (json.JSONDecodeError, TypeError, AttributeError):
        pass
    return msg


def already_exists_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 and _reason(ex) == _ALREADY_EXISTS


def not_found_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 404 or _reason(ex) == _NOT_FOUND


def conflict_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 and _reason(ex) != _ALREADY_EXISTS


def translate_api_exception(ex: kubernetes_asyncio.client.ApiException) -> Exception:
    """Map a kubernetes ApiException onto the store error taxonomy."""
    msg = _message(ex)
    if not_found_error(ex):
        return NotFoundError(msg)
    if already_exists_error(ex):
        return AlreadyExistsError(msg)
    if conflict_error(ex):
        return ConflictError(msg)
    if ex.status == 422 or _reason(ex) == _INVALID:
        return MalformedDesiredStateError(msg)
    return TransportError(msg)


def convert_error(ex: Exception, delay: float = 30):
    """
    Convert an engine error to a Kopf-friendly exception.

    Malformed desired state is a logic defect and is never retried; everything
    coming from the store is retried after ``delay`` seconds.

    Raises:
        kopf.TemporaryError or kopf.PermanentError
    """
    if isinstance(ex, MalformedDesiredStateError):
        raise kopf.PermanentError(str(ex)) from ex
    if isinstance(ex, StoreError):
        raise kopf.TemporaryError(str(ex), delay=delay) from ex
    if isinstance(ex, kubernetes_asyncio.client.ApiException):
        is_permanent = (
            400 <= ex.status < 500 and ex.status not in _RETRYABLE_CLIENT_STATUSES
        )
        if is_permanent:
            raise kopf.PermanentError(_message(ex)) from ex
        raise kopf.TemporaryError(_message(ex), delay=delay) from ex
    raise ex
