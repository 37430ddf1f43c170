# dm_core/common/idempotency.py
from __future__ import annotations

import threading

from django.conf import settings
from django.db import IntegrityError, transaction

from dm_core.common.models import IdempotencyRecord

_LOCK = threading.Lock()
_STORE = {}  # in-memory store for local dev


def _use_db() -> bool:
    """
    Enable durable storage with:
        COMMON_IDEMPOTENCY_USE_DB = True
    """
    return bool(getattr(settings, "COMMON_IDEMPOTENCY_USE_DB", False))


def get_key(request):
    # In DRF test client: "HTTP_IDEMPOTENCY_KEY" becomes request.META["HTTP_IDEMPOTENCY_KEY"]
    return request.META.get("HTTP_IDEMPOTENCY_KEY")


def _norm(user_id, method, path, key):
    return (str(user_id), method.upper(), path, str(key))


# in-flight marker: the key is claimed but its response is not stored yet
IN_FLIGHT = 0


def load_response(user_id, method, path, key):
    """
    Returns (status_code, data) for a previously stored response, else None.
    A claimed key whose request is still running has no response yet.
    """
    if not key:
        return None

    if not _use_db():
        with _LOCK:
            stored = _STORE.get(_norm(user_id, method, path, key))
        return None if stored is None or stored[0] == IN_FLIGHT else stored

    rec = _record(user_id, method, path, key).exclude(status_code=IN_FLIGHT).first()
    return None if rec is None else (rec.status_code, rec.response_data)


def claim_key(user_id, method, path, key):
    """
    Reserve `key` before doing the work it guards.

    Returns None when this caller now owns the key. Otherwise returns the
    existing (status_code, data); status_code is IN_FLIGHT while the owning
    request has not finished. In DB mode call this inside the transaction
    that does the work, so a failed request releases the key on rollback and
    a concurrent claim waits on the unique index until the owner commits.
    """
    if not key:
        return None

    if not _use_db():
        with _LOCK:
            norm = _norm(user_id, method, path, key)
            if norm in _STORE:
                return _STORE[norm]
            _STORE[norm] = (IN_FLIGHT, None)
        return None

    try:
        with transaction.atomic():
            IdempotencyRecord.objects.create(
                user_id=int(user_id),
                method=method.upper(),
                path=path,
                idempotency_key=str(key),
                status_code=IN_FLIGHT,
                response_data={},
            )
    except IntegrityError:
        rec = _record(user_id, method, path, key).first()
        return (rec.status_code, rec.response_data)
    return None


def release_key(user_id, method, path, key):
    """
    Drop an in-flight claim after the guarded work failed. Stored responses
    are kept.
    """
    if not key:
        return

    if not _use_db():
        with _LOCK:
            norm = _norm(user_id, method, path, key)
            if _STORE.get(norm, (None,))[0] == IN_FLIGHT:
                del _STORE[norm]
        return

    _record(user_id, method, path, key).filter(status_code=IN_FLIGHT).delete()


def save_response(user_id, method, path, key, response_data, status_code: int = 200):
    """
    Store the response for `key`. Completes an in-flight claim; a response
    stored earlier is never overwritten.
    """
    if not key:
        return

    if not _use_db():
        with _LOCK:
            norm = _norm(user_id, method, path, key)
            if _STORE.get(norm, (IN_FLIGHT,))[0] == IN_FLIGHT:
                _STORE[norm] = (int(status_code), response_data)
        return

    completed = _record(user_id, method, path, key).filter(status_code=IN_FLIGHT).update(
        status_code=int(status_code),
        response_data=response_data,
    )
    if completed:
        return

    # DB-backed: safe under concurrency
    try:
        with transaction.atomic():
            IdempotencyRecord.objects.create(
                user_id=int(user_id),
                method=method.upper(),
                path=path,
                idempotency_key=str(key),
                status_code=int(status_code),
                response_data=response_data,
            )
    except IntegrityError:
        # already saved by a concurrent request
        return


def _record(user_id, method, path, key):
    return IdempotencyRecord.objects.filter(
        user_id=int(user_id),
        method=method.upper(),
        path=path,
        idempotency_key=str(key),
    )
