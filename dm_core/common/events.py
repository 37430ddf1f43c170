# dm_core/common/events.py
from collections import defaultdict
from typing import Callable, Dict, List, Any

from django.db import transaction

Handler = Callable[[Dict[str, Any]], None]

_registry: Dict[str, List[Handler]] = defaultdict(list)


def subscribe(event_name: str):
    """
    Decorator to register an event handler.
    Usage:
        @subscribe("order.created")
        def handler(payload): ...
    """
    def _decorator(fn: Handler) -> Handler:
        _registry[event_name].append(fn)
        return fn
    return _decorator


def publish(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Publish an event to in-process subscribers.
    Keep payloads ID-based to avoid cross-app imports.
    """
    for handler in _registry.get(event_name, []):
        handler(payload)


def publish_on_commit(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Publish once the surrounding transaction commits, so subscribers never see
    a write that was rolled back.
    """
    transaction.on_commit(lambda: publish(event_name, payload))


def clear_subscribers(event_name: str | None = None) -> None:
    if event_name is None:
        _registry.clear()
    else:
        _registry.pop(event_name, None)
