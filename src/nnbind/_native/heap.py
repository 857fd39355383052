"""Handle table and per-thread error slot of the reference engine.

Every object the engine hands out is registered here and referred to by a
positive integer. ``0`` is never issued, so callers can use it as the null
sentinel.
"""
import itertools
import threading
from typing import Any, Dict, Optional, Type

_lock = threading.Lock()
_objects: Dict[int, Any] = {}
_ids = itertools.count(1)
_state = threading.local()


class InvalidHandle(LookupError):
    pass


def allocate(obj: Any) -> int:
    with _lock:
        handle = next(_ids)
        _objects[handle] = obj
    return handle


def resolve(handle: int, expected: Optional[Type] = None) -> Any:
    try:
        obj = _objects[handle]
    except KeyError:
        raise InvalidHandle(f"invalid handle: {handle}") from None
    if expected is not None and not isinstance(obj, expected):
        raise InvalidHandle(
            f"handle {handle} refers to {type(obj).__name__}, expected {expected.__name__}"
        )
    return obj


def release(handle: int) -> None:
    with _lock:
        if _objects.pop(handle, None) is None:
            raise InvalidHandle(f"double release of handle {handle}")


def live_count() -> int:
    return len(_objects)


def set_last_error(message: str) -> None:
    _state.last_error = message


def take_last_error() -> Optional[str]:
    message = getattr(_state, "last_error", None)
    _state.last_error = None
    return message
