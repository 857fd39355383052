import logging
import weakref
from typing import Any, Callable

from nnbind.errors import AllocationError, UseAfterDisposeError

logger = logging.getLogger(__name__)


def _release(release: Callable[[int], Any], value: int, kind: str) -> None:
    logger.debug("Releasing %s handle %d", kind, value)
    release(value)


class NativeHandle:
    """Exclusive owner of one native handle.

    The handle is released exactly once: on ``close()``, when the owner is
    garbage-collected, or at interpreter exit, whichever comes first.
    """

    def __init__(self, value: int, release: Callable[[int], Any], kind: str = 'tensor'):
        if not value:
            raise AllocationError(f"cannot wrap a null {kind} handle")
        self._value = int(value)
        self.kind = kind
        self._finalizer = weakref.finalize(self, _release, release, self._value, kind)

    @property
    def value(self) -> int:
        if not self._finalizer.alive:
            raise UseAfterDisposeError(f"{self.kind} handle {self._value} has been disposed")
        return self._value

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def close(self) -> None:
        # finalize objects run at most once
        self._finalizer()

    def __enter__(self) -> 'NativeHandle':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f"NativeHandle({self.kind}, {self._value}, {state})"
