"""Access to the native engine and its error convention.

Every call into the engine goes through the ``NativeLibrary`` returned by
``get_library()``. Entry points return ``0`` on failure; the caller then asks
the engine for its last error and raises it here, at the call site.
"""
import ctypes
import importlib
import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Type

from nnbind import config
from nnbind.errors import AllocationError, NativeError

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_library: Optional['NativeLibrary'] = None


class NativeLibrary:
    """Symbol table of a loaded engine."""

    def __init__(self, name: str, symbols: Dict[str, Callable]):
        self.name = name
        self._symbols = dict(symbols)

    def __getattr__(self, symbol: str) -> Callable:
        try:
            return self.__dict__['_symbols'][symbol]
        except KeyError:
            raise AttributeError(f"undefined symbol {symbol!r} in native library {self.name!r}") from None

    def symbols(self) -> List[str]:
        return sorted(self._symbols)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._symbols

    def __repr__(self) -> str:
        return f"NativeLibrary({self.name!r}, symbols={len(self._symbols)})"


def load_library(name: str) -> NativeLibrary:
    module = importlib.import_module(name)
    try:
        symbols = module.SYMBOLS
    except AttributeError:
        raise ImportError(f"{name} does not export a SYMBOLS table") from None
    library = NativeLibrary(name, symbols)
    logger.debug("Loaded native library %s with %d symbols", name, len(symbols))
    return library


def get_library() -> NativeLibrary:
    global _library
    if _library is None:
        with _lock:
            if _library is None:
                library = load_library(config.NATIVE_LIBRARY)
                if config.SEED is not None:
                    library.THSTorch_manual_seed(config.SEED)
                _library = library
    return _library


def check_for_errors(error_type: Type[Exception] = NativeError) -> None:
    """Raise the engine's pending error, if any, as ``error_type``."""
    message = get_library().THSTorch_get_and_reset_last_err()
    if message:
        raise error_type(message)


def raise_for_null(error_type: Type[Exception] = AllocationError) -> None:
    """Called after an entry point returned a null handle."""
    check_for_errors(error_type)
    raise error_type("native call returned a null handle")


def manual_seed(seed: int) -> None:
    lib = get_library()
    lib.THSTorch_manual_seed(int(seed))
    check_for_errors()


def live_handles() -> int:
    count = get_library().THSTorch_live_handles()
    check_for_errors()
    return count


# Marshalling helpers

def long_array(values: Optional[Iterable[int]]) -> Tuple[Optional[ctypes.Array], int]:
    if values is None:
        return None, 0
    values = [int(v) for v in values]
    if not values:
        return None, 0
    return (ctypes.c_int64 * len(values))(*values), len(values)


def out_handle() -> Tuple[ctypes.c_int64, 'ctypes._Pointer']:
    slot = ctypes.c_int64(0)
    return slot, ctypes.pointer(slot)
