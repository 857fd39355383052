"""Calling convention of the reference engine.

Entry points take primitive values, handles (ints), ctypes pointers and
lengths. They never raise: a failure is recorded in the thread-local error
slot and the entry point returns ``0``.
"""
import ctypes
import functools
from typing import Callable, Dict, Tuple

import numpy as np

from . import heap

SYMBOLS: Dict[str, Callable] = {}

# dtype tags shared by tensor creation and the record format
DTYPE_TAGS: Dict[int, np.dtype] = {
    0: np.dtype(np.float32),
    1: np.dtype(np.float64),
    2: np.dtype(np.int32),
    3: np.dtype(np.int64),
}
TAGS_BY_DTYPE = {dtype: tag for tag, dtype in DTYPE_TAGS.items()}


def export(symbol: str):
    """Register ``func`` in the symbol table under ``symbol``."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def entry_point(*args):
            try:
                return func(*args)
            except Exception as exc:
                heap.set_last_error(f"{symbol}: {exc}")
                return 0

        if symbol in SYMBOLS:
            raise RuntimeError(f"duplicate symbol {symbol}")
        SYMBOLS[symbol] = entry_point
        return func
    return decorator


def address(ptr) -> int:
    if ptr is None:
        return 0
    if isinstance(ptr, int):
        return ptr
    value = ctypes.cast(ptr, ctypes.c_void_p).value
    return value or 0


def read_longs(ptr, length: int) -> Tuple[int, ...]:
    if not ptr or length <= 0:
        return ()
    return tuple(int(ptr[i]) for i in range(length))


def write_handle(out, value: int) -> None:
    if out:
        out[0] = value


def dtype_for(tag: int) -> np.dtype:
    try:
        return DTYPE_TAGS[tag]
    except KeyError:
        raise ValueError(f"unknown dtype tag {tag}") from None


def tag_for(dtype: np.dtype) -> int:
    try:
        return TAGS_BY_DTYPE[np.dtype(dtype)]
    except KeyError:
        raise TypeError(f"unsupported dtype {dtype}") from None


def read_bytes(ptr, nbytes: int) -> bytes:
    if nbytes == 0:
        return b""
    addr = address(ptr)
    if not addr:
        raise ValueError("null data pointer")
    return ctypes.string_at(addr, nbytes)


def write_bytes(ptr, data, nbytes: int) -> None:
    """Copy ``nbytes`` from the buffer-supporting ``data`` to ``ptr``."""
    if nbytes == 0:
        return
    addr = address(ptr)
    if not addr:
        raise ValueError("null data pointer")
    ctypes.memmove(addr, data, nbytes)
