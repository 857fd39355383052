"""Reference CPU engine.

Stands behind the binding layer the way a precompiled native library would:
all storage lives here, every entry point is looked up by symbol name in
``SYMBOLS`` and nothing but handles, primitives and ctypes buffers crosses
the boundary.
"""
from .abi import SYMBOLS
from . import nn_api, tensor_api  # noqa: F401  (registers the entry points)

NAME = "nnbind-reference"

__all__ = ["SYMBOLS", "NAME"]
