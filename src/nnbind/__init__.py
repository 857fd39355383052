"""nnbind: handle-owning Python bindings for a native neural-network engine."""
import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

from nnbind.errors import (
    NNBindError, NativeError, AllocationError, ShapeError,
    FormatError, TruncatedStreamError, UseAfterDisposeError,
)

# Import core components
from nnbind.core import (
    Tensor, Parameter, NativeHandle,
    tensor, zeros, ones, rand, randn,
    float32, float64, int32, int64,
    get_library, manual_seed, live_handles,
)

from nnbind import nn
from nnbind.serialization import save, load
from nnbind.logging_config import setup_logging

__all__ = [
    "NNBindError", "NativeError", "AllocationError", "ShapeError",
    "FormatError", "TruncatedStreamError", "UseAfterDisposeError",
    "Tensor", "Parameter", "NativeHandle",
    "tensor", "zeros", "ones", "rand", "randn",
    "float32", "float64", "int32", "int64",
    "get_library", "manual_seed", "live_handles",
    "nn", "save", "load", "setup_logging",
]
