from .handle import NativeHandle
from .library import (
    NativeLibrary,
    check_for_errors,
    get_library,
    live_handles,
    manual_seed,
)
from .tensor import (
    Parameter,
    Tensor,
    float32,
    float64,
    int32,
    int64,
    ones,
    rand,
    randn,
    tensor,
    zeros,
)

__all__ = [
    "NativeHandle",
    "NativeLibrary",
    "check_for_errors",
    "get_library",
    "live_handles",
    "manual_seed",
    "Parameter",
    "Tensor",
    "float32",
    "float64",
    "int32",
    "int64",
    "ones",
    "rand",
    "randn",
    "tensor",
    "zeros",
]
