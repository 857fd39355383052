import ctypes
from typing import Any, Optional, Tuple, Union

import numpy as np

from nnbind.core.handle import NativeHandle
from nnbind.core.library import check_for_errors, get_library, long_array, raise_for_null
from nnbind.errors import FormatError

float32 = np.dtype(np.float32)
float64 = np.dtype(np.float64)
int32 = np.dtype(np.int32)
int64 = np.dtype(np.int64)

# Must agree with the engine's dtype tags
_DTYPE_TAGS = {float32: 0, float64: 1, int32: 2, int64: 3}
_DTYPES_BY_TAG = {tag: dtype for dtype, tag in _DTYPE_TAGS.items()}


def _dtype_tag(dtype: Any) -> int:
    dtype = np.dtype(dtype)
    try:
        return _DTYPE_TAGS[dtype]
    except KeyError:
        raise TypeError(f"unsupported dtype {dtype}; expected one of "
                        f"{', '.join(str(d) for d in _DTYPE_TAGS)}") from None


def _normalize_shape(shape: Tuple[Any, ...]) -> Tuple[int, ...]:
    if len(shape) == 1 and isinstance(shape[0], (tuple, list)):
        shape = tuple(shape[0])
    return tuple(int(d) for d in shape)


def _dispose(value: int) -> None:
    get_library().THSTensor_dispose(value)
    check_for_errors()


class Tensor:
    """Reference to a tensor owned by the native engine.

    The wrapper never holds the data itself, only the handle. Every tensor
    returned by a native call is a fresh handle that this wrapper releases on
    ``dispose()``, on garbage collection or at exit.
    """

    def __init__(self, handle: int):
        self._handle = NativeHandle(handle, _dispose, kind='tensor')

    # Construction

    @classmethod
    def from_numpy(cls, array: np.ndarray) -> 'Tensor':
        array = np.require(array, requirements='C')
        tag = _dtype_tag(array.dtype)
        shape, ndim = long_array(array.shape)
        res = get_library().THSTensor_new(array.ctypes.data_as(ctypes.c_void_p), shape, ndim, tag)
        if not res:
            raise_for_null()
        return cls(res)

    @classmethod
    def _from_factory(cls, symbol: str, shape: Tuple[int, ...], dtype: Any) -> 'Tensor':
        tag = _dtype_tag(dtype)
        dims, ndim = long_array(shape)
        res = getattr(get_library(), symbol)(dims, ndim, tag)
        if not res:
            raise_for_null()
        return cls(res)

    @classmethod
    def _from_record(cls, record: bytes) -> 'Tensor':
        buf = ctypes.create_string_buffer(record, len(record))
        res = get_library().THSTensor_load_record(buf, len(record))
        if not res:
            raise_for_null(FormatError)
        return cls(res)

    # Lifetime

    @property
    def handle(self) -> int:
        return self._handle.value

    @property
    def disposed(self) -> bool:
        return self._handle.closed

    def dispose(self) -> None:
        self._handle.close()

    def __enter__(self) -> 'Tensor':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    # Queries

    @property
    def shape(self) -> Tuple[int, ...]:
        lib = get_library()
        handle = self.handle
        ndim = lib.THSTensor_ndimension(handle)
        check_for_errors()
        dims = []
        for dim in range(ndim):
            dims.append(lib.THSTensor_size(handle, dim))
            check_for_errors()
        return tuple(dims)

    @property
    def ndim(self) -> int:
        ndim = get_library().THSTensor_ndimension(self.handle)
        check_for_errors()
        return ndim

    def dim(self) -> int:
        return self.ndim

    @property
    def dtype(self) -> np.dtype:
        tag = get_library().THSTensor_type(self.handle)
        check_for_errors()
        return _DTYPES_BY_TAG[tag]

    def numel(self) -> int:
        count = get_library().THSTensor_numel(self.handle)
        check_for_errors()
        return count

    def __len__(self) -> int:
        shape = self.shape
        if not shape:
            raise TypeError("len() of a 0-d tensor")
        return shape[0]

    # Data movement

    def to_numpy(self) -> np.ndarray:
        out = np.empty(self.shape, dtype=self.dtype)
        get_library().THSTensor_data_copy(self.handle, out.ctypes.data_as(ctypes.c_void_p), out.nbytes)
        check_for_errors()
        return out

    numpy = to_numpy

    def item(self) -> Union[float, int]:
        if self.numel() != 1:
            raise ValueError("only one element tensors can be converted to Python scalars")
        return self.to_numpy().reshape(()).item()

    def clone(self) -> 'Tensor':
        res = get_library().THSTensor_clone(self.handle)
        if not res:
            raise_for_null()
        return type(self)(res)

    def copy_(self, src: Union['Tensor', np.ndarray, Any]) -> 'Tensor':
        """Overwrite this tensor's storage in place."""
        lib = get_library()
        if isinstance(src, Tensor):
            lib.THSTensor_copy_(self.handle, src.handle)
        else:
            array = np.require(np.asarray(src, dtype=self.dtype), requirements='C')
            if array.shape != self.shape:
                array = np.broadcast_to(array, self.shape).copy()
            lib.THSTensor_copy_from_buffer(self.handle, array.ctypes.data_as(ctypes.c_void_p), array.nbytes)
        check_for_errors()
        return self

    def _to_record(self) -> bytes:
        lib = get_library()
        handle = self.handle
        size = lib.THSTensor_record_size(handle)
        check_for_errors()
        buf = ctypes.create_string_buffer(size)
        lib.THSTensor_write_record(handle, buf, size)
        check_for_errors()
        return buf.raw

    # Comparison

    def equal(self, other: 'Tensor') -> bool:
        if self.shape != other.shape or self.dtype != other.dtype:
            return False
        return bool(np.array_equal(self.to_numpy(), other.to_numpy()))

    def allclose(self, other: 'Tensor', rtol: float = 1e-05, atol: float = 1e-08) -> bool:
        if self.shape != other.shape:
            return False
        return bool(np.allclose(self.to_numpy(), other.to_numpy(), rtol=rtol, atol=atol))

    def __repr__(self) -> str:
        if self.disposed:
            return f"{type(self).__name__}(<disposed>)"
        return f"{type(self).__name__}(shape={self.shape}, dtype={self.dtype})"


class Parameter(Tensor):
    """A tensor enumerated as a learnable parameter of a module."""


def tensor(data: Any, dtype: Optional[Any] = None) -> Tensor:
    array = np.asarray(data, dtype=dtype)
    if dtype is None and array.dtype.kind == 'f':
        array = array.astype(float32)
    elif dtype is None and array.dtype.kind in 'iu':
        array = array.astype(int64)
    return Tensor.from_numpy(array)


def zeros(*shape, dtype: Any = float32) -> Tensor:
    return Tensor._from_factory("THSTensor_zeros", _normalize_shape(shape), dtype)


def ones(*shape, dtype: Any = float32) -> Tensor:
    return Tensor._from_factory("THSTensor_ones", _normalize_shape(shape), dtype)


def rand(*shape, dtype: Any = float32) -> Tensor:
    return Tensor._from_factory("THSTensor_rand", _normalize_shape(shape), dtype)


def randn(*shape, dtype: Any = float32) -> Tensor:
    return Tensor._from_factory("THSTensor_randn", _normalize_shape(shape), dtype)
