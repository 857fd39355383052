"""THSTensor_* and THSTorch_* entry points."""
import numpy as np

from . import heap, rng, serialize
from .abi import dtype_for, export, read_bytes, read_longs, tag_for, write_bytes


def _tensor(handle: int) -> np.ndarray:
    return heap.resolve(handle, np.ndarray)


def _shape(shape_ptr, ndim: int):
    shape = read_longs(shape_ptr, ndim)
    if len(shape) != ndim or any(d < 0 for d in shape):
        raise ValueError(f"invalid shape {shape}")
    return shape


@export("THSTorch_get_and_reset_last_err")
def get_and_reset_last_err():
    return heap.take_last_error()


@export("THSTorch_manual_seed")
def manual_seed(seed: int) -> int:
    rng.manual_seed(seed)
    return 1


@export("THSTorch_live_handles")
def live_handles() -> int:
    return heap.live_count()


@export("THSTensor_new")
def new(data_ptr, shape_ptr, ndim: int, dtype_tag: int) -> int:
    dtype = dtype_for(dtype_tag)
    shape = _shape(shape_ptr, ndim)
    count = int(np.prod(shape, dtype=np.int64))
    if count == 0:
        return heap.allocate(np.zeros(shape, dtype=dtype))
    raw = read_bytes(data_ptr, count * dtype.itemsize)
    return heap.allocate(np.frombuffer(raw, dtype=dtype).reshape(shape).copy())


@export("THSTensor_zeros")
def zeros(shape_ptr, ndim: int, dtype_tag: int) -> int:
    return heap.allocate(np.zeros(_shape(shape_ptr, ndim), dtype=dtype_for(dtype_tag)))


@export("THSTensor_ones")
def ones(shape_ptr, ndim: int, dtype_tag: int) -> int:
    return heap.allocate(np.ones(_shape(shape_ptr, ndim), dtype=dtype_for(dtype_tag)))


def _floating(dtype_tag: int) -> np.dtype:
    dtype = dtype_for(dtype_tag)
    if dtype.kind != 'f':
        raise TypeError(f"random sampling requires a floating dtype, got {dtype}")
    return dtype


@export("THSTensor_rand")
def rand(shape_ptr, ndim: int, dtype_tag: int) -> int:
    return heap.allocate(rng.uniform(0.0, 1.0, _shape(shape_ptr, ndim), _floating(dtype_tag)))


@export("THSTensor_randn")
def randn(shape_ptr, ndim: int, dtype_tag: int) -> int:
    return heap.allocate(rng.normal(_shape(shape_ptr, ndim), _floating(dtype_tag)))


@export("THSTensor_dispose")
def dispose(handle: int) -> int:
    _tensor(handle)
    heap.release(handle)
    return 1


@export("THSTensor_ndimension")
def ndimension(handle: int) -> int:
    return _tensor(handle).ndim


@export("THSTensor_size")
def size(handle: int, dim: int) -> int:
    return _tensor(handle).shape[dim]


@export("THSTensor_numel")
def numel(handle: int) -> int:
    return _tensor(handle).size


@export("THSTensor_type")
def dtype(handle: int) -> int:
    return tag_for(_tensor(handle).dtype)


@export("THSTensor_data_copy")
def data_copy(handle: int, dst_ptr, nbytes: int) -> int:
    array = _tensor(handle)
    if nbytes != array.nbytes:
        raise ValueError(f"destination holds {nbytes} bytes, tensor has {array.nbytes}")
    write_bytes(dst_ptr, array.ctypes.data, nbytes)
    return 1


@export("THSTensor_copy_from_buffer")
def copy_from_buffer(handle: int, src_ptr, nbytes: int) -> int:
    array = _tensor(handle)
    if nbytes != array.nbytes:
        raise ValueError(f"source holds {nbytes} bytes, tensor has {array.nbytes}")
    write_bytes(array.ctypes.data, read_bytes(src_ptr, nbytes), nbytes)
    return 1


@export("THSTensor_copy_")
def copy_(dst_handle: int, src_handle: int) -> int:
    dst = _tensor(dst_handle)
    src = _tensor(src_handle)
    if dst.shape != src.shape:
        raise ValueError(f"shape mismatch: {dst.shape} vs {src.shape}")
    np.copyto(dst, src, casting='same_kind')
    return 1


@export("THSTensor_clone")
def clone(handle: int) -> int:
    return heap.allocate(_tensor(handle).copy())


@export("THSTensor_record_size")
def record_size(handle: int) -> int:
    return serialize.record_size(_tensor(handle))


@export("THSTensor_write_record")
def write_record(handle: int, dst_ptr, nbytes: int) -> int:
    record = serialize.encode(_tensor(handle))
    if nbytes != len(record):
        raise ValueError(f"record needs {len(record)} bytes, buffer holds {nbytes}")
    write_bytes(dst_ptr, record, nbytes)
    return 1


@export("THSTensor_load_record")
def load_record(src_ptr, nbytes: int) -> int:
    return heap.allocate(serialize.decode(read_bytes(src_ptr, nbytes)))
