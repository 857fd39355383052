"""Tensor record format of the reference engine.

A record is self-describing: magic, version, dtype tag, rank, dims and the raw
C-order bytes. Callers treat it as opaque.
"""
import struct

import numpy as np

from .abi import dtype_for, tag_for

_MAGIC = b"NNBT"
_VERSION = 1
_HEADER = struct.Struct("<4sIII")  # magic, version, dtype tag, rank
_DIM = struct.Struct("<Q")


def record_size(array: np.ndarray) -> int:
    return _HEADER.size + _DIM.size * array.ndim + _DIM.size + array.nbytes


def encode(array: np.ndarray) -> bytes:
    array = np.require(array, requirements='C')
    out = bytearray(_HEADER.pack(_MAGIC, _VERSION, tag_for(array.dtype), array.ndim))
    for dim in array.shape:
        out += _DIM.pack(dim)
    out += _DIM.pack(array.nbytes)
    out += array.tobytes(order='C')
    return bytes(out)


def decode(data: bytes) -> np.ndarray:
    if len(data) < _HEADER.size:
        raise ValueError("tensor record is too short")
    magic, version, tag, rank = _HEADER.unpack_from(data, 0)
    if magic != _MAGIC:
        raise ValueError("invalid tensor record magic")
    if version != _VERSION:
        raise ValueError(f"unsupported tensor record version {version}")
    dtype = dtype_for(tag)

    offset = _HEADER.size
    if len(data) < offset + _DIM.size * (rank + 1):
        raise ValueError("tensor record header is truncated")
    shape = []
    for _ in range(rank):
        (dim,) = _DIM.unpack_from(data, offset)
        shape.append(dim)
        offset += _DIM.size
    (byte_len,) = _DIM.unpack_from(data, offset)
    offset += _DIM.size

    expected = int(np.prod(shape, dtype=np.int64)) * dtype.itemsize
    if byte_len != expected:
        raise ValueError(f"tensor record holds {byte_len} bytes, shape needs {expected}")
    if len(data) - offset != byte_len:
        raise ValueError("tensor record payload length mismatch")
    if byte_len == 0:
        return np.zeros(shape, dtype=dtype)
    return np.frombuffer(data, dtype=dtype, count=int(np.prod(shape, dtype=np.int64)),
                         offset=offset).reshape(shape).copy()
