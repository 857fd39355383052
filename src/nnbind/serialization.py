"""Parameter persistence.

An archive is a header followed by one entry per state tensor, in
``Module.state_dict()`` order::

    magic "NNBINDPS" | u32 version | u32 count
    count x ( u32 name length | name (utf-8) | u64 record length | record )

Each record is produced and parsed by the native engine and is opaque here.
Loading reads and validates every entry before any parameter is written, so
a failed load leaves the module untouched.
"""
import logging
import os
import struct
from collections import OrderedDict
from contextlib import ExitStack, contextmanager
from typing import IO, Any, BinaryIO, Dict, Iterator, Union

from nnbind.core import Tensor
from nnbind.errors import FormatError, TruncatedStreamError

logger = logging.getLogger(__name__)

_MAGIC = b"NNBINDPS"
_VERSION = 1
_CHUNK_SIZE = 1 << 20

PathOrStream = Union[str, os.PathLike, BinaryIO]


def _write_u32(f: IO[bytes], value: int) -> None:
    f.write(struct.pack("<I", int(value)))


def _write_u64(f: IO[bytes], value: int) -> None:
    f.write(struct.pack("<Q", int(value)))


def _read_exact(f: IO[bytes], size: int, what: str) -> bytes:
    # Lengths come from the archive itself; never allocate more than a chunk
    # ahead of the bytes actually present.
    parts = []
    got = 0
    while got < size:
        chunk = f.read(min(size - got, _CHUNK_SIZE))
        if not chunk:
            raise TruncatedStreamError(f"unexpected end of stream while reading {what}: "
                                       f"expected {size} bytes, got {got}")
        parts.append(chunk)
        got += len(chunk)
    return b"".join(parts)


def _read_u32(f: IO[bytes], what: str) -> int:
    (value,) = struct.unpack("<I", _read_exact(f, 4, what))
    return value


def _read_u64(f: IO[bytes], what: str) -> int:
    (value,) = struct.unpack("<Q", _read_exact(f, 8, what))
    return value


@contextmanager
def _open(f: PathOrStream, mode: str) -> Iterator[IO[bytes]]:
    if isinstance(f, (str, os.PathLike)):
        with open(f, mode) as stream:
            yield stream
    else:
        yield f


def _describe(f: PathOrStream) -> str:
    return os.fspath(f) if isinstance(f, (str, os.PathLike)) else type(f).__name__


def save(module: Any, f: PathOrStream) -> None:
    """Write ``module``'s parameters and buffers to ``f``."""
    with ExitStack() as stack:
        entries = module.state_dict()
        for tensor in entries.values():
            stack.callback(tensor.dispose)

        stream = stack.enter_context(_open(f, 'wb'))
        stream.write(_MAGIC)
        _write_u32(stream, _VERSION)
        _write_u32(stream, len(entries))
        for name, tensor in entries.items():
            name_bytes = name.encode('utf-8')
            _write_u32(stream, len(name_bytes))
            stream.write(name_bytes)
            record = tensor._to_record()
            _write_u64(stream, len(record))
            stream.write(record)

    logger.info("Saved %d tensors of %s to %s", len(entries), type(module).__name__, _describe(f))


def load(module: Any, f: PathOrStream) -> None:
    """Overwrite ``module``'s parameters and buffers with the values stored in ``f``.

    Raises:
        FormatError: bad header, or entries that do not match the module's
            state by count, name, shape or dtype.
        TruncatedStreamError: the stream ends inside the archive.
    """
    with ExitStack() as stack:
        targets = module.state_dict()
        for tensor in targets.values():
            stack.callback(tensor.dispose)

        stream = stack.enter_context(_open(f, 'rb'))
        magic = _read_exact(stream, len(_MAGIC), "archive header")
        if magic != _MAGIC:
            raise FormatError(f"not a parameter archive (magic {magic!r})")
        version = _read_u32(stream, "archive version")
        if version != _VERSION:
            raise FormatError(f"unsupported parameter archive version {version}")
        count = _read_u32(stream, "entry count")
        if count != len(targets):
            raise FormatError(
                f"archive holds {count} tensors, {type(module).__name__} expects {len(targets)}"
            )

        loaded: Dict[str, Tensor] = OrderedDict()
        for _ in range(count):
            name_len = _read_u32(stream, "entry name length")
            try:
                name = _read_exact(stream, name_len, "entry name").decode('utf-8')
            except UnicodeDecodeError as exc:
                raise FormatError(f"entry name is not valid UTF-8: {exc}") from exc
            record_len = _read_u64(stream, f"record length of {name!r}")
            record = _read_exact(stream, record_len, f"record of {name!r}")

            if name not in targets:
                raise FormatError(f"unexpected tensor {name!r} in archive")
            if name in loaded:
                raise FormatError(f"duplicate tensor {name!r} in archive")
            value = stack.enter_context(Tensor._from_record(record))
            target = targets[name]
            if value.shape != target.shape:
                raise FormatError(
                    f"shape mismatch for {name!r}: archive has {value.shape}, module has {target.shape}"
                )
            if value.dtype != target.dtype:
                raise FormatError(
                    f"dtype mismatch for {name!r}: archive has {value.dtype}, module has {target.dtype}"
                )
            loaded[name] = value

        for name, value in loaded.items():
            targets[name].copy_(value)

    logger.info("Loaded %d tensors into %s from %s", len(loaded), type(module).__name__, _describe(f))
