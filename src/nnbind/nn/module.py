from collections import OrderedDict
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Type, Union
import ctypes
import os

import numpy as np

from nnbind.core import Parameter, Tensor
from nnbind.core.handle import NativeHandle
from nnbind.core.library import check_for_errors, get_library, out_handle, raise_for_null
from nnbind.errors import FormatError, ShapeError

PARAMETERS = 0
BUFFERS = 1


def _dispose_module(value: int) -> None:
    get_library().THSNN_Module_dispose(value)
    check_for_errors()


def _dispose_boxed(value: int) -> None:
    get_library().THSNN_AnyModule_dispose(value)
    check_for_errors()


def construct(symbol: str, *args) -> Tuple[int, int]:
    """Call a ``THSNN_*_ctor`` entry point; returns (handle, boxed handle)."""
    boxed, boxed_ptr = out_handle()
    handle = getattr(get_library(), symbol)(*args, boxed_ptr)
    if not handle:
        raise_for_null()
    return handle, boxed.value


class Module:
    """Owner of a native layer handle and its boxed companion.

    A module is usable from construction until ``dispose()``; afterwards every
    operation raises ``UseAfterDisposeError``. Training mode, parameters and
    buffers live in the engine, the wrapper only forwards to it.
    """
    # Name of the native operator; forward calls ``THSNN_<_op>_forward``
    _op: str = ''

    def __init__(self, handle: int, boxed_handle: int = 0):
        self._handle = NativeHandle(handle, _dispose_module, kind='module')
        self._boxed_handle = (NativeHandle(boxed_handle, _dispose_boxed, kind='boxed module')
                              if boxed_handle else None)
        self._modules: Dict[str, 'Module'] = OrderedDict()

    # Lifetime

    @property
    def handle(self) -> int:
        return self._handle.value

    @property
    def boxed_handle(self) -> int:
        if self._boxed_handle is None:
            raise RuntimeError(f"{type(self).__name__} has no boxed handle")
        return self._boxed_handle.value

    @property
    def disposed(self) -> bool:
        return self._handle.closed

    def dispose(self) -> None:
        for module in self._modules.values():
            module.dispose()
        if self._boxed_handle is not None:
            self._boxed_handle.close()
        self._handle.close()

    def __enter__(self) -> 'Module':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    # Forward

    def _check_input(self, input: Tensor) -> None:
        """Raise ``ShapeError`` when ``input`` violates this operator's shape rule."""

    def forward(self, input: Tensor) -> Tensor:
        handle = self.handle
        self._check_input(input)
        res = getattr(get_library(), f"THSNN_{self._op}_forward")(handle, input.handle)
        if not res:
            raise_for_null()
        return Tensor(res)

    def __call__(self, input: Tensor) -> Tensor:
        return self.forward(input)

    def _require_dims(self, input: Tensor, *allowed: int) -> int:
        ndim = input.ndim
        if ndim not in allowed:
            expected = ' or '.join(str(d) for d in allowed)
            raise ShapeError(
                f"Invalid number of dimensions for {type(self).__name__} argument: "
                f"{ndim} (expected {expected})"
            )
        return ndim

    # Tensors

    def _named_tensors(self, kind: int, cls: Type[Tensor]) -> Iterator[Tuple[str, Tensor]]:
        """Resolves the handle and the count now; tensor handles are created lazily."""
        lib = get_library()
        handle = self.handle
        count = lib.THSNN_Module_tensor_count(handle, kind)
        check_for_errors()

        def tensors() -> Iterator[Tuple[str, Tensor]]:
            for index in range(count):
                length = lib.THSNN_Module_tensor_name_length(handle, kind, index)
                check_for_errors()
                name_buf = ctypes.create_string_buffer(length + 1)
                res = lib.THSNN_Module_tensor_at(handle, kind, index, name_buf, len(name_buf))
                if not res:
                    raise_for_null()
                yield name_buf.value.decode('utf-8'), cls(res)

        return tensors()

    def named_parameters(self) -> Iterator[Tuple[str, Parameter]]:
        return self._named_tensors(PARAMETERS, Parameter)

    def parameters(self) -> Iterator[Parameter]:
        return (param for _, param in self.named_parameters())

    def named_buffers(self) -> Iterator[Tuple[str, Tensor]]:
        return self._named_tensors(BUFFERS, Tensor)

    def buffers(self) -> Iterator[Tensor]:
        return (buf for _, buf in self.named_buffers())

    def named_children(self) -> Iterator[Tuple[str, 'Module']]:
        yield from self._modules.items()

    def children(self) -> Iterator['Module']:
        yield from self._modules.values()

    def state_dict(self) -> Dict[str, Tensor]:
        state_dict: Dict[str, Tensor] = OrderedDict()
        state_dict.update(self.named_parameters())
        state_dict.update(self.named_buffers())
        return state_dict

    def load_state_dict(self, state_dict: Mapping[str, Any], strict: bool = True) -> 'Module':
        own = self.state_dict()
        try:
            if strict:
                missing = [name for name in own if name not in state_dict]
                unexpected = [name for name in state_dict if name not in own]
                if missing or unexpected:
                    raise FormatError(
                        f"Error(s) in loading state_dict for {type(self).__name__}: "
                        f"missing keys {missing}, unexpected keys {unexpected}"
                    )
            matched = [(name, target, state_dict[name]) for name, target in own.items() if name in state_dict]
            for name, target, value in matched:
                shape = getattr(value, "shape", None)
                if shape is not None and tuple(shape) != target.shape:
                    raise FormatError(
                        f"size mismatch for {name}: copying a param with shape {tuple(shape)}, "
                        f"the shape in current model is {target.shape}"
                    )
                dtype = value.dtype if isinstance(value, Tensor) else np.asarray(value).dtype
                if not np.can_cast(dtype, target.dtype, casting='same_kind'):
                    raise FormatError(
                        f"dtype mismatch for {name}: cannot copy {dtype} into {target.dtype}"
                    )
            for _, target, value in matched:
                target.copy_(value)
        finally:
            for tensor in own.values():
                tensor.dispose()
        return self

    # Mode

    def train(self, mode: bool = True) -> 'Module':
        get_library().THSNN_Module_train(self.handle, bool(mode))
        check_for_errors()
        return self

    def eval(self) -> 'Module':
        return self.train(False)

    @property
    def training(self) -> bool:
        on = get_library().THSNN_Module_is_training(self.handle)
        check_for_errors()
        return bool(on)

    # Persistence

    def save(self, f: Union[str, os.PathLike, Any]) -> 'Module':
        from nnbind import serialization
        serialization.save(self, f)
        return self

    def load(self, f: Union[str, os.PathLike, Any]) -> 'Module':
        from nnbind import serialization
        serialization.load(self, f)
        return self

    # Representation

    def extra_repr(self) -> str:
        return ''

    def __repr__(self) -> str:
        if self.disposed:
            return f"{type(self).__name__}(<disposed>)"
        lines = [f"({name}): {module!r}".replace('\n', '\n  ') for name, module in self._modules.items()]
        if not lines:
            return f"{type(self).__name__}({self.extra_repr()})"
        return f"{type(self).__name__}(\n  " + '\n  '.join(lines) + "\n)"


def _as_tuple(value: Optional[Union[int, Tuple[int, ...]]]) -> Optional[Tuple[int, ...]]:
    if value is None:
        return None
    if isinstance(value, int):
        return (value,)
    return tuple(int(v) for v in value)
