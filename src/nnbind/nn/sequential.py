from typing import Iterator, Tuple, Union
from collections import OrderedDict
from itertools import islice
import operator

from nnbind.core import Tensor
from nnbind.core.library import check_for_errors, get_library
from nnbind.nn.module import Module, construct


class Sequential(Module):
    """Native container that runs its children in insertion order.

    Accepts modules (named ``"0"``, ``"1"``, ...), ``(name, module)`` pairs or
    a single ``OrderedDict``. Children are attached through their boxed
    handles and become owned by the container: disposing it disposes them.
    """
    _op = 'Sequential'

    def __init__(self, *args: Union[Module, Tuple[str, Module], 'OrderedDict[str, Module]']):
        super().__init__(*construct("THSNN_Sequential_ctor"))
        if len(args) == 1 and isinstance(args[0], OrderedDict):
            items = list(args[0].items())
        else:
            items = [arg if isinstance(arg, tuple) else (str(idx), arg)
                     for idx, arg in enumerate(args)]
        for name, module in items:
            self.add_module(name, module)

    def add_module(self, name: str, module: Module) -> None:
        if not isinstance(module, Module):
            raise TypeError(f"{name} is not a Module subclass")
        if name in self._modules:
            raise KeyError(f"module {name!r} already exists")
        get_library().THSNN_Sequential_push_back(self.handle, name.encode('utf-8'), module.boxed_handle)
        check_for_errors()
        self._modules[name] = module

    def append(self, module: Module) -> 'Sequential':
        self.add_module(str(len(self)), module)
        return self

    def _get_item_by_idx(self, iterator, idx) -> Module:
        size = len(self)
        idx = operator.index(idx)
        if not -size <= idx < size:
            raise IndexError('index {} is out of range'.format(idx))
        idx %= size
        return next(islice(iterator, idx, None))

    def __getitem__(self, idx: Union[int, str]) -> Module:
        if isinstance(idx, str):
            return self._modules[idx]
        return self._get_item_by_idx(self._modules.values(), idx)

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def _check_input(self, input: Tensor) -> None:
        if self._modules:
            next(iter(self._modules.values()))._check_input(input)
