"""THSNN_* entry points.

Every operator exports ``THSNN_<Op>_ctor`` and ``THSNN_<Op>_forward``. The
forward entry points are identical and generated from the operator table.
"""
import numpy as np

from . import heap, modules
from .abi import export, read_longs, write_handle
from .modules import AnyModule, EngineModule


def _module(handle: int) -> EngineModule:
    return heap.resolve(handle, EngineModule)


def _register(module: EngineModule, out_boxed) -> int:
    handle = heap.allocate(module)
    write_handle(out_boxed, heap.allocate(AnyModule(module)))
    return handle


def _forward(module_handle: int, tensor_handle: int) -> int:
    module = _module(module_handle)
    x = heap.resolve(tensor_handle, np.ndarray)
    return heap.allocate(np.require(module.forward(x), requirements='C'))


OPERATORS = (
    "Linear", "Conv1d", "Conv2d",
    "BatchNorm1d", "BatchNorm2d", "BatchNorm3d",
    "InstanceNorm1d", "InstanceNorm2d", "InstanceNorm3d",
    "LayerNorm",
    "MaxPool1d", "MaxPool2d", "MaxPool3d",
    "AvgPool1d", "AvgPool2d", "AvgPool3d",
    "Dropout", "ReLU", "Sigmoid", "Tanh",
    "Sequential",
)

for _op in OPERATORS:
    export(f"THSNN_{_op}_forward")(_forward)


# Constructors

@export("THSNN_Linear_ctor")
def linear_ctor(in_features: int, out_features: int, bias: bool, out_boxed) -> int:
    return _register(modules.Linear(in_features, out_features, bool(bias)), out_boxed)


def _conv_ctor(nd: int):
    def ctor(in_channels, out_channels, kernel_ptr, kernel_len, stride_ptr, stride_len,
             padding_ptr, padding_len, bias, out_boxed):
        module = modules.Conv(nd, in_channels, out_channels,
                              read_longs(kernel_ptr, kernel_len),
                              read_longs(stride_ptr, stride_len),
                              read_longs(padding_ptr, padding_len), bool(bias))
        return _register(module, out_boxed)
    return ctor


def _norm_ctor(cls):
    def ctor(features, eps, momentum, affine, track_running_stats, out_boxed):
        module = cls(features, eps, momentum, bool(affine), bool(track_running_stats))
        return _register(module, out_boxed)
    return ctor


def _max_pool_ctor(nd: int):
    def ctor(kernel_ptr, kernel_len, stride_ptr, stride_len, padding_ptr, padding_len, out_boxed):
        module = modules.Pool('max', nd, read_longs(kernel_ptr, kernel_len),
                              read_longs(stride_ptr, stride_len),
                              read_longs(padding_ptr, padding_len))
        return _register(module, out_boxed)
    return ctor


def _avg_pool_ctor(nd: int):
    def ctor(kernel_ptr, kernel_len, stride_ptr, stride_len, padding_ptr, padding_len,
             count_include_pad, out_boxed):
        module = modules.Pool('avg', nd, read_longs(kernel_ptr, kernel_len),
                              read_longs(stride_ptr, stride_len),
                              read_longs(padding_ptr, padding_len), bool(count_include_pad))
        return _register(module, out_boxed)
    return ctor


for _nd in (1, 2, 3):
    export(f"THSNN_BatchNorm{_nd}d_ctor")(_norm_ctor(modules.BatchNorm))
    export(f"THSNN_InstanceNorm{_nd}d_ctor")(_norm_ctor(modules.InstanceNorm))
    export(f"THSNN_MaxPool{_nd}d_ctor")(_max_pool_ctor(_nd))
    export(f"THSNN_AvgPool{_nd}d_ctor")(_avg_pool_ctor(_nd))
for _nd in (1, 2):
    export(f"THSNN_Conv{_nd}d_ctor")(_conv_ctor(_nd))


@export("THSNN_LayerNorm_ctor")
def layer_norm_ctor(shape_ptr, shape_len: int, eps: float, elementwise_affine: bool, out_boxed) -> int:
    module = modules.LayerNorm(read_longs(shape_ptr, shape_len), eps, bool(elementwise_affine))
    return _register(module, out_boxed)


@export("THSNN_Dropout_ctor")
def dropout_ctor(p: float, out_boxed) -> int:
    return _register(modules.Dropout(p), out_boxed)


@export("THSNN_ReLU_ctor")
def relu_ctor(out_boxed) -> int:
    return _register(modules.Activation(modules.relu), out_boxed)


@export("THSNN_Sigmoid_ctor")
def sigmoid_ctor(out_boxed) -> int:
    return _register(modules.Activation(modules.sigmoid), out_boxed)


@export("THSNN_Tanh_ctor")
def tanh_ctor(out_boxed) -> int:
    return _register(modules.Activation(np.tanh), out_boxed)


@export("THSNN_Sequential_ctor")
def sequential_ctor(out_boxed) -> int:
    return _register(modules.Sequential(), out_boxed)


@export("THSNN_Sequential_push_back")
def sequential_push_back(module_handle: int, name: bytes, boxed_handle: int) -> int:
    sequential = heap.resolve(module_handle, modules.Sequential)
    boxed = heap.resolve(boxed_handle, AnyModule)
    sequential.push_back(name.decode('utf-8'), boxed.module)
    return 1


# Generic module queries

@export("THSNN_Module_dispose")
def module_dispose(handle: int) -> int:
    _module(handle)
    heap.release(handle)
    return 1


@export("THSNN_AnyModule_dispose")
def any_module_dispose(handle: int) -> int:
    heap.resolve(handle, AnyModule)
    heap.release(handle)
    return 1


@export("THSNN_Module_train")
def module_train(handle: int, on: bool) -> int:
    _module(handle).train(bool(on))
    return 1


@export("THSNN_Module_is_training")
def module_is_training(handle: int) -> int:
    return int(_module(handle).training)


@export("THSNN_Module_tensor_count")
def module_tensor_count(handle: int, kind: int) -> int:
    return len(_module(handle).tensor_list(kind))


@export("THSNN_Module_tensor_name_length")
def module_tensor_name_length(handle: int, kind: int, index: int) -> int:
    name, _ = _module(handle).tensor_list(kind)[index]
    return len(name.encode('utf-8'))


@export("THSNN_Module_tensor_at")
def module_tensor_at(handle: int, kind: int, index: int, name_buf, buf_len: int) -> int:
    """New handle aliasing the module's storage; the name goes to ``name_buf``."""
    name, array = _module(handle).tensor_list(kind)[index]
    encoded = name.encode('utf-8')
    if len(encoded) >= buf_len:
        raise ValueError(f"name buffer of {buf_len} bytes is too small for {name!r}")
    name_buf.value = encoded
    return heap.allocate(array)
