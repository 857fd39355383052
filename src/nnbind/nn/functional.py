"""One-shot versions of the layer catalog.

Each function builds the module, applies it once and disposes it again, so
nothing but the returned tensor outlives the call.
"""
from typing import Optional, Tuple, Union

from nnbind.core import Tensor
from nnbind.nn.activations import ReLU, Sigmoid, Tanh
from nnbind.nn.layers import (
    AvgPool1d, AvgPool2d, AvgPool3d,
    BatchNorm1d, BatchNorm2d, BatchNorm3d,
    InstanceNorm1d, InstanceNorm2d, InstanceNorm3d,
    LayerNorm,
    MaxPool1d, MaxPool2d, MaxPool3d,
)
from nnbind.nn.module import Module

_Size = Union[int, Tuple[int, ...]]


def _apply(module: Module, x: Tensor) -> Tensor:
    with module:
        return module.forward(x)


def instance_norm1d(x: Tensor, features: int, eps: float = 1e-5, momentum: float = 0.1,
                    affine: bool = True, track_running_stats: bool = True) -> Tensor:
    return _apply(InstanceNorm1d(features, eps, momentum, affine, track_running_stats), x)


def instance_norm2d(x: Tensor, features: int, eps: float = 1e-5, momentum: float = 0.1,
                    affine: bool = True, track_running_stats: bool = True) -> Tensor:
    return _apply(InstanceNorm2d(features, eps, momentum, affine, track_running_stats), x)


def instance_norm3d(x: Tensor, features: int, eps: float = 1e-5, momentum: float = 0.1,
                    affine: bool = True, track_running_stats: bool = True) -> Tensor:
    """Applies Instance Normalization over a 5D input (N, C, D, H, W).

    Args:
        x: The input tensor.
        features: C from an expected input of size (N, C, D, H, W).
        eps: A value added to the denominator for numerical stability.
        momentum: The value used for the running_mean and running_var computation.
        affine: When True the module has learnable affine parameters.
        track_running_stats: When True the module tracks the running mean and variance.
    """
    return _apply(InstanceNorm3d(features, eps, momentum, affine, track_running_stats), x)


def batch_norm1d(x: Tensor, features: int, eps: float = 1e-5) -> Tensor:
    return _apply(BatchNorm1d(features, eps, track_running_stats=False), x)


def batch_norm2d(x: Tensor, features: int, eps: float = 1e-5) -> Tensor:
    return _apply(BatchNorm2d(features, eps, track_running_stats=False), x)


def batch_norm3d(x: Tensor, features: int, eps: float = 1e-5) -> Tensor:
    return _apply(BatchNorm3d(features, eps, track_running_stats=False), x)


def layer_norm(x: Tensor, normalized_shape: _Size, eps: float = 1e-5) -> Tensor:
    return _apply(LayerNorm(normalized_shape, eps), x)


def max_pool1d(x: Tensor, kernel_size: _Size, stride: Optional[_Size] = None, padding: _Size = 0) -> Tensor:
    return _apply(MaxPool1d(kernel_size, stride, padding), x)


def max_pool2d(x: Tensor, kernel_size: _Size, stride: Optional[_Size] = None, padding: _Size = 0) -> Tensor:
    return _apply(MaxPool2d(kernel_size, stride, padding), x)


def max_pool3d(x: Tensor, kernel_size: _Size, stride: Optional[_Size] = None, padding: _Size = 0) -> Tensor:
    return _apply(MaxPool3d(kernel_size, stride, padding), x)


def avg_pool1d(x: Tensor, kernel_size: _Size, stride: Optional[_Size] = None, padding: _Size = 0,
               count_include_pad: bool = True) -> Tensor:
    return _apply(AvgPool1d(kernel_size, stride, padding, count_include_pad), x)


def avg_pool2d(x: Tensor, kernel_size: _Size, stride: Optional[_Size] = None, padding: _Size = 0,
               count_include_pad: bool = True) -> Tensor:
    """Applies a 2D average pooling over an input signal composed of several input planes."""
    return _apply(AvgPool2d(kernel_size, stride, padding, count_include_pad), x)


def avg_pool3d(x: Tensor, kernel_size: _Size, stride: Optional[_Size] = None, padding: _Size = 0,
               count_include_pad: bool = True) -> Tensor:
    return _apply(AvgPool3d(kernel_size, stride, padding, count_include_pad), x)


def relu(x: Tensor) -> Tensor:
    return _apply(ReLU(), x)


def sigmoid(x: Tensor) -> Tensor:
    return _apply(Sigmoid(), x)


def tanh(x: Tensor) -> Tensor:
    return _apply(Tanh(), x)
