from typing import Tuple, Union

from nnbind.core import Tensor
from nnbind.core.library import long_array
from nnbind.errors import ShapeError
from nnbind.nn.module import Module, _as_tuple, construct


class _ConvNd(Module):
    _nd: int = 0

    def __init__(self, in_channels: int, out_channels: int,
                 kernel_size: Union[int, Tuple[int, ...]],
                 stride: Union[int, Tuple[int, ...]] = 1,
                 padding: Union[int, Tuple[int, ...]] = 0,
                 bias: bool = True) -> None:
        self.in_channels = in_channels
        self.out_channels = out_channels
        self.kernel_size = _as_tuple(kernel_size)
        self.stride = _as_tuple(stride)
        self.padding = _as_tuple(padding)
        self.has_bias = bias

        kernel, kernel_len = long_array(self.kernel_size)
        strides, strides_len = long_array(self.stride)
        pads, pads_len = long_array(self.padding)
        super().__init__(*construct(
            f"THSNN_{self._op}_ctor", in_channels, out_channels,
            kernel, kernel_len, strides, strides_len, pads, pads_len, bias,
        ))

    def _check_input(self, input: Tensor) -> None:
        self._require_dims(input, self._nd + 2)
        channels = input.shape[1]
        if channels != self.in_channels:
            raise ShapeError(
                f"{type(self).__name__} expects {self.in_channels} input channels, got {channels}"
            )

    def extra_repr(self) -> str:
        return (f'{self.in_channels}, {self.out_channels}, kernel_size={self.kernel_size}, '
                f'stride={self.stride}, padding={self.padding}, bias={self.has_bias}')


class Conv1d(_ConvNd):
    """Applies a 1D convolution over an input of shape (N, C, L)."""
    _op = 'Conv1d'
    _nd = 1


class Conv2d(_ConvNd):
    """Applies a 2D convolution over an input of shape (N, C, H, W)."""
    _op = 'Conv2d'
    _nd = 2
