from typing import Optional, Tuple, Union

from nnbind.core import Tensor
from nnbind.core.library import long_array
from nnbind.nn.module import Module, _as_tuple, construct


class _PoolNd(Module):
    _nd: int = 0

    def __init__(
        self,
        kernel_size: Union[int, Tuple[int, ...]],
        stride: Optional[Union[int, Tuple[int, ...]]] = None,
        padding: Union[int, Tuple[int, ...]] = 0,
        *extra,
    ):
        self.kernel_size = _as_tuple(kernel_size)
        self.stride = _as_tuple(stride) if stride is not None else self.kernel_size
        self.padding = _as_tuple(padding)

        kernel, kernel_len = long_array(self.kernel_size)
        # an absent stride defaults to the kernel size on the native side
        strides, strides_len = long_array(_as_tuple(stride))
        pads, pads_len = long_array(self.padding)
        super().__init__(*construct(
            f"THSNN_{self._op}_ctor",
            kernel, kernel_len, strides, strides_len, pads, pads_len, *extra,
        ))

    def _check_input(self, input: Tensor) -> None:
        # unbatched (C, *spatial) or batched (N, C, *spatial)
        self._require_dims(input, self._nd + 1, self._nd + 2)

    def extra_repr(self) -> str:
        return f'kernel_size={self.kernel_size}, stride={self.stride}, padding={self.padding}'


class _MaxPoolNd(_PoolNd):
    def __init__(
        self,
        kernel_size: Union[int, Tuple[int, ...]],
        stride: Optional[Union[int, Tuple[int, ...]]] = None,
        padding: Union[int, Tuple[int, ...]] = 0,
    ):
        super().__init__(kernel_size, stride, padding)


class _AvgPoolNd(_PoolNd):
    def __init__(
        self,
        kernel_size: Union[int, Tuple[int, ...]],
        stride: Optional[Union[int, Tuple[int, ...]]] = None,
        padding: Union[int, Tuple[int, ...]] = 0,
        count_include_pad: bool = True,
    ):
        self.count_include_pad = count_include_pad
        super().__init__(kernel_size, stride, padding, bool(count_include_pad))

    def extra_repr(self) -> str:
        return super().extra_repr() + f', count_include_pad={self.count_include_pad}'


class MaxPool1d(_MaxPoolNd):
    """Applies a 1D max pooling over an input signal composed of several input planes."""
    _op = 'MaxPool1d'
    _nd = 1


class MaxPool2d(_MaxPoolNd):
    """Applies a 2D max pooling over an input signal composed of several input planes."""
    _op = 'MaxPool2d'
    _nd = 2


class MaxPool3d(_MaxPoolNd):
    """Applies a 3D max pooling over an input signal composed of several input planes."""
    _op = 'MaxPool3d'
    _nd = 3


class AvgPool1d(_AvgPoolNd):
    """Applies a 1D average pooling over an input signal composed of several input planes."""
    _op = 'AvgPool1d'
    _nd = 1


class AvgPool2d(_AvgPoolNd):
    """Applies a 2D average pooling over an input signal composed of several input planes.

    Args:
        kernel_size: The size of the window.
        stride: The stride of the window. Default value is kernel_size.
        padding: Implicit zero padding added on both sides.
        count_include_pad: When True, include the zero-padding in the
            averaging calculation.
    """
    _op = 'AvgPool2d'
    _nd = 2


class AvgPool3d(_AvgPoolNd):
    """Applies a 3D average pooling over an input signal composed of several input planes."""
    _op = 'AvgPool3d'
    _nd = 3
