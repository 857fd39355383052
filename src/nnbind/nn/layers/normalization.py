from typing import Tuple, Union

from nnbind.core import Tensor
from nnbind.core.library import long_array
from nnbind.errors import ShapeError
from nnbind.nn.module import Module, _as_tuple, construct


class _NormBase(Module):
    """Shared constructor of the batch and instance normalization layers.

    Args:
        num_features: C from an expected input of size (N, C, ...).
        eps: Value added to the denominator for numerical stability. Default: 1e-5
        momentum: Factor used for the running_mean and running_var
            computation. Default: 0.1
        affine: When True the module has learnable affine parameters
            ``weight`` and ``bias``. Default: True
        track_running_stats: When True the module keeps ``running_mean``,
            ``running_var`` and ``num_batches_tracked`` buffers and uses them
            in eval mode; when False batch statistics are used in both
            training and eval modes. Default: True
    """
    # Accepted input dimensionalities
    _input_dims: Tuple[int, ...] = ()

    def __init__(
        self,
        num_features: int,
        eps: float = 1e-5,
        momentum: float = 0.1,
        affine: bool = True,
        track_running_stats: bool = True,
    ):
        self.num_features = num_features
        self.eps = eps
        self.momentum = momentum
        self.affine = affine
        self.track_running_stats = track_running_stats
        super().__init__(*construct(
            f"THSNN_{self._op}_ctor", num_features, float(eps), float(momentum),
            bool(affine), bool(track_running_stats),
        ))

    def _check_input(self, input: Tensor) -> None:
        self._require_dims(input, *self._input_dims)

    def extra_repr(self) -> str:
        return (f'{self.num_features}, eps={self.eps}, momentum={self.momentum}, '
                f'affine={self.affine}, track_running_stats={self.track_running_stats}')


class BatchNorm1d(_NormBase):
    """Applies Batch Normalization over a 2D or 3D input."""
    _op = 'BatchNorm1d'
    _input_dims = (2, 3)


class BatchNorm2d(_NormBase):
    """Applies Batch Normalization over a 4D input (N, C, H, W)."""
    _op = 'BatchNorm2d'
    _input_dims = (4,)


class BatchNorm3d(_NormBase):
    """Applies Batch Normalization over a 5D input (N, C, D, H, W)."""
    _op = 'BatchNorm3d'
    _input_dims = (5,)


class InstanceNorm1d(_NormBase):
    """Applies Instance Normalization over a 3D input (N, C, L)."""
    _op = 'InstanceNorm1d'
    _input_dims = (3,)


class InstanceNorm2d(_NormBase):
    """Applies Instance Normalization over a 4D input (N, C, H, W)."""
    _op = 'InstanceNorm2d'
    _input_dims = (4,)


class InstanceNorm3d(_NormBase):
    """Applies Instance Normalization over a 5D input (a mini-batch of 3D
    inputs with additional channel dimension) as described in the paper
    Instance Normalization: The Missing Ingredient for Fast Stylization.
    """
    _op = 'InstanceNorm3d'
    _input_dims = (5,)


class LayerNorm(Module):
    _op = 'LayerNorm'

    def __init__(
        self,
        normalized_shape: Union[int, Tuple[int, ...]],
        eps: float = 1e-5,
        elementwise_affine: bool = True,
    ):
        self.normalized_shape = _as_tuple(normalized_shape)
        self.eps = eps
        self.elementwise_affine = elementwise_affine
        shape, shape_len = long_array(self.normalized_shape)
        super().__init__(*construct(
            "THSNN_LayerNorm_ctor", shape, shape_len, float(eps), bool(elementwise_affine),
        ))

    def _check_input(self, input: Tensor) -> None:
        shape = input.shape
        k = len(self.normalized_shape)
        if len(shape) < k or shape[len(shape) - k:] != self.normalized_shape:
            raise ShapeError(
                f"LayerNorm expects trailing dimensions {self.normalized_shape}, got shape {shape}"
            )

    def extra_repr(self) -> str:
        return (f'{self.normalized_shape}, eps={self.eps}, '
                f'elementwise_affine={self.elementwise_affine}')
