from nnbind.core import Tensor
from nnbind.errors import ShapeError
from nnbind.nn.module import Module, construct


class Linear(Module):
    """Applies ``y = x W^T + b`` over the last dimension of the input."""
    _op = 'Linear'

    def __init__(self, in_features: int, out_features: int, bias: bool = True):
        self.in_features = in_features
        self.out_features = out_features
        self.has_bias = bias
        super().__init__(*construct("THSNN_Linear_ctor", in_features, out_features, bias))

    def _check_input(self, input: Tensor) -> None:
        shape = input.shape
        if not shape or shape[-1] != self.in_features:
            raise ShapeError(
                f"Linear expects inputs whose last dimension is {self.in_features}, got shape {shape}"
            )

    def extra_repr(self) -> str:
        return (f'in_features={self.in_features}, '
                f'out_features={self.out_features}, '
                f'bias={self.has_bias}')
