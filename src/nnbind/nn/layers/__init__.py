from .linear import Linear
from .conv import Conv1d, Conv2d
from .normalization import (
    BatchNorm1d, BatchNorm2d, BatchNorm3d,
    InstanceNorm1d, InstanceNorm2d, InstanceNorm3d,
    LayerNorm,
)
from .dropout import Dropout
from .pooling import MaxPool1d, MaxPool2d, MaxPool3d, AvgPool1d, AvgPool2d, AvgPool3d

__all__ = [
    'Linear',
    'Conv1d', 'Conv2d',
    'BatchNorm1d', 'BatchNorm2d', 'BatchNorm3d',
    'InstanceNorm1d', 'InstanceNorm2d', 'InstanceNorm3d',
    'LayerNorm',
    'Dropout',
    'MaxPool1d', 'MaxPool2d', 'MaxPool3d',
    'AvgPool1d', 'AvgPool2d', 'AvgPool3d',
]
