from .module import Module
from .sequential import Sequential
from .activations import ReLU, Sigmoid, Tanh
from .layers import (
    Linear,
    Conv1d, Conv2d,
    BatchNorm1d, BatchNorm2d, BatchNorm3d,
    InstanceNorm1d, InstanceNorm2d, InstanceNorm3d,
    LayerNorm,
    Dropout,
    MaxPool1d, MaxPool2d, MaxPool3d,
    AvgPool1d, AvgPool2d, AvgPool3d,
)
from . import functional

__all__ = [
    'Module', 'Sequential',
    'ReLU', 'Sigmoid', 'Tanh',
    'Linear',
    'Conv1d', 'Conv2d',
    'BatchNorm1d', 'BatchNorm2d', 'BatchNorm3d',
    'InstanceNorm1d', 'InstanceNorm2d', 'InstanceNorm3d',
    'LayerNorm',
    'Dropout',
    'MaxPool1d', 'MaxPool2d', 'MaxPool3d',
    'AvgPool1d', 'AvgPool2d', 'AvgPool3d',
    'functional',
]
