"""Layer objects owned by the reference engine."""
from collections import OrderedDict
from typing import Iterator, List, Optional, Tuple

import numpy as np

from . import kernels, rng

PARAMETERS = 0
BUFFERS = 1


class EngineModule:
    def __init__(self):
        self.parameters: 'OrderedDict[str, np.ndarray]' = OrderedDict()
        self.buffers: 'OrderedDict[str, np.ndarray]' = OrderedDict()
        self.children: 'OrderedDict[str, EngineModule]' = OrderedDict()
        self.training = True

    def named_tensors(self, kind: int, prefix: str = '') -> Iterator[Tuple[str, np.ndarray]]:
        own = self.parameters if kind == PARAMETERS else self.buffers
        for name, array in own.items():
            yield prefix + name, array
        for name, child in self.children.items():
            yield from child.named_tensors(kind, prefix + name + '.')

    def tensor_list(self, kind: int) -> List[Tuple[str, np.ndarray]]:
        if kind not in (PARAMETERS, BUFFERS):
            raise ValueError(f"unknown tensor kind {kind}")
        return list(self.named_tensors(kind))

    def train(self, mode: bool) -> None:
        self.training = mode
        for child in self.children.values():
            child.train(mode)

    def forward(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class AnyModule:
    """Boxed reference used when a module is attached to a container."""
    __slots__ = ('module',)

    def __init__(self, module: EngineModule):
        self.module = module


def _expand(values: Tuple[int, ...], nd: int, name: str, default: Optional[Tuple[int, ...]] = None) -> Tuple[int, ...]:
    if not values:
        if default is None:
            raise ValueError(f"{name} is required")
        return default
    if len(values) == 1:
        values = values * nd
    if len(values) != nd:
        raise ValueError(f"{name} must have 1 or {nd} elements, got {len(values)}")
    return tuple(values)


def _check_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


class Linear(EngineModule):
    def __init__(self, in_features: int, out_features: int, bias: bool):
        super().__init__()
        _check_positive('in_features', in_features)
        _check_positive('out_features', out_features)
        bound = 1.0 / np.sqrt(in_features)
        self.parameters['weight'] = rng.uniform(-bound, bound, (out_features, in_features))
        if bias:
            self.parameters['bias'] = rng.uniform(-bound, bound, (out_features,))

    def forward(self, x):
        return kernels.linear(x, self.parameters['weight'], self.parameters.get('bias'))


class Conv(EngineModule):
    def __init__(self, nd: int, in_channels: int, out_channels: int, kernel_size, stride, padding, bias: bool):
        super().__init__()
        _check_positive('in_channels', in_channels)
        _check_positive('out_channels', out_channels)
        self.kernel_size = _expand(kernel_size, nd, 'kernel_size')
        self.stride = _expand(stride, nd, 'stride', (1,) * nd)
        self.padding = _expand(padding, nd, 'padding', (0,) * nd)
        for k in self.kernel_size + self.stride:
            _check_positive('kernel_size and stride', k)
        fan_in = in_channels * int(np.prod(self.kernel_size))
        bound = 1.0 / np.sqrt(fan_in)
        self.parameters['weight'] = rng.uniform(
            -bound, bound, (out_channels, in_channels) + self.kernel_size)
        if bias:
            self.parameters['bias'] = rng.uniform(-bound, bound, (out_channels,))

    def forward(self, x):
        return kernels.conv(x, self.parameters['weight'], self.parameters.get('bias'),
                            self.stride, self.padding)


class _Norm(EngineModule):
    def __init__(self, num_features: int, eps: float, momentum: float, affine: bool, track_running_stats: bool):
        super().__init__()
        _check_positive('num_features', num_features)
        if eps <= 0:
            raise ValueError(f"eps must be positive, got {eps}")
        self.num_features = num_features
        self.eps = eps
        self.momentum = momentum
        self.track_running_stats = track_running_stats
        if affine:
            self.parameters['weight'] = np.ones(num_features, dtype=np.float32)
            self.parameters['bias'] = np.zeros(num_features, dtype=np.float32)
        if track_running_stats:
            self.buffers['running_mean'] = np.zeros(num_features, dtype=np.float32)
            self.buffers['running_var'] = np.ones(num_features, dtype=np.float32)
            self.buffers['num_batches_tracked'] = np.zeros((), dtype=np.int64)

    def _check_channels(self, x: np.ndarray) -> None:
        if x.shape[1] != self.num_features:
            raise ValueError(f"expected {self.num_features} channels, got {x.shape[1]}")

    def _update_running_stats(self, mean: np.ndarray, var: np.ndarray, count: int) -> None:
        unbiased = var * count / max(count - 1, 1)
        running_mean = self.buffers['running_mean']
        running_var = self.buffers['running_var']
        running_mean *= 1 - self.momentum
        running_mean += self.momentum * mean
        running_var *= 1 - self.momentum
        running_var += self.momentum * unbiased
        self.buffers['num_batches_tracked'] += 1

    def _affine(self):
        return self.parameters.get('weight'), self.parameters.get('bias')


class BatchNorm(_Norm):
    def forward(self, x):
        self._check_channels(x)
        c = self.num_features
        channel_shape = (1, c) + (1,) * (x.ndim - 2)
        if self.training or not self.track_running_stats:
            rows = np.moveaxis(x, 1, 0).reshape(c, -1)
            mean, var = kernels.row_moments(rows)
            if self.training and self.track_running_stats:
                self._update_running_stats(mean, var, rows.shape[1])
        else:
            mean = self.buffers['running_mean'].astype(np.float64)
            var = self.buffers['running_var'].astype(np.float64)
        weight, bias = self._affine()
        return kernels.normalize(x, mean, var, self.eps, weight, bias, channel_shape)


class InstanceNorm(_Norm):
    def forward(self, x):
        self._check_channels(x)
        n, c = x.shape[:2]
        if self.training or not self.track_running_stats:
            rows = x.reshape(n * c, -1)
            mean, var = kernels.row_moments(rows)
            mean, var = mean.reshape(n, c), var.reshape(n, c)
            if self.training and self.track_running_stats:
                self._update_running_stats(mean.mean(axis=0), var.mean(axis=0), rows.shape[1])
            stat_shape = (n, c) + (1,) * (x.ndim - 2)
        else:
            mean = self.buffers['running_mean'].astype(np.float64)
            var = self.buffers['running_var'].astype(np.float64)
            stat_shape = (1, c) + (1,) * (x.ndim - 2)
        weight, bias = self._affine()
        out = (x - mean.reshape(stat_shape)) / np.sqrt(var.reshape(stat_shape) + self.eps)
        if weight is not None:
            affine_shape = (1, c) + (1,) * (x.ndim - 2)
            out = out * weight.reshape(affine_shape) + bias.reshape(affine_shape)
        return out.astype(x.dtype, copy=False)


class LayerNorm(EngineModule):
    def __init__(self, normalized_shape: Tuple[int, ...], eps: float, elementwise_affine: bool):
        super().__init__()
        if not normalized_shape:
            raise ValueError("normalized_shape must not be empty")
        for dim in normalized_shape:
            _check_positive('normalized_shape', dim)
        self.normalized_shape = normalized_shape
        self.eps = eps
        if elementwise_affine:
            self.parameters['weight'] = np.ones(normalized_shape, dtype=np.float32)
            self.parameters['bias'] = np.zeros(normalized_shape, dtype=np.float32)

    def forward(self, x):
        k = len(self.normalized_shape)
        if x.shape[-k:] != self.normalized_shape:
            raise ValueError(f"trailing dimensions {x.shape[-k:]} do not match {self.normalized_shape}")
        rows = x.reshape(-1, int(np.prod(self.normalized_shape)))
        mean, var = kernels.row_moments(rows)
        stat_shape = x.shape[:-k] + (1,) * k
        return kernels.normalize(x, mean, var, self.eps, self.parameters.get('weight'),
                                 self.parameters.get('bias'), stat_shape)


class Pool(EngineModule):
    def __init__(self, mode: str, nd: int, kernel_size, stride, padding, count_include_pad: bool = True):
        super().__init__()
        self.mode = mode
        self.kernel_size = _expand(kernel_size, nd, 'kernel_size')
        self.stride = _expand(stride, nd, 'stride', self.kernel_size)
        self.padding = _expand(padding, nd, 'padding', (0,) * nd)
        self.count_include_pad = count_include_pad
        for k in self.kernel_size + self.stride:
            _check_positive('kernel_size and stride', k)
        for k, p in zip(self.kernel_size, self.padding):
            if p < 0 or p > k // 2:
                raise ValueError(f"padding should be at most half of kernel size, got {p} for {k}")

    def forward(self, x):
        return kernels.pool(x, self.kernel_size, self.stride, self.padding,
                            self.mode, self.count_include_pad)


class Dropout(EngineModule):
    def __init__(self, p: float):
        super().__init__()
        if p < 0 or p > 1:
            raise ValueError(f"dropout probability has to be between 0 and 1, but got {p}")
        self.p = p

    def forward(self, x):
        if not self.training or self.p == 0:
            return x.copy()
        if self.p == 1:
            return np.zeros_like(x)
        mask = rng.bernoulli(1 - self.p, x.shape)
        return (x * mask / (1 - self.p)).astype(x.dtype, copy=False)


class Activation(EngineModule):
    def __init__(self, fn):
        super().__init__()
        self.fn = fn

    def forward(self, x):
        return self.fn(x).astype(x.dtype, copy=False)


def relu(x):
    return np.maximum(x, 0)


def sigmoid(x):
    return 1.0 / (1.0 + np.exp(-x))


class Sequential(EngineModule):
    def push_back(self, name: str, module: EngineModule) -> None:
        if not name or '.' in name:
            raise ValueError(f"invalid module name {name!r}")
        if name in self.children:
            raise ValueError(f"duplicate module name {name!r}")
        if module is self:
            raise ValueError("a sequential cannot contain itself")
        module.train(self.training)
        self.children[name] = module

    def forward(self, x):
        if not self.children:
            return x.copy()
        for child in self.children.values():
            x = child.forward(x)
        return x
