import numba
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from typing import Optional, Tuple


# Row statistics with Numba; every normalization reduces to this layout
@numba.jit(nopython=True)
def _row_moments(rows: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    n_rows, width = rows.shape
    mean = np.empty(n_rows)
    var = np.empty(n_rows)
    for i in range(n_rows):
        acc = 0.0
        for j in range(width):
            acc += rows[i, j]
        m = acc / width
        sq = 0.0
        for j in range(width):
            d = rows[i, j] - m
            sq += d * d
        mean[i] = m
        var[i] = sq / width
    return mean, var


def row_moments(rows: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Biased mean and variance of each row of a 2-D array."""
    if rows.shape[1] == 0:
        raise ValueError("cannot normalize over an empty dimension")
    return _row_moments(np.ascontiguousarray(rows, dtype=np.float64))


def normalize(x: np.ndarray, mean: np.ndarray, var: np.ndarray, eps: float,
              weight: Optional[np.ndarray], bias: Optional[np.ndarray],
              channel_shape: Tuple[int, ...]) -> np.ndarray:
    out = (x - mean.reshape(channel_shape)) / np.sqrt(var.reshape(channel_shape) + eps)
    if weight is not None:
        out = out * weight.reshape(channel_shape) + bias.reshape(channel_shape)
    return out.astype(x.dtype, copy=False)


def linear(x: np.ndarray, weight: np.ndarray, bias: Optional[np.ndarray]) -> np.ndarray:
    out = x @ weight.T
    if bias is not None:
        out = out + bias
    return out


def _strided(windows: np.ndarray, lead: int, stride: Tuple[int, ...]) -> np.ndarray:
    index = (slice(None),) * lead + tuple(slice(None, None, s) for s in stride)
    return windows[index]


def conv(x: np.ndarray, weight: np.ndarray, bias: Optional[np.ndarray],
         stride: Tuple[int, ...], padding: Tuple[int, ...]) -> np.ndarray:
    nd = weight.ndim - 2
    if any(padding):
        x = np.pad(x, [(0, 0), (0, 0)] + [(p, p) for p in padding])
    spatial = tuple(range(2, 2 + nd))
    windows = sliding_window_view(x, weight.shape[2:], axis=spatial)
    windows = _strided(windows, 2, stride)
    # (N, C, *out, *k) . (O, C, *k) -> (N, *out, O)
    out = np.tensordot(
        windows, weight,
        axes=([1] + list(range(2 + nd, 2 + 2 * nd)), [1] + list(range(2, 2 + nd))),
    )
    out = np.moveaxis(out, -1, 1)
    if bias is not None:
        out = out + bias.reshape((1, -1) + (1,) * nd)
    return out.astype(np.result_type(x, weight), copy=False)


def pool(x: np.ndarray, kernel: Tuple[int, ...], stride: Tuple[int, ...],
         padding: Tuple[int, ...], mode: str, count_include_pad: bool = True) -> np.ndarray:
    nd = len(kernel)
    lead = x.ndim - nd
    spatial = tuple(range(lead, x.ndim))
    reduce_axes = tuple(range(-nd, 0))
    padded = any(padding)
    pad_width = [(0, 0)] * lead + [(p, p) for p in padding]

    if mode == 'max':
        source = np.pad(x, pad_width, constant_values=-np.inf) if padded else x
        windows = _strided(sliding_window_view(source, kernel, axis=spatial), lead, stride)
        return windows.max(axis=reduce_axes).astype(x.dtype, copy=False)

    source = np.pad(x, pad_width) if padded else x
    windows = _strided(sliding_window_view(source, kernel, axis=spatial), lead, stride)
    total = windows.sum(axis=reduce_axes, dtype=np.float64)
    if count_include_pad or not padded:
        out = total / float(np.prod(kernel))
    else:
        ones = np.pad(np.ones(x.shape[lead:]), [(p, p) for p in padding])
        counts = _strided(sliding_window_view(ones, kernel), 0, stride).sum(axis=reduce_axes)
        out = total / counts
    return out.astype(x.dtype, copy=False)
