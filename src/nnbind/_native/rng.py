"""Engine-wide random generator."""
import threading
from typing import Optional, Tuple

import numpy as np

_lock = threading.Lock()
_generator = np.random.default_rng()


def manual_seed(seed: Optional[int]) -> None:
    global _generator
    with _lock:
        _generator = np.random.default_rng(seed)


def uniform(low: float, high: float, shape: Tuple[int, ...], dtype=np.float32) -> np.ndarray:
    with _lock:
        return _generator.uniform(low, high, shape).astype(dtype)


def normal(shape: Tuple[int, ...], dtype=np.float32) -> np.ndarray:
    with _lock:
        return _generator.standard_normal(shape).astype(dtype)


def bernoulli(p: float, shape: Tuple[int, ...]) -> np.ndarray:
    with _lock:
        return (_generator.random(shape) < p).astype(np.float64)
