import gc

import pytest
import numpy as np

import nnbind
from nnbind.core import Tensor


@pytest.fixture(autouse=True)
def seeded():
    nnbind.manual_seed(0)
    np.random.seed(0)


@pytest.fixture
def random_tensor():
    return Tensor.from_numpy(np.random.randn(3, 3).astype(np.float32))


@pytest.fixture
def archive_path(tmp_path):
    return tmp_path / ".model.ts"


@pytest.fixture
def no_leaks():
    """Fails the test if it leaves native handles behind."""
    gc.collect()
    before = nnbind.live_handles()
    yield
    gc.collect()
    assert nnbind.live_handles() == before
