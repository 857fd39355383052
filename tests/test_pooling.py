import numpy as np
import pytest

import nnbind
from nnbind.core import Tensor
from nnbind.errors import AllocationError, ShapeError
from nnbind.nn import AvgPool1d, AvgPool2d, AvgPool3d, MaxPool1d, MaxPool2d, MaxPool3d


class TestAvgPool:
    def test_avg_pool_2d_default_stride(self):
        x = np.arange(16, dtype=np.float32).reshape(1, 1, 4, 4)
        pool = AvgPool2d(2)
        out = pool(Tensor.from_numpy(x)).to_numpy()
        expected = np.array([[[[2.5, 4.5], [10.5, 12.5]]]], dtype=np.float32)
        np.testing.assert_allclose(out, expected)
        assert pool.stride == (2,)

    def test_avg_pool_2d_explicit_stride(self):
        x = np.random.randn(2, 3, 5, 5).astype(np.float32)
        pool = AvgPool2d((3, 3), stride=(1, 2))
        out = pool(Tensor.from_numpy(x)).to_numpy()
        assert out.shape == (2, 3, 3, 2)
        np.testing.assert_allclose(out[0, 0, 0, 1], x[0, 0, 0:3, 2:5].mean(), rtol=1e-5)

    def test_count_include_pad(self):
        x = np.ones((1, 1, 2, 2), dtype=np.float32)
        with_pad = AvgPool2d(2, stride=1, padding=1)(Tensor.from_numpy(x)).to_numpy()
        without_pad = AvgPool2d(2, stride=1, padding=1, count_include_pad=False)(
            Tensor.from_numpy(x)).to_numpy()
        assert with_pad[0, 0, 0, 0] == pytest.approx(0.25)
        np.testing.assert_allclose(without_pad, np.ones((1, 1, 3, 3)))

    def test_avg_pool_1d_and_3d(self):
        x1 = np.arange(6, dtype=np.float32).reshape(1, 1, 6)
        np.testing.assert_allclose(AvgPool1d(3)(Tensor.from_numpy(x1)).to_numpy(), [[[1.0, 4.0]]])
        x3 = np.ones((1, 2, 4, 4, 4), dtype=np.float32)
        assert AvgPool3d(2)(Tensor.from_numpy(x3)).shape == (1, 2, 2, 2, 2)

    def test_unbatched_input(self):
        x = np.arange(16, dtype=np.float32).reshape(1, 4, 4)
        out = AvgPool2d(2)(Tensor.from_numpy(x))
        assert out.shape == (1, 2, 2)


class TestMaxPool:
    def test_max_pool_2d(self):
        x = np.arange(16, dtype=np.float32).reshape(1, 1, 4, 4)
        out = MaxPool2d(2)(Tensor.from_numpy(x)).to_numpy()
        np.testing.assert_array_equal(out, [[[[5, 7], [13, 15]]]])

    def test_padding_never_wins(self):
        x = -np.ones((1, 1, 3, 3), dtype=np.float32)
        out = MaxPool2d(3, stride=1, padding=1)(Tensor.from_numpy(x)).to_numpy()
        np.testing.assert_array_equal(out, -np.ones((1, 1, 3, 3)))

    def test_max_pool_1d_and_3d(self):
        x1 = np.array([[[1, 3, 2, 5, 4, 0]]], dtype=np.float32)
        np.testing.assert_array_equal(MaxPool1d(2)(Tensor.from_numpy(x1)).to_numpy(), [[[3, 5, 4]]])
        x3 = np.random.randn(1, 1, 2, 2, 2).astype(np.float32)
        out = MaxPool3d(2)(Tensor.from_numpy(x3)).to_numpy()
        assert out.reshape(-1)[0] == x3.max()

    def test_repeated_forward_is_deterministic(self):
        x = nnbind.randn(2, 3, 8, 8)
        pool = MaxPool2d(3, stride=2, padding=1)
        np.testing.assert_array_equal(pool(x).to_numpy(), pool(x).to_numpy())


class TestPoolValidation:
    def test_wrong_dimensionality(self):
        with pytest.raises(ShapeError):
            MaxPool2d(2)(nnbind.randn(2, 3, 4, 4, 4))
        with pytest.raises(ShapeError):
            AvgPool1d(2)(nnbind.randn(8))

    def test_invalid_padding_fails_construction(self):
        with pytest.raises(AllocationError, match="padding should be at most half"):
            MaxPool2d(2, padding=2)

    def test_kernel_larger_than_input(self):
        with pytest.raises(AllocationError):
            AvgPool2d(5)(nnbind.randn(1, 1, 2, 2))

    def test_each_forward_returns_a_new_handle(self):
        x = nnbind.randn(1, 1, 4, 4)
        pool = AvgPool2d(2)
        first, second = pool(x), pool(x)
        assert first.handle != second.handle
        first.dispose()
        assert second.numel() == 4
