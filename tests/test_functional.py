import numpy as np
import pytest

import nnbind
from nnbind.core import Tensor
from nnbind.nn import InstanceNorm3d, functional as F


class TestFunctional:
    def test_instance_norm3d_matches_module(self):
        x = Tensor.from_numpy(np.random.randn(2, 3, 2, 3, 4).astype(np.float32))
        with InstanceNorm3d(3) as norm:
            expected = norm(x).to_numpy()
        np.testing.assert_array_equal(F.instance_norm3d(x, 3).to_numpy(), expected)

    def test_one_shot_calls_release_their_module(self, no_leaks):
        x = nnbind.randn(1, 2, 4, 4)
        F.avg_pool2d(x, 2).dispose()
        F.max_pool2d(x, 2, stride=1).dispose()
        F.instance_norm2d(x, 2).dispose()
        x.dispose()

    def test_pool_helpers(self):
        x = Tensor.from_numpy(np.arange(16, dtype=np.float32).reshape(1, 1, 4, 4))
        np.testing.assert_allclose(F.avg_pool2d(x, 2).to_numpy(), [[[[2.5, 4.5], [10.5, 12.5]]]])
        np.testing.assert_array_equal(F.max_pool2d(x, 2).to_numpy(), [[[[5, 7], [13, 15]]]])
        assert F.avg_pool1d(nnbind.randn(1, 2, 6), 3).shape == (1, 2, 2)
        assert F.max_pool3d(nnbind.randn(1, 1, 4, 4, 4), 2).shape == (1, 1, 2, 2, 2)

    def test_batch_and_layer_norm(self):
        x = np.random.randn(8, 3).astype(np.float32)
        out = F.batch_norm1d(Tensor.from_numpy(x), 3).to_numpy()
        np.testing.assert_allclose(out.mean(axis=0), np.zeros(3), atol=1e-5)
        out = F.layer_norm(Tensor.from_numpy(x), 3).to_numpy()
        np.testing.assert_allclose(out.mean(axis=1), np.zeros(8), atol=1e-5)

    def test_activations(self):
        x = nnbind.tensor([-1.0, 0.0, 1.0])
        np.testing.assert_array_equal(F.relu(x).to_numpy(), [0.0, 0.0, 1.0])
        assert F.sigmoid(x).to_numpy()[1] == pytest.approx(0.5)
        assert F.tanh(x).to_numpy()[1] == 0.0

    def test_shape_errors_still_raise(self, no_leaks):
        x = nnbind.randn(2, 3)
        with pytest.raises(nnbind.ShapeError):
            F.instance_norm3d(x, 3)
        x.dispose()
