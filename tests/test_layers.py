import numpy as np
import pytest

import nnbind
from nnbind import nn
from nnbind.core import Parameter, Tensor
from nnbind.errors import ShapeError, UseAfterDisposeError
from nnbind.nn import Conv1d, Conv2d, Dropout, Linear, ReLU, Sigmoid, Tanh


def _params(module):
    return {name: t.to_numpy() for name, t in module.named_parameters()}


class TestLinear:
    def test_forward_matches_reference(self):
        linear = Linear(4, 3)
        p = _params(linear)
        x = np.random.randn(5, 4).astype(np.float32)
        out = linear(Tensor.from_numpy(x)).to_numpy()
        np.testing.assert_allclose(out, x @ p['weight'].T + p['bias'], rtol=1e-5, atol=1e-6)

    def test_parameter_shapes_and_init_bounds(self):
        linear = Linear(100, 10)
        p = _params(linear)
        assert p['weight'].shape == (10, 100)
        assert p['bias'].shape == (10,)
        assert np.abs(p['weight']).max() <= 0.1 + 1e-6
        assert all(isinstance(t, Parameter) for t in linear.parameters())

    def test_without_bias(self):
        linear = Linear(3, 2, bias=False)
        assert [name for name, _ in linear.named_parameters()] == ['weight']
        assert 'bias=False' in repr(linear)

    def test_batched_leading_dims(self):
        linear = Linear(4, 2)
        assert linear(nnbind.randn(2, 3, 4)).shape == (2, 3, 2)

    def test_input_width_checked(self):
        with pytest.raises(ShapeError, match="last dimension is 4"):
            Linear(4, 2)(nnbind.randn(3, 5))

    def test_parameters_alias_module_storage(self):
        linear = Linear(2, 1, bias=False)
        weight = next(linear.parameters())
        weight.copy_([[1.0, 2.0]])
        out = linear(nnbind.tensor([[3.0, 4.0]])).to_numpy()
        np.testing.assert_allclose(out, [[11.0]])

    def test_parameter_handles_outlive_module(self):
        linear = Linear(2, 2)
        weight = next(linear.parameters())
        linear.dispose()
        assert weight.shape == (2, 2)
        with pytest.raises(UseAfterDisposeError):
            list(linear.parameters())

    def test_construct_dispose_leaves_nothing(self, no_leaks):
        with Linear(8, 4) as linear:
            linear(nnbind.randn(1, 8)).dispose()
        with pytest.raises(UseAfterDisposeError):
            linear.forward(nnbind.randn(1, 8))


class TestConv:
    def test_conv2d_matches_reference(self):
        conv = Conv2d(2, 3, 3, padding=1)
        p = _params(conv)
        x = np.random.randn(1, 2, 5, 5).astype(np.float32)
        out = conv(Tensor.from_numpy(x)).to_numpy()
        assert out.shape == (1, 3, 5, 5)
        padded = np.pad(x, ((0, 0), (0, 0), (1, 1), (1, 1)))
        expected = (padded[0, :, 1:4, 2:5] * p['weight'][1]).sum() + p['bias'][1]
        assert out[0, 1, 1, 2] == pytest.approx(expected, rel=1e-4, abs=1e-5)

    def test_conv1d_stride(self):
        conv = Conv1d(1, 1, 2, stride=2, bias=False)
        conv.load_state_dict({'weight': np.ones((1, 1, 2), dtype=np.float32)})
        out = conv(nnbind.tensor([[[1.0, 2.0, 3.0, 4.0]]])).to_numpy()
        np.testing.assert_allclose(out, [[[3.0, 7.0]]])

    def test_conv_input_checks(self):
        conv = Conv2d(3, 4, 3)
        with pytest.raises(ShapeError):
            conv(nnbind.randn(3, 8, 8))
        with pytest.raises(ShapeError, match="3 input channels"):
            conv(nnbind.randn(1, 2, 8, 8))

    def test_parameter_shapes(self):
        conv = Conv2d(100, 10, 5)
        shapes = {name: t.shape for name, t in conv.named_parameters()}
        assert shapes == {'weight': (10, 100, 5, 5), 'bias': (10,)}


class TestActivations:
    def test_relu_sigmoid_tanh(self):
        x = np.array([-2.0, 0.0, 3.0], dtype=np.float32)
        t = Tensor.from_numpy(x)
        np.testing.assert_array_equal(ReLU()(t).to_numpy(), [0.0, 0.0, 3.0])
        np.testing.assert_allclose(Sigmoid()(t).to_numpy(), 1 / (1 + np.exp(-x)), rtol=1e-6)
        np.testing.assert_allclose(Tanh()(t).to_numpy(), np.tanh(x), rtol=1e-6)


class TestDropout:
    def test_eval_is_identity(self):
        dropout = Dropout(0.5).eval()
        x = nnbind.randn(4, 4)
        np.testing.assert_array_equal(dropout(x).to_numpy(), x.to_numpy())

    def test_training_zeroes_and_rescales(self):
        dropout = Dropout(0.5)
        out = dropout(nnbind.ones(1000)).to_numpy()
        assert set(np.unique(out)) <= {0.0, 2.0}
        assert 0 < (out == 0).sum() < 1000

    def test_probability_validated(self):
        with pytest.raises(ValueError):
            Dropout(1.5)


CATALOG = [
    ('Linear', lambda: nn.Linear(4, 2)),
    ('Conv1d', lambda: nn.Conv1d(2, 3, 3)),
    ('Conv2d', lambda: nn.Conv2d(2, 3, 3, padding=1)),
    ('BatchNorm1d', lambda: nn.BatchNorm1d(3)),
    ('BatchNorm2d', lambda: nn.BatchNorm2d(3)),
    ('BatchNorm3d', lambda: nn.BatchNorm3d(3, affine=False)),
    ('InstanceNorm1d', lambda: nn.InstanceNorm1d(3)),
    ('InstanceNorm2d', lambda: nn.InstanceNorm2d(3, track_running_stats=False)),
    ('InstanceNorm3d', lambda: nn.InstanceNorm3d(3)),
    ('LayerNorm', lambda: nn.LayerNorm((3, 4))),
    ('MaxPool1d', lambda: nn.MaxPool1d(2)),
    ('MaxPool2d', lambda: nn.MaxPool2d(3, stride=2, padding=1)),
    ('MaxPool3d', lambda: nn.MaxPool3d(2)),
    ('AvgPool1d', lambda: nn.AvgPool1d(3, stride=1)),
    ('AvgPool2d', lambda: nn.AvgPool2d(2, count_include_pad=False)),
    ('AvgPool3d', lambda: nn.AvgPool3d(2)),
    ('Dropout', lambda: nn.Dropout(0.2)),
    ('ReLU', nn.ReLU),
    ('Sigmoid', nn.Sigmoid),
    ('Tanh', nn.Tanh),
    ('Sequential', lambda: nn.Sequential(nn.Linear(4, 4), nn.ReLU())),
]


class TestDisposal:
    @pytest.mark.parametrize("factory", [f for _, f in CATALOG], ids=[name for name, _ in CATALOG])
    def test_construct_dispose_then_use(self, factory, archive_path, no_leaks):
        module = factory()
        module.dispose()
        module.dispose()
        assert module.disposed

        x = nnbind.zeros(1)
        with pytest.raises(UseAfterDisposeError):
            module.forward(x)
        with pytest.raises(UseAfterDisposeError):
            list(module.named_parameters())
        with pytest.raises(UseAfterDisposeError):
            module.train()
        with pytest.raises(UseAfterDisposeError):
            module.save(archive_path)
        assert not archive_path.exists()
        x.dispose()

    def test_enumeration_fails_at_call_site(self):
        linear = Linear(2, 2)
        linear.dispose()
        with pytest.raises(UseAfterDisposeError):
            linear.named_parameters()
        with pytest.raises(UseAfterDisposeError):
            linear.parameters()
        with pytest.raises(UseAfterDisposeError):
            linear.named_buffers()
        with pytest.raises(UseAfterDisposeError):
            linear.buffers()
