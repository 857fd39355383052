from collections import OrderedDict

import numpy as np
import pytest

import nnbind
from nnbind.core import Tensor
from nnbind.errors import NativeError, UseAfterDisposeError
from nnbind.nn import Linear, ReLU, Sequential


class TestSequential:
    def test_named_children_prefix_parameters(self):
        seq = Sequential(("lin1", Linear(10, 5)), ("relu", ReLU()), ("lin2", Linear(5, 2)))
        names = [name for name, _ in seq.named_parameters()]
        assert names == ['lin1.weight', 'lin1.bias', 'lin2.weight', 'lin2.bias']
        assert [name for name, _ in seq.named_children()] == ['lin1', 'relu', 'lin2']

    def test_forward_chains_children(self):
        lin1, lin2 = Linear(4, 3), Linear(3, 2)
        x = np.random.randn(6, 4).astype(np.float32)
        expected = lin2(ReLU()(lin1(Tensor.from_numpy(x)))).to_numpy()
        seq = Sequential(lin1, ReLU(), lin2)
        out = seq(Tensor.from_numpy(x)).to_numpy()
        np.testing.assert_allclose(out, expected, rtol=1e-6)

    def test_ordered_dict_and_indexing(self):
        seq = Sequential(OrderedDict([("a", Linear(2, 2)), ("b", ReLU())]))
        assert len(seq) == 2
        assert isinstance(seq[0], Linear)
        assert isinstance(seq[-1], ReLU)
        assert seq["b"] is seq[1]
        with pytest.raises(IndexError):
            seq[2]

    def test_positional_names_and_append(self):
        seq = Sequential(Linear(3, 3))
        seq.append(ReLU())
        assert [name for name, _ in seq.named_children()] == ['0', '1']
        assert [name for name, _ in seq.named_parameters()] == ['0.weight', '0.bias']

    def test_duplicate_name_rejected(self):
        seq = Sequential(("lin", Linear(2, 2)))
        with pytest.raises(KeyError):
            seq.add_module("lin", Linear(2, 2))
        with pytest.raises(TypeError):
            seq.add_module("x", object())

    def test_invalid_name_surfaces_engine_error(self):
        seq = Sequential()
        with pytest.raises(NativeError, match="invalid module name"):
            seq.add_module("a.b", ReLU())

    def test_first_child_checks_input(self):
        seq = Sequential(Linear(4, 2))
        with pytest.raises(nnbind.ShapeError):
            seq(nnbind.randn(3, 5))

    def test_empty_sequential_is_identity(self):
        x = nnbind.randn(2, 2)
        assert Sequential()(x).equal(x)

    def test_mode_propagates_to_children(self):
        seq = Sequential(Linear(2, 2), nnbind.nn.Dropout(0.5))
        seq.eval()
        assert not seq[1].training
        seq.train()
        assert seq[1].training

    def test_dispose_disposes_children(self, no_leaks):
        lin = Linear(3, 3)
        seq = Sequential(("lin", lin))
        seq.dispose()
        assert lin.disposed
        with pytest.raises(UseAfterDisposeError):
            seq.forward(nnbind.randn(1, 3))

    def test_repr_lists_children(self):
        seq = Sequential(("lin1", Linear(10, 5)))
        assert repr(seq) == (
            "Sequential(\n"
            "  (lin1): Linear(in_features=10, out_features=5, bias=True)\n"
            ")"
        )
