from nnbind.nn.module import Module, construct


class Activation(Module):
    def __init__(self):
        super().__init__(*construct(f"THSNN_{self._op}_ctor"))


class ReLU(Activation):
    _op = 'ReLU'


class Sigmoid(Activation):
    _op = 'Sigmoid'


class Tanh(Activation):
    _op = 'Tanh'
