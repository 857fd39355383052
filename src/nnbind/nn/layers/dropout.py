from nnbind.nn.module import Module, construct


class Dropout(Module):
    """Zeroes elements with probability ``p`` in training mode; identity in eval mode."""
    _op = 'Dropout'

    def __init__(self, p: float = 0.5):
        if p < 0 or p > 1:
            raise ValueError(f"Dropout probability has to be between 0 and 1, but got {p}")
        self.p = p
        super().__init__(*construct("THSNN_Dropout_ctor", float(p)))

    def extra_repr(self) -> str:
        return f'p={self.p}'
