"""Exceptions raised by nnbind."""


class NNBindError(Exception):
    """Base class for every error raised by the binding layer."""


class NativeError(NNBindError, RuntimeError):
    """The native engine reported a failure through its last-error slot."""


class AllocationError(NativeError):
    """A native constructor, forward call or tensor factory returned a null handle."""


class ShapeError(NNBindError, ValueError):
    """An input tensor violates an operator's dimensionality precondition."""


class FormatError(NNBindError, ValueError):
    """A parameter stream does not match the module it is loaded into."""


class TruncatedStreamError(NNBindError, IOError):
    """A parameter stream ended before the expected number of bytes."""


class UseAfterDisposeError(NNBindError, RuntimeError):
    """An operation was attempted on a released native handle."""


__all__ = [
    "NNBindError",
    "NativeError",
    "AllocationError",
    "ShapeError",
    "FormatError",
    "TruncatedStreamError",
    "UseAfterDisposeError",
]
