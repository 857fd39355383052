"""
Runtime configuration
=====================
Values are read from the environment once, when nnbind is first imported.

Exports:
    NATIVE_LIBRARY (str): Dotted module path of the engine to bind to
        (``NNBIND_NATIVE_LIBRARY``, default ``nnbind._native``).
    LOG_LEVEL (str): Level used by ``setup_logging`` when none is given
        (``NNBIND_LOG_LEVEL``, default ``WARNING``).
    SEED (Optional[int]): Seed applied to the engine generator when the
        library is loaded (``NNBIND_SEED``, unset by default).
"""
import os
from typing import Optional

ENV_PREFIX = "NNBIND_"


def get_int_env(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


NATIVE_LIBRARY: str = os.environ.get(ENV_PREFIX + "NATIVE_LIBRARY", "nnbind._native")
LOG_LEVEL: str = os.environ.get(ENV_PREFIX + "LOG_LEVEL", "WARNING").upper()
SEED: Optional[int] = get_int_env(ENV_PREFIX + "SEED")
