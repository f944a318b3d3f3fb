from contextlib import contextmanager
from contextvars import ContextVar

import numpy as np
import numpy.typing as npt


__all__ = [
    "get_dtype",
    "with_precision",
]

_equil_dtype: ContextVar[npt.DTypeLike] = ContextVar(
    "_equil_dtype", default=np.float64
)


def get_dtype() -> npt.DTypeLike:
    """
    Get the current data type used for equilibration arrays.

    This defines the precision of the pressure, saturation and
    miscibility ratio arrays produced by the initialization.

    :return: The current data type.
    """
    return _equil_dtype.get()


@contextmanager
def with_precision(dtype: npt.DTypeLike):
    """
    Context manager to temporarily set the data type, and hence the precision, of equilibration arrays.

    :param dtype: The data type to set within the context.
    """
    token = _equil_dtype.set(dtype)
    try:
        yield
    finally:
        _equil_dtype.reset(token)
