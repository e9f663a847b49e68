from types import ModuleType
from typing import TYPE_CHECKING, Any, Union

import numpy as np

# determine if CuPy is available
xp = np
cp_array = np.ndarray
cp_array_to_numpy_array = np.asarray
CUPY_AVAILABLE = False
if not TYPE_CHECKING:
    try:
        import cupy as cp

        xp = cp
        cp_array = cp.ndarray
        cp_array_to_numpy_array = cp.asnumpy
        CUPY_AVAILABLE = True
    except Exception:
        pass

# define custom types
ArrayLike = Union[np.ndarray, xp.ndarray]


def is_cupy_array(array: Any) -> bool:
    """
    Returns True if `array` lives on the GPU.
    """
    return CUPY_AVAILABLE and isinstance(array, cp_array)


def get_array_module(array: Any) -> ModuleType:
    """
    Returns the array namespace (`numpy` or `cupy`) that owns `array`.

    Args:
        array: NumPy or CuPy array.

    Returns:
        `cupy` if `array` is a CuPy array, `numpy` otherwise.
    """
    return xp if is_cupy_array(array) else np


def asnumpy(array: ArrayLike) -> np.ndarray:
    """
    Returns a NumPy copy of an array, transferring it from the GPU if needed.

    Args:
        array: NumPy or CuPy array.
    """
    if is_cupy_array(array):
        return cp_array_to_numpy_array(array)
    return np.array(array, copy=True)
