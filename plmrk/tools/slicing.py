from functools import lru_cache
from typing import Optional, Tuple


@lru_cache(maxsize=None)
def crop(
    axis: int, cut: Tuple[Optional[int], Optional[int]], ndim: int
) -> Tuple[slice, ...]:
    """
    Slice tuple selecting `cut` along one axis and everything along the others.

    Args:
        axis: Axis to slice, in [0, ndim).
        cut: Start and stop indices along `axis`. None leaves that end open.
        ndim: Number of dimensions of the array.
    """
    if not 0 <= axis < ndim:
        raise ValueError(f"Axis {axis} is out of bounds for {ndim} dimensions.")
    out = [slice(None)] * ndim
    out[axis] = slice(*cut)
    return tuple(out)


def neighbor_slices(axis: int, ndim: int) -> Tuple[Tuple[slice, ...], ...]:
    """
    Returns the left, center, and right slices of a three-point stencil along an
    axis.

    Args:
        axis: Axis along which the stencil is applied. Negative values count from
            the last axis.
        ndim: Number of dimensions of the array.

    Returns:
        Tuple of (left, center, right) slice tuples, each selecting the interior
        cells shifted by -1, 0, and +1 along `axis`.
    """
    if axis < 0:
        axis += ndim
    return (
        crop(axis, (None, -2), ndim),
        crop(axis, (1, -1), ndim),
        crop(axis, (2, None), ndim),
    )
