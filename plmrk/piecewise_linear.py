import math
from types import ModuleType
from typing import Sequence, Tuple, TypeVar

import numpy as np

from .tools.device_management import ArrayLike
from .tools.slicing import neighbor_slices

T = TypeVar("T", bound=Sequence[float])


def sgn(a: float) -> float:
    """
    Sign of `a` taken from its sign bit, so that sgn(0.0) = 1 and sgn(-0.0) = -1.
    """
    return math.copysign(1.0, a)


def minabs(a: float, b: float, c: float) -> float:
    return min(abs(a), abs(b), abs(c))


def _plm_gradient(theta: float, yl: float, y0: float, yr: float) -> float:
    a = (y0 - yl) * theta
    b = (yr - yl) * 0.5
    c = (yr - y0) * theta
    return 0.25 * abs(sgn(a) + sgn(b)) * (sgn(a) + sgn(c)) * minabs(a, b, c)


def plm_gradient(theta: float, yl: float, y0: float, yr: float) -> float:
    """
    Compute the limited gradient of piecewise-linear reconstruction from three
    neighboring samples.

    The candidates a = theta * (y0 - yl), b = (yr - yl) / 2, and c = theta * (yr - y0)
    are combined as

        0.25 * |sgn(a) + sgn(b)| * (sgn(a) + sgn(c)) * min(|a|, |b|, |c|)

    which is zero at a local extremum and the signed minimum-magnitude candidate
    otherwise.

    Args:
        theta: Limiter parameter, conventionally in [1, 2]. theta = 1 is the most
            diffusive (minmod-like) and theta = 2 the least (monotonized central).
        yl: Sample to the left.
        y0: Sample at the center.
        yr: Sample to the right.

    Returns:
        Limited slope, in units of sample difference per cell.
    """
    return _plm_gradient(theta, float(yl), float(y0), float(yr))


def _plm_gradient_n(theta: float, xl: T, x0: T, xr: T, n: int) -> T:
    for x in (xl, x0, xr):
        if len(x) != n:
            raise ValueError(f"Expected {n} components, got {len(x)}.")
    slopes = [_plm_gradient(theta, xl[i], x0[i], xr[i]) for i in range(n)]
    if isinstance(x0, np.ndarray):
        dtype = np.result_type(x0.dtype, float)
        return np.asarray(slopes, dtype=dtype)  # type: ignore[return-value]
    if isinstance(x0, list):
        return slopes  # type: ignore[return-value]
    if type(x0) is tuple:
        return tuple(slopes)  # type: ignore[return-value]
    if isinstance(x0, tuple) and hasattr(x0, "_fields"):
        return type(x0)(*slopes)  # type: ignore[return-value]
    return tuple(slopes)  # type: ignore[return-value]


def plm_gradient3(theta: float, xl: T, x0: T, xr: T) -> T:
    """
    Componentwise `plm_gradient` of a 3-component quantity.

    Args:
        theta: Limiter parameter.
        xl: Left sample, a sequence of 3 floats.
        x0: Center sample, a sequence of 3 floats.
        xr: Right sample, a sequence of 3 floats.

    Returns:
        Limited slopes with the same container type as `x0` when it is a tuple,
        named tuple, list, or NumPy array; a tuple otherwise.
    """
    return _plm_gradient_n(theta, xl, x0, xr, 3)


def plm_gradient4(theta: float, xl: T, x0: T, xr: T) -> T:
    """
    Componentwise `plm_gradient` of a 4-component quantity. See `plm_gradient3`.
    """
    return _plm_gradient_n(theta, xl, x0, xr, 4)


def plm_gradient_array(
    xp: ModuleType, theta: float, yl: ArrayLike, y0: ArrayLike, yr: ArrayLike
) -> ArrayLike:
    """
    Elementwise `plm_gradient` of arrays of samples.

    Args:
        xp: `np` namespace.
        theta: Limiter parameter.
        yl: Array of left samples.
        y0: Array of center samples.
        yr: Array of right samples. All three arrays must be broadcastable.

    Returns:
        Array of limited slopes.
    """
    a = theta * (y0 - yl)
    b = 0.5 * (yr - yl)
    c = theta * (yr - y0)
    sa = xp.copysign(1.0, a)
    sb = xp.copysign(1.0, b)
    sc = xp.copysign(1.0, c)
    mag = xp.minimum(xp.minimum(xp.abs(a), xp.abs(b)), xp.abs(c))
    return 0.25 * xp.abs(sa + sb) * (sa + sc) * mag


def compute_plm_slopes(
    xp: ModuleType,
    u: ArrayLike,
    axis: int,
    theta: float,
    *,
    out: ArrayLike,
) -> Tuple[slice, ...]:
    """
    Compute limited slopes of an array of cell averages along one axis.

    Args:
        xp: `np` namespace.
        u: Array of cell averages with any number of dimensions.
        axis: Axis along which slopes are computed.
        theta: Limiter parameter.
        out: Output array with the same shape as `u`. Only the interior cells along
            `axis` are written.

    Returns:
        Slice objects indicating the modified region of `out`.
    """
    if out.shape != u.shape:
        raise ValueError(f"Expected out to have shape {u.shape}, got {out.shape}.")
    if u.shape[axis] < 3:
        raise ValueError(
            f"At least 3 cells are required along axis {axis}, got {u.shape[axis]}."
        )

    slc_l, slc_c, slc_r = neighbor_slices(axis, u.ndim)
    out[slc_c] = plm_gradient_array(xp, theta, u[slc_l], u[slc_c], u[slc_r])

    return slc_c
