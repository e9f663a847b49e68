import numpy as np
import pytest
from numpy.testing import assert_array_equal

from plmrk.tools.slicing import crop, neighbor_slices

# ---------- Tests for crop ----------


def test_crop_single_axis():
    assert crop(1, (2, 5), 3) == (slice(None), slice(2, 5), slice(None))


def test_crop_open_ends():
    assert crop(0, (None, -2), 2) == (slice(None, -2), slice(None))
    assert crop(1, (2, None), 2) == (slice(None), slice(2, None))


@pytest.mark.parametrize("axis", [-1, 3])
def test_crop_out_of_bounds(axis):
    with pytest.raises(ValueError):
        crop(axis, (0, 1), 3)


# ---------- Tests for neighbor_slices ----------


@pytest.mark.parametrize("axis", [0, 1, 2, -1])
def test_neighbor_slices_shift(axis):
    u = np.arange(4 * 5 * 6).reshape(4, 5, 6)
    slc_l, slc_c, slc_r = neighbor_slices(axis, u.ndim)
    n = u.shape[axis] - 2
    expected = np.take(u, range(1, 1 + n), axis=axis)
    assert_array_equal(u[slc_c], expected)
    assert_array_equal(u[slc_l], np.take(u, range(0, n), axis=axis))
    assert_array_equal(u[slc_r], np.take(u, range(2, 2 + n), axis=axis))
