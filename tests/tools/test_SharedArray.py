import copy
import pickle

import numpy as np
import pytest

from plmrk.tools.shared_array import SharedArray


@pytest.fixture
def shared():
    """Fixture to create a uniquely owned SharedArray."""
    return SharedArray(np.arange(5.0))


def test_initial_state(shared):
    assert shared.ref_count == 1
    assert shared.is_unique()
    assert shared.shape == (5,)
    assert shared.dtype == np.float64
    assert len(shared) == 5


def test_data_is_read_only(shared):
    with pytest.raises(ValueError):
        shared.data[0] = 10.0


def test_wrapping_takes_ownership():
    arr = np.zeros(3)
    SharedArray(arr)
    assert not arr.flags.writeable


def test_wrapping_read_only_array_copies():
    arr = np.zeros(3)
    arr.flags.writeable = False
    s = SharedArray(arr)
    s.make_mut()[0] = 5.0
    assert arr[0] == 0.0


def test_clone_shares_storage(shared):
    other = shared.clone()
    assert other.shares_storage_with(shared)
    assert shared.ref_count == other.ref_count == 2
    assert np.shares_memory(other.data, shared.data)


def test_dropping_clone_releases_share(shared):
    other = copy.copy(shared)
    assert shared.ref_count == 2
    del other
    assert shared.ref_count == 1


def test_make_mut_unique_does_not_copy(shared):
    before = shared.data
    arr = shared.make_mut()
    assert np.shares_memory(arr, before)
    arr[0] = -1.0
    assert shared[0] == -1.0


def test_make_mut_shared_copies(shared):
    other = shared.clone()
    arr = other.make_mut()
    arr[:] = 0.0
    assert not other.shares_storage_with(shared)
    assert shared.is_unique() and other.is_unique()
    np.testing.assert_array_equal(np.asarray(shared), np.arange(5.0))
    np.testing.assert_array_equal(np.asarray(other), 0.0)


def test_inplace_add_on_shared_storage(shared):
    other = shared.clone()
    other += 1.0
    np.testing.assert_array_equal(np.asarray(shared), np.arange(5.0))
    np.testing.assert_array_equal(np.asarray(other), np.arange(5.0) + 1)
    assert not other.data.flags.writeable


def test_inplace_mul_on_unique_storage(shared):
    before = shared.data
    shared *= 2.0
    assert np.shares_memory(shared.data, before)
    np.testing.assert_array_equal(np.asarray(shared), 2 * np.arange(5.0))


def test_arithmetic_returns_unique_handles(shared):
    other = shared.clone()
    results = [
        shared + other,
        shared - 1.0,
        2.0 * shared,
        shared * 2.0,
        1.0 + shared,
        1.0 - shared,
        -shared,
        np.ones(5) + shared,
    ]
    for r in results:
        assert isinstance(r, SharedArray)
        assert r.is_unique()
        assert not r.shares_storage_with(shared)
    np.testing.assert_array_equal(np.asarray(results[0]), 2 * np.arange(5.0))
    np.testing.assert_array_equal(np.asarray(results[-1]), np.arange(5.0) + 1)


def test_to_owned_is_writable_copy(shared):
    arr = shared.to_owned()
    arr[0] = 100.0
    assert shared[0] == 0.0


def test_deepcopy_and_pickle(shared):
    for other in (copy.deepcopy(shared), pickle.loads(pickle.dumps(shared))):
        assert not other.shares_storage_with(shared)
        assert other.is_unique()
        assert not other.data.flags.writeable
        np.testing.assert_array_equal(np.asarray(other), np.asarray(shared))


def test_rewrap_of_shared_array_copies(shared):
    other = SharedArray(shared)
    assert not other.shares_storage_with(shared)
    assert shared.is_unique()


def test_wrapping_view_copies():
    base = np.zeros(6)
    s = SharedArray(base[1:5])
    other = s.clone()
    assert not np.shares_memory(s.data, base)
    assert base.flags.writeable

    base[2] = 99.0
    assert other[1] == 0.0
    s.make_mut()[0] = 5.0
    assert base[1] == 0.0
