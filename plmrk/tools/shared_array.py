import weakref
from typing import Any, Tuple

import numpy as np

from .device_management import ArrayLike, get_array_module


class _Store:
    """
    Backing storage shared by one or more `SharedArray` handles.
    """

    __slots__ = ("array", "handles", "__weakref__")

    def __init__(self, array: ArrayLike):
        self.array = array
        self.handles: "weakref.WeakSet[SharedArray]" = weakref.WeakSet()


class SharedArray:
    """
    Reference-counted, copy-on-write handle to an array.

    Cloning a handle is O(1) and shares the backing store. Arithmetic allocates a
    new array which is re-wrapped as a fresh, uniquely owned handle. In-place
    arithmetic and `make_mut` privatize the store only if another live handle still
    refers to it.

    Notes:
        - The array exposed by `data` is read-only. Use `make_mut` to obtain a
          writable array.
        - The number of referents is the number of live handles, tracked with a
          `weakref.WeakSet`, so dropped handles release their share immediately.
        - Handles compare and hash by identity, as `weakref.WeakSet` requires.
    """

    # defer numpy binary operators to the reflected methods below
    __array_ufunc__ = None

    def __init__(self, array: Any, *, copy: bool = False):
        """
        Wrap an array as shared storage.

        Args:
            array: Array (or anything `numpy.asarray` accepts) to wrap. A writable
                array that owns its memory is wrapped without copying unless `copy`
                is True, and is made read-only since the handle now owns it. Views
                and read-only arrays are always copied.
            copy: Whether to copy `array` before wrapping it.
        """
        if isinstance(array, SharedArray):
            array = array._store.array
            copy = True
        if get_array_module(array) is np:
            array = np.asarray(array)
            copy = copy or not array.flags.writeable or array.base is not None
        if copy:
            array = array.copy()
        self._attach(_Store(array))
        _freeze(array)

    @classmethod
    def _from_store(cls, store: _Store) -> "SharedArray":
        out = cls.__new__(cls)
        out._attach(store)
        return out

    def _attach(self, store: _Store):
        self._store = store
        store.handles.add(self)

    @property
    def ref_count(self) -> int:
        """Number of live handles on the backing store."""
        return len(self._store.handles)

    def is_unique(self) -> bool:
        return self.ref_count == 1

    def shares_storage_with(self, other: "SharedArray") -> bool:
        return self._store is other._store

    @property
    def data(self) -> ArrayLike:
        """Read-only view of the backing store."""
        return self._store.array

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._store.array.shape

    @property
    def dtype(self):
        return self._store.array.dtype

    @property
    def ndim(self) -> int:
        return self._store.array.ndim

    def clone(self) -> "SharedArray":
        """
        Return a new handle on the same backing store without copying data.
        """
        return SharedArray._from_store(self._store)

    def __copy__(self) -> "SharedArray":
        return self.clone()

    def __deepcopy__(self, memo: dict) -> "SharedArray":
        return SharedArray(self._store.array, copy=True)

    def make_mut(self) -> ArrayLike:
        """
        Return a writable array owned by this handle alone.

        If other handles share the backing store, the data is copied into a new
        store first and this handle is moved onto it. Otherwise the existing store
        is unfrozen and returned as-is.

        Returns:
            Writable NumPy or CuPy array.
        """
        if not self.is_unique():
            self._store.handles.discard(self)
            self._attach(_Store(self._store.array.copy()))
        _thaw(self._store.array)
        return self._store.array

    def to_owned(self) -> ArrayLike:
        """
        Return a writable copy of the data which no handle refers to.
        """
        out = self._store.array.copy()
        _thaw(out)
        return out

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if copy:
            return np.array(self._store.array, dtype=dtype, copy=True)
        return np.asarray(self._store.array, dtype=dtype)

    def __getitem__(self, index: Any) -> Any:
        return self._store.array[index]

    def __len__(self) -> int:
        return len(self._store.array)

    def __repr__(self) -> str:
        return f"SharedArray({self._store.array!r}, ref_count={self.ref_count})"

    # arithmetic
    def __add__(self, other: Any) -> "SharedArray":
        return SharedArray(self._store.array + _unwrap(other))

    def __radd__(self, other: Any) -> "SharedArray":
        return SharedArray(_unwrap(other) + self._store.array)

    def __sub__(self, other: Any) -> "SharedArray":
        return SharedArray(self._store.array - _unwrap(other))

    def __rsub__(self, other: Any) -> "SharedArray":
        return SharedArray(_unwrap(other) - self._store.array)

    def __mul__(self, other: Any) -> "SharedArray":
        return SharedArray(self._store.array * _unwrap(other))

    def __rmul__(self, other: Any) -> "SharedArray":
        return SharedArray(_unwrap(other) * self._store.array)

    def __neg__(self) -> "SharedArray":
        return SharedArray(-self._store.array)

    def __iadd__(self, other: Any) -> "SharedArray":
        arr = self.make_mut()
        arr += _unwrap(other)
        _freeze(arr)
        return self

    def __imul__(self, other: Any) -> "SharedArray":
        arr = self.make_mut()
        arr *= _unwrap(other)
        _freeze(arr)
        return self

    def __getstate__(self) -> dict:
        return {"array": self._store.array}

    def __setstate__(self, state: dict):
        array = state["array"]
        self._attach(_Store(array))
        _freeze(array)


def _unwrap(other: Any) -> Any:
    return other._store.array if isinstance(other, SharedArray) else other


def _freeze(array: ArrayLike):
    # CuPy arrays have no writeable flag
    if get_array_module(array) is np:
        array.flags.writeable = False


def _thaw(array: ArrayLike):
    if get_array_module(array) is np:
        array.flags.writeable = True
