import copy
import numbers
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Union

import numpy as np

from .tools.device_management import ArrayLike, asnumpy
from .tools.shared_array import SharedArray

IterationLike = Union[int, Fraction]


def _as_fraction(iteration: Any) -> Fraction:
    if isinstance(iteration, Fraction):
        return iteration
    if isinstance(iteration, numbers.Rational):
        return Fraction(int(iteration.numerator), int(iteration.denominator))
    raise TypeError(
        f"Iteration must be an integer or a Fraction, got {type(iteration).__name__}."
    )


@dataclass(eq=False)
class SolutionStateArray:
    """
    Conserved field together with the time and iteration it belongs to. The field
    array is owned by this state alone: copying the state copies the array.

    Attributes:
        time: Simulation time.
        iteration: Exact iteration counter. Fractional in the middle of a
            Runge-Kutta step, integral after a full step.
        conserved: Array of conserved variables.

    Notes:
        - States are combined with `+` and scaled with `* Fraction(...)`, both of
          which return a new state and leave their operands untouched.
    """

    time: float
    iteration: Fraction
    conserved: ArrayLike

    def __post_init__(self):
        self.time = float(self.time)
        self.iteration = _as_fraction(self.iteration)

    def __add__(self, other: Any) -> "SolutionStateArray":
        if not isinstance(other, SolutionStateArray):
            return NotImplemented
        return SolutionStateArray(
            time=self.time + other.time,
            iteration=self.iteration + other.iteration,
            conserved=self.conserved + other.conserved,
        )

    def __mul__(self, weight: Any) -> "SolutionStateArray":
        if not isinstance(weight, numbers.Rational):
            return NotImplemented
        w = float(weight)
        return SolutionStateArray(
            time=self.time * w,
            iteration=self.iteration * weight,
            conserved=self.conserved * w,
        )

    __rmul__ = __mul__

    def __copy__(self) -> "SolutionStateArray":
        return SolutionStateArray(self.time, self.iteration, copy.copy(self.conserved))

    def __deepcopy__(self, memo: dict) -> "SolutionStateArray":
        return self.__copy__()

    def to_numpy(self) -> np.ndarray:
        """
        Returns a NumPy copy of the conserved field.
        """
        return asnumpy(self.conserved)

    def to_shared(self) -> "SolutionStateArcArray":
        """
        Returns a copy of this state backed by shared storage.
        """
        return SolutionStateArcArray(
            self.time, self.iteration, SharedArray(self.conserved, copy=True)
        )


@dataclass(eq=False)
class SolutionStateArcArray:
    """
    Like `SolutionStateArray`, but the field is held by a reference-counted,
    copy-on-write `SharedArray`.

    Copying the state is O(1) and shares the field. Arithmetic results are wrapped
    as new shared storage, so the next copy is O(1) as well.

    Attributes:
        time: Simulation time.
        iteration: Exact iteration counter.
        conserved: Shared array of conserved variables.
    """

    time: float
    iteration: Fraction
    conserved: SharedArray

    def __post_init__(self):
        self.time = float(self.time)
        self.iteration = _as_fraction(self.iteration)
        if not isinstance(self.conserved, SharedArray):
            self.conserved = SharedArray(self.conserved, copy=True)

    @classmethod
    def from_array(
        cls, conserved: ArrayLike, time: float = 0.0, iteration: IterationLike = 0
    ) -> "SolutionStateArcArray":
        """
        Create a state by copying `conserved` into shared storage. Passing a
        plain array to the constructor copies it as well.

        Args:
            conserved: Array of conserved variables.
            time: Initial time.
            iteration: Initial iteration.
        """
        return cls(time, _as_fraction(iteration), SharedArray(conserved, copy=True))

    def __add__(self, other: Any) -> "SolutionStateArcArray":
        if not isinstance(other, SolutionStateArcArray):
            return NotImplemented
        return SolutionStateArcArray(
            time=self.time + other.time,
            iteration=self.iteration + other.iteration,
            conserved=self.conserved + other.conserved,
        )

    def __mul__(self, weight: Any) -> "SolutionStateArcArray":
        if not isinstance(weight, numbers.Rational):
            return NotImplemented
        w = float(weight)
        return SolutionStateArcArray(
            time=self.time * w,
            iteration=self.iteration * weight,
            conserved=self.conserved * w,
        )

    __rmul__ = __mul__

    def __copy__(self) -> "SolutionStateArcArray":
        return SolutionStateArcArray(self.time, self.iteration, self.conserved.clone())

    def __deepcopy__(self, memo: dict) -> "SolutionStateArcArray":
        return SolutionStateArcArray(
            self.time, self.iteration, copy.deepcopy(self.conserved, memo)
        )

    def to_numpy(self) -> np.ndarray:
        """
        Returns a NumPy copy of the conserved field.
        """
        return asnumpy(self.conserved.data)

    def to_owned(self) -> SolutionStateArray:
        """
        Returns a copy of this state with exclusively owned storage.
        """
        return SolutionStateArray(self.time, self.iteration, self.conserved.to_owned())
