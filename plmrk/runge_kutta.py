import copy
import inspect
import numbers
import warnings
from enum import IntEnum
from fractions import Fraction
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Protocol,
    Tuple,
    TypeVar,
    Union,
    runtime_checkable,
)


@runtime_checkable
class SolutionState(Protocol):
    """
    Arithmetic required of a state advanced by a Runge-Kutta scheme: addition of two
    states and multiplication by an exact rational weight. Duplication goes through
    `copy.copy`, so states with heavy storage should implement `__copy__`.
    """

    def __add__(self, other: Any) -> Any: ...

    def __mul__(self, weight: Fraction) -> Any: ...


S = TypeVar("S")
Update = Callable[[S], S]
AsyncUpdate = Callable[[S], Union[S, Awaitable[S]]]


class InvalidRungeKuttaOrder(ValueError):
    """
    Raised when a Runge-Kutta order is constructed from anything other than 1, 2,
    or 3.
    """

    def __init__(self, order: Any = None):
        super().__init__("Runge-Kutta order must be 1, 2, or 3")
        self.order = order


def weighted_average(s: S, b: Fraction, s0: S) -> S:
    """
    Convex blend of a stage result with the initial state of the step.

    Args:
        s: Current stage value.
        b: Exact weight of the initial state, in [0, 1].
        s0: Initial state of the step.

    Returns:
        s * (1 - b) + s0 * b
    """
    return s * (1 - b) + s0 * b  # type: ignore[operator]


async def weighted_average_async(s: S, b: Fraction, s0: S, runtime: Any) -> S:
    """
    Asynchronous `weighted_average`.

    States that coordinate distributed storage define a coroutine method
    `weighted_average_async(b, s0, runtime)`, which is awaited. Any other state is
    blended synchronously.

    Args:
        s: Current stage value.
        b: Exact weight of the initial state, in [0, 1].
        s0: Initial state of the step.
        runtime: Execution context handle, passed through untouched.
    """
    method = getattr(s, "weighted_average_async", None)
    if method is not None:
        return await method(b, s0, runtime)
    return weighted_average(s, b, s0)


def _duplicate(s: S) -> S:
    return copy.copy(s)


async def _resolve(result: Union[S, Awaitable[S]]) -> S:
    if inspect.isawaitable(result):
        return await result
    return result


# Shu-Osher weights of the initial state in each stage after the first
SSP_WEIGHTS: Dict[int, Tuple[Fraction, ...]] = {
    1: (),
    2: (Fraction(1, 2),),
    3: (Fraction(3, 4), Fraction(1, 3)),
}


def _advance(s0: S, update: Update, weights: Tuple[Fraction, ...]) -> S:
    s1 = update(_duplicate(s0))
    for b in weights:
        s1 = weighted_average(update(s1), b, s0)
    return s1


async def _advance_async(
    s0: S, update: AsyncUpdate, weights: Tuple[Fraction, ...], runtime: Any
) -> S:
    s1 = await _resolve(update(_duplicate(s0)))
    for b in weights:
        s1 = await weighted_average_async(
            await _resolve(update(s1)), b, s0, runtime
        )
    return s1


def advance_rk1(s0: S, update: Update) -> S:
    """
    Forward Euler: one call to `update`.
    """
    return _advance(s0, update, SSP_WEIGHTS[1])


def advance_rk2(s0: S, update: Update) -> S:
    """
    Second-order SSP Runge-Kutta.

        s1 = update(s0)
        s2 = update(s1) * 1/2 + s0 * 1/2
    """
    return _advance(s0, update, SSP_WEIGHTS[2])


def advance_rk3(s0: S, update: Update) -> S:
    """
    Third-order SSP Runge-Kutta (Shu & Osher, 1988).

        s1 = update(s0)
        s2 = update(s1) * 1/4 + s0 * 3/4
        s3 = update(s2) * 2/3 + s0 * 1/3
    """
    return _advance(s0, update, SSP_WEIGHTS[3])


async def advance_rk1_async(s0: S, update: AsyncUpdate, runtime: Any = None) -> S:
    return await _advance_async(s0, update, SSP_WEIGHTS[1], runtime)


async def advance_rk2_async(s0: S, update: AsyncUpdate, runtime: Any = None) -> S:
    return await _advance_async(s0, update, SSP_WEIGHTS[2], runtime)


async def advance_rk3_async(s0: S, update: AsyncUpdate, runtime: Any = None) -> S:
    return await _advance_async(s0, update, SSP_WEIGHTS[3], runtime)


_KEYS = {1: "euler", 2: "ssprk2", 3: "ssprk3"}


class RungeKuttaOrder(IntEnum):
    """
    Order of the SSP Runge-Kutta scheme used to advance a state by one step.

    Notes:
        - `from_int` is the validating constructor and the one used by
          `advance_steps` and `RungeKuttaConfig`. Plain value lookup
          (`RungeKuttaOrder(value)`) follows `IntEnum` equality, so `True` and
          `2.0` resolve to RK1 and RK2; any other value raises
          `InvalidRungeKuttaOrder`.
    """

    RK1 = 1
    RK2 = 2
    RK3 = 3

    @classmethod
    def _missing_(cls, value: object):
        raise InvalidRungeKuttaOrder(value)

    @classmethod
    def from_int(cls, order: Any) -> "RungeKuttaOrder":
        """
        Return the scheme of a given order.

        Args:
            order: Integer order, one of 1, 2, or 3.

        Raises:
            InvalidRungeKuttaOrder: If `order` is not one of the integers 1, 2, or 3.
        """
        if isinstance(order, bool) or not isinstance(order, numbers.Integral):
            raise InvalidRungeKuttaOrder(order)
        return cls(int(order))

    @classmethod
    def from_key(cls, key: str) -> "RungeKuttaOrder":
        """
        Return the scheme with a given key ("euler", "ssprk2", or "ssprk3").
        """
        for order, name in _KEYS.items():
            if key == name:
                return cls(order)
        raise ValueError(f"Unknown Runge-Kutta scheme: {key}.")

    def key(self) -> str:
        return _KEYS[self.value]

    @property
    def n_stages(self) -> int:
        return self.value

    @property
    def weights(self) -> Tuple[Fraction, ...]:
        return SSP_WEIGHTS[self.value]

    def advance(self, state: S, update: Update) -> S:
        """
        Advance `state` by one step.

        Args:
            state: Initial state.
            update: Forward-Euler sub-step, mapping a state to the state one time
                step later.

        Returns:
            The advanced state.
        """
        match self:
            case RungeKuttaOrder.RK1:
                return advance_rk1(state, update)
            case RungeKuttaOrder.RK2:
                return advance_rk2(state, update)
            case RungeKuttaOrder.RK3:
                return advance_rk3(state, update)

    async def advance_async(
        self, state: S, update: AsyncUpdate, runtime: Any = None
    ) -> S:
        """
        Advance `state` by one step with an asynchronous, possibly failing update.

        Stages run strictly in sequence. If `update` raises, the exception propagates
        unchanged and no later stage is run.

        Args:
            state: Initial state.
            update: Forward-Euler sub-step returning either a state or an awaitable
                resolving to one.
            runtime: Execution context handed to asynchronous weighted averages.

        Returns:
            The advanced state.
        """
        match self:
            case RungeKuttaOrder.RK1:
                return await advance_rk1_async(state, update, runtime)
            case RungeKuttaOrder.RK2:
                return await advance_rk2_async(state, update, runtime)
            case RungeKuttaOrder.RK3:
                return await advance_rk3_async(state, update, runtime)


def status_print(msg: str, closing: bool = False, width: int = 100):
    """
    Print a status message with a fixed width.

    Args:
        msg: Message to print.
        closing: Whether this is the closing message to print. If False, it will print
            the message without a trailing newline.
        width: Width of the printed message.
    """
    print(f"\r{msg:<{width}}", end="\n" if closing else "")


def advance_steps(
    order: Union[RungeKuttaOrder, int],
    state: S,
    update: Update,
    n: int,
    *,
    verbose: bool = False,
    log_freq: int = 100,
) -> S:
    """
    Advance a state by `n` steps.

    After each step, a state with an `iteration` attribute is expected to have an
    integral iteration; a `RuntimeWarning` is issued otherwise.

    Args:
        order: Runge-Kutta order, as a `RungeKuttaOrder` or an integer.
        state: Initial state.
        update: Forward-Euler sub-step.
        n: Number of steps to take.
        verbose: Whether to print a status line during integration.
        log_freq: Step frequency of status line updates.

    Returns:
        The state after `n` steps.
    """
    if n < 0:
        raise ValueError(f"Number of steps must be non-negative, got {n}.")
    scheme = (
        order if isinstance(order, RungeKuttaOrder) else RungeKuttaOrder.from_int(order)
    )

    if verbose:
        status_print(f"Advancing {n} steps with {scheme.key()}")

    for step in range(1, n + 1):
        state = scheme.advance(state, update)

        iteration = getattr(state, "iteration", None)
        if iteration is not None and Fraction(iteration).denominator != 1:
            warnings.warn(
                f"Iteration {iteration} is not integral after step {step}.",
                RuntimeWarning,
            )

        if verbose and (step % log_freq == 0 or step == n):
            status_print(f"Step {step}/{n}, t={getattr(state, 'time', float('nan'))}")

    if verbose:
        status_print(f"Finished {n} steps with {scheme.key()}", closing=True)

    return state
