import asyncio
from fractions import Fraction
from typing import List

import numpy as np
import pytest

from plmrk.runge_kutta import (
    RungeKuttaOrder,
    advance_rk2_async,
    advance_rk3_async,
    weighted_average,
    weighted_average_async,
)
from plmrk.solution_states import SolutionStateArcArray, SolutionStateArray

ORDERS = [RungeKuttaOrder.RK1, RungeKuttaOrder.RK2, RungeKuttaOrder.RK3]


class UpdateFailed(Exception):
    pass


class PartitionedState(SolutionStateArray):
    """
    State whose blend is coordinated through the runtime handle.
    """

    async def weighted_average_async(self, b, s0, runtime):
        await asyncio.sleep(0)
        runtime.append(b)
        return weighted_average(self, b, s0)


def linear_update(s):
    return SolutionStateArray(
        s.time + 0.1, s.iteration + 1, s.conserved - 0.1 * s.conserved
    )


async def async_linear_update(s):
    await asyncio.sleep(0)
    return linear_update(s)


@pytest.mark.parametrize("rk", ORDERS)
def test_async_matches_sync(rk):
    s0 = SolutionStateArray(0.0, 0, np.linspace(1, 2, 6))
    expected = rk.advance(s0, linear_update)
    result = asyncio.run(rk.advance_async(s0, async_linear_update))

    assert result.time == expected.time
    assert result.iteration == expected.iteration == 1
    np.testing.assert_array_equal(result.conserved, expected.conserved)


@pytest.mark.parametrize("rk", ORDERS)
def test_async_accepts_plain_update(rk):
    s0 = SolutionStateArcArray(0.0, 0, np.ones(3))

    def update(s):
        return s + SolutionStateArcArray(1.0, 1, np.ones(3))

    result = asyncio.run(rk.advance_async(s0, update))
    assert result.iteration == 1
    np.testing.assert_allclose(result.to_numpy(), 2.0)


@pytest.mark.parametrize(
    "rk,failing_stage",
    [(rk, stage) for rk in ORDERS for stage in range(1, rk.n_stages + 1)],
)
def test_failure_short_circuits(rk, failing_stage):
    """
    Test that the first failing stage surfaces its exception unchanged and no later
    stage runs.
    """
    error = UpdateFailed(f"stage {failing_stage}")
    calls: List[int] = []

    async def update(s):
        calls.append(len(calls) + 1)
        await asyncio.sleep(0)
        if len(calls) == failing_stage:
            raise error
        return linear_update(s)

    with pytest.raises(UpdateFailed) as excinfo:
        asyncio.run(rk.advance_async(SolutionStateArray(0.0, 0, 1.0), update))

    assert excinfo.value is error
    assert calls == list(range(1, failing_stage + 1))


def test_rk3_stage_two_failure_skips_stage_three():
    calls = []

    async def update(s):
        calls.append(s.iteration)
        if len(calls) == 2:
            raise UpdateFailed("partition 3 did not respond")
        return linear_update(s)

    with pytest.raises(UpdateFailed, match="partition 3"):
        asyncio.run(advance_rk3_async(SolutionStateArray(0.0, 0, 1.0), update))
    assert len(calls) == 2


@pytest.mark.parametrize("rk", ORDERS)
def test_runtime_reaches_async_weighted_average(rk):
    runtime: List[Fraction] = []

    async def update(s):
        return PartitionedState(s.time + 1.0, s.iteration + 1, s.conserved)

    result = asyncio.run(
        rk.advance_async(PartitionedState(0.0, 0, 1.0), update, runtime=runtime)
    )
    assert runtime == list(rk.weights)
    assert result.iteration == 1


def test_stages_run_sequentially():
    in_flight = 0
    peak = 0
    inputs = []
    outputs = []

    async def update(s):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        inputs.append(s)
        await asyncio.sleep(0.001)
        out = linear_update(s)
        outputs.append(out)
        in_flight -= 1
        return out

    asyncio.run(advance_rk2_async(SolutionStateArray(0.0, 0, 1.0), update))
    assert peak == 1
    # the second stage consumes the output of the first
    assert inputs[1] is outputs[0]


def test_weighted_average_async_falls_back_to_sync():
    result = asyncio.run(
        weighted_average_async(Fraction(2), Fraction(1, 2), Fraction(0), None)
    )
    assert result == 1
