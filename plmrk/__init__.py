from .config import PLMConfig, RungeKuttaConfig, SchemeConfig
from .piecewise_linear import (
    compute_plm_slopes,
    plm_gradient,
    plm_gradient3,
    plm_gradient4,
    plm_gradient_array,
)
from .runge_kutta import (
    InvalidRungeKuttaOrder,
    RungeKuttaOrder,
    SolutionState,
    advance_rk1,
    advance_rk2,
    advance_rk3,
    advance_steps,
    weighted_average,
)
from .solution_states import SolutionStateArcArray, SolutionStateArray
from .tools.shared_array import SharedArray

__all__ = [
    "InvalidRungeKuttaOrder",
    "PLMConfig",
    "RungeKuttaConfig",
    "RungeKuttaOrder",
    "SchemeConfig",
    "SharedArray",
    "SolutionState",
    "SolutionStateArcArray",
    "SolutionStateArray",
    "advance_rk1",
    "advance_rk2",
    "advance_rk3",
    "advance_steps",
    "compute_plm_slopes",
    "plm_gradient",
    "plm_gradient3",
    "plm_gradient4",
    "plm_gradient_array",
    "weighted_average",
]
