import math
import warnings
from dataclasses import dataclass, field, fields
from typing import IO, Any, Dict, Union

from .runge_kutta import RungeKuttaOrder
from .tools.yaml_helper import yaml_dump, yaml_load


def _check_keys(cls: type, d: Dict[str, Any]):
    if not isinstance(d, dict):
        raise ValueError(f"Expected a mapping for {cls.__name__}, got {d!r}.")
    allowed = {f.name for f in fields(cls)}
    unknown = set(d) - allowed
    if unknown:
        raise ValueError(
            f"Unknown {cls.__name__} keys: {sorted(unknown)}. "
            f"Expected a subset of {sorted(allowed)}."
        )


@dataclass(frozen=True, slots=True)
class PLMConfig:
    """
    Configuration of the piecewise-linear slope limiter.

    Attributes:
        theta: Limiter parameter. 1 is the most diffusive (minmod-like) and 2 the
            least diffusive (monotonized central). Values outside [1, 2] are allowed
            but warned about.
    """

    theta: float = 1.5

    def __post_init__(self):
        if not math.isfinite(self.theta) or self.theta <= 0:
            raise ValueError(f"theta must be finite and positive, got {self.theta}.")
        if not 1 <= self.theta <= 2:
            warnings.warn(
                f"theta={self.theta} is outside the conventional range [1, 2]."
            )

    def key(self) -> str:
        return f"plm-{self.theta}"

    def to_dict(self) -> dict:
        return dict(theta=self.theta)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PLMConfig":
        _check_keys(cls, d)
        return cls(**d)


@dataclass(frozen=True, slots=True)
class RungeKuttaConfig:
    """
    Configuration of the SSP Runge-Kutta time integrator.

    Attributes:
        order: Order of the scheme, 1, 2, or 3.
    """

    order: int = 2

    def __post_init__(self):
        RungeKuttaOrder.from_int(self.order)

    @property
    def rk_order(self) -> RungeKuttaOrder:
        return RungeKuttaOrder.from_int(self.order)

    def key(self) -> str:
        return self.rk_order.key()

    def to_dict(self) -> dict:
        return dict(order=self.order)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RungeKuttaConfig":
        _check_keys(cls, d)
        return cls(**d)


@dataclass(frozen=True, slots=True)
class SchemeConfig:
    """
    Time integrator and slope limiter settings of a solver, readable from and
    writable to YAML.

    Attributes:
        integrator: Runge-Kutta configuration.
        limiter: Slope limiter configuration.
    """

    integrator: RungeKuttaConfig = field(default_factory=RungeKuttaConfig)
    limiter: PLMConfig = field(default_factory=PLMConfig)

    def key(self) -> str:
        return f"{self.integrator.key()}-{self.limiter.key()}"

    def to_dict(self) -> dict:
        return dict(
            integrator=self.integrator.to_dict(),
            limiter=self.limiter.to_dict(),
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SchemeConfig":
        """
        Build a configuration from a dictionary such as the one returned by
        `to_dict`. Missing sections take their defaults.

        Raises:
            ValueError: If `d` or one of its sections has unknown keys.
            InvalidRungeKuttaOrder: If the integrator order is not 1, 2, or 3.
        """
        _check_keys(cls, d)
        return cls(
            integrator=RungeKuttaConfig.from_dict(d.get("integrator") or {}),
            limiter=PLMConfig.from_dict(d.get("limiter") or {}),
        )

    def to_yaml(self) -> str:
        return yaml_dump(self.to_dict())

    @classmethod
    def from_yaml(cls, src: Union[str, IO[str]]) -> "SchemeConfig":
        """
        Load a configuration from a YAML string or an open text file.
        """
        d = yaml_load(src)
        if d is None:
            d = {}
        if not isinstance(d, dict):
            raise ValueError(f"Expected a YAML mapping, got {type(d).__name__}.")
        return cls.from_dict(d)
