from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Type, TypeVar

__all__ = [
    "InvalidArgument",
    "ComputationCancelled",
    "EffectChannel",
    "EffectOperator",
    "ConvolveWith",
    "LICParameters",
    "ResolvedParameters",
    "MIN_FILTER_LENGTH",
]

MIN_FILTER_LENGTH = 0.1


# =============== Errors ===============
class InvalidArgument(ValueError):
    """Raised when images or parameters handed to the LIC core are unusable."""


class ComputationCancelled(RuntimeError):
    """Raised when a cancel event is set while row bands are still pending."""


# =============== Selectors ===============
_E = TypeVar("_E", bound="_Selector")


class _Selector(Enum):
    @classmethod
    def parse(cls: Type[_E], value: Any) -> _E:
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            names = ", ".join(m.name for m in cls)
            raise InvalidArgument(f"Invalid value for {cls.__name__}: {value!r} (expected one of {names})") from None

    @classmethod
    def names(cls) -> list[str]:
        return [m.name for m in cls]


class EffectChannel(_Selector):
    HUE = 0
    SATURATION = 1
    BRIGHTNESS = 2


class EffectOperator(_Selector):
    DERIVATIVE = "derivative"
    GRADIENT = "gradient"


class ConvolveWith(_Selector):
    WHITE_NOISE = "white_noise"
    SOURCE_IMAGE = "source_image"


# =============== Parameters ===============
@dataclass
class LICParameters:
    """
    Caller-owned knobs, set between computations.

    minimum_value / maximum_value are given in tenths; the integrator works on
    the scaled range. filter_length is the half-width of the tent filter.
    """
    filter_length: float = 5.0
    noise_magnitude: float = 2.0
    integration_steps: float = 25.0
    minimum_value: float = -25.0
    maximum_value: float = 25.0
    effect_channel: EffectChannel = EffectChannel.BRIGHTNESS
    effect_operator: EffectOperator = EffectOperator.GRADIENT
    convolve_with: ConvolveWith = ConvolveWith.SOURCE_IMAGE

    def resolve(self) -> "ResolvedParameters":
        length = float(self.filter_length)
        noise = float(self.noise_magnitude)
        steps = float(self.integration_steps)
        minv = float(self.minimum_value) / 10.0
        maxv = float(self.maximum_value) / 10.0
        if not noise > 0.0:
            raise InvalidArgument(f"noise_magnitude must be > 0 (got {self.noise_magnitude})")
        if not steps >= 1.0:
            raise InvalidArgument(f"integration_steps must be >= 1 (got {self.integration_steps})")
        numbers = (
            ("filter_length", length),
            ("noise_magnitude", noise),
            ("integration_steps", steps),
            ("minimum_value", minv),
            ("maximum_value", maxv),
        )
        for name, value in numbers:
            if not math.isfinite(value):
                raise InvalidArgument(f"{name} must be a finite number (got {getattr(self, name)})")
        if maxv == minv:
            raise InvalidArgument("minimum_value and maximum_value must differ")
        return ResolvedParameters(
            length=max(length, MIN_FILTER_LENGTH),
            dx=noise,
            dy=noise,
            steps=steps,
            minv=minv,
            maxv=maxv,
            channel=EffectChannel.parse(self.effect_channel),
            operator=EffectOperator.parse(self.effect_operator),
            source=ConvolveWith.parse(self.convolve_with),
        )


@dataclass(frozen=True)
class ResolvedParameters:
    """Snapshot of LICParameters in the units the integrator uses."""
    length: float
    dx: float
    dy: float
    steps: float
    minv: float
    maxv: float
    channel: EffectChannel
    operator: EffectOperator
    source: ConvolveWith

    @property
    def step(self) -> float:
        return 2.0 * self.length / self.steps
