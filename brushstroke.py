# brushstroke.py — Van Gogh LIC generator (registers itself)
# -----------------------------------------------------------------------------
# Wraps the LIC core (vangogh.VanGoghLIC) as a Pillow-in / Pillow-out
# generator in the shared registry.REGISTRY, so the CLI (and anything else that
# speaks BaseGenerator) can run it by name.
#
# Usage (examples):
#   # brush strokes following the edges of a style image
#   python main.py --input photo.jpg --effect style.png --output out.png \
#     --filter-length 6 --integration-steps 20
#
#   # noise-driven strokes, effect field stretched to the input size
#   python main.py --input photo.jpg --effect style.png --output out.png \
#     --convolve-with WHITE_NOISE --noise-magnitude 4 --fit stretch --seed 7
#
# Notes:
# - The effect image drives only the flow direction; the input image provides
#   the colors.
# - fit=tile (default) wraps the effect field around when sizes differ;
#   fit=stretch resizes the effect image to the input size first.
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from PIL import Image

from licconfig import ConvolveWith, EffectChannel, EffectOperator, InvalidArgument, LICParameters
from registry import REGISTRY, BaseGenerator, from_rgba01, to_rgba01
from vangogh import VanGoghLIC

__all__ = ["VanGoghGenerator", "FIT_MODES"]

FIT_MODES = ("tile", "stretch")

_LIC_FIELDS = {f.name for f in fields(LICParameters)}


def _coerce_param(param: Dict[str, Any], value: Any) -> Any:
    kind = param["type"]
    if isinstance(kind, type) and issubclass(kind, Enum):
        return kind.parse(value)
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"{param['name']}: cannot interpret {value!r} as {kind.__name__}") from e


@dataclass
class VanGoghGenerator(BaseGenerator):
    """
    Line Integral Convolution brush strokes.

    Parameters (extras)
    -------------------
    effect_image: PIL.Image    = input    # style image whose HSL channel drives the flow
    filter_length: float       = 5.0      # tent filter half-width (px), floored at 0.1
    noise_magnitude: float     = 2.0      # noise grid spacing (white-noise mode)
    integration_steps: float   = 25       # trapezoid intervals over [-L, L]
    minimum_value: float       = -25      # noise normalization range, in tenths
    maximum_value: float       = 25
    effect_channel: str        = BRIGHTNESS   # HUE | SATURATION | BRIGHTNESS
    effect_operator: str       = GRADIENT     # DERIVATIVE | GRADIENT
    convolve_with: str         = SOURCE_IMAGE # WHITE_NOISE | SOURCE_IMAGE
    fit: str                   = tile     # tile | stretch
    """
    workers: Optional[int] = None

    @staticmethod
    def get_params() -> List[Dict[str, Any]]:
        d = LICParameters()
        return [
            {
                "name": "filter_length",
                "type": float,
                "default": d.filter_length,
                "help": "Half-width of the tent filter in pixels (floored at 0.1).",
            },
            {
                "name": "noise_magnitude",
                "type": float,
                "default": d.noise_magnitude,
                "help": "Grid spacing of the gradient noise (white-noise mode).",
            },
            {
                "name": "integration_steps",
                "type": float,
                "default": d.integration_steps,
                "help": "Number of trapezoid intervals along each streamline.",
            },
            {
                "name": "minimum_value",
                "type": float,
                "default": d.minimum_value,
                "help": "Lower bound of the noise integral, in tenths.",
            },
            {
                "name": "maximum_value",
                "type": float,
                "default": d.maximum_value,
                "help": "Upper bound of the noise integral, in tenths.",
            },
            {
                "name": "effect_channel",
                "type": EffectChannel,
                "default": d.effect_channel.name,
                "choices": EffectChannel.names(),
                "help": "HSL channel of the effect image that defines the flow.",
            },
            {
                "name": "effect_operator",
                "type": EffectOperator,
                "default": d.effect_operator.name,
                "choices": EffectOperator.names(),
                "help": "DERIVATIVE crosses edges, GRADIENT follows them.",
            },
            {
                "name": "convolve_with",
                "type": ConvolveWith,
                "default": d.convolve_with.name,
                "choices": ConvolveWith.names(),
                "help": "Smear white noise over the input, or the input image itself.",
            },
            {
                "name": "fit",
                "type": str,
                "default": "tile",
                "choices": list(FIT_MODES),
                "help": "How an effect image of a different size is mapped onto the input.",
            },
        ]

    @classmethod
    def build_parameters(cls, **kwargs) -> LICParameters:
        values = {}
        for param in cls.get_params():
            name = param["name"]
            if name in _LIC_FIELDS and kwargs.get(name) is not None:
                values[name] = _coerce_param(param, kwargs[name])
        return LICParameters(**values)

    def generate(self, input_image: Image.Image, **kwargs) -> Image.Image:
        effect = kwargs.get("effect_image")
        if effect is None:
            effect = input_image

        fit = str(kwargs.get("fit") or "tile").lower()
        if fit not in FIT_MODES:
            raise InvalidArgument(f"fit must be one of {', '.join(FIT_MODES)} (got {fit!r})")
        if fit == "stretch" and effect.size != input_image.size:
            effect = effect.resize(input_image.size, Image.Resampling.LANCZOS)

        lic = VanGoghLIC(self.build_parameters(**kwargs), seed=self.seed, workers=self.workers)
        out = lic.compute(to_rgba01(input_image), to_rgba01(effect), cancel=kwargs.get("cancel"))
        return from_rgba01(out)


# Register with the shared registry so the CLI can resolve it by name
REGISTRY.register("van_gogh", VanGoghGenerator)
