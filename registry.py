from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
from PIL import Image


# =============== Registry ===============
class GeneratorRegistry:
    def __init__(self) -> None:
        self._by_name: Dict[str, type[BaseGenerator]] = {}

    def register(self, name: str, cls: type["BaseGenerator"]) -> None:
        key = name.strip().lower()
        self._by_name[key] = cls

    def names(self) -> list[str]:
        return sorted(self._by_name.keys())

    def get(self, name: str) -> type["BaseGenerator"]:
        key = name.strip().lower()
        if key not in self._by_name:
            raise KeyError(f"Unknown generator '{name}'. Available: {', '.join(self.names()) or '(none)'}")
        return self._by_name[key]

    def create(self, name: str, **kwargs) -> "BaseGenerator":
        return self.get(name)(**kwargs)


REGISTRY = GeneratorRegistry()


# =============== Base & common utils ===============
@dataclass
class BaseGenerator:
    seed: Optional[int] = None
    def generate(self, input_image: Image.Image, **kwargs) -> Image.Image:  # pragma: no cover
        raise NotImplementedError


def _rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed if seed is not None else np.random.SeedSequence().entropy)


# --- Pillow <-> normalized RGBA float buffers ---
def to_rgba01(img: Image.Image) -> np.ndarray:
    """Any Pillow image -> H×W×4 float64 in [0,1]."""
    return np.asarray(img.convert("RGBA"), dtype=np.float64) / 255.0


def from_rgba01(arr: np.ndarray) -> Image.Image:
    """H×W×4 float buffer in [0,1] -> 8-bit RGBA Pillow image."""
    out = np.rint(np.clip(arr, 0.0, 1.0) * 255.0).astype(np.uint8)
    return Image.fromarray(out)
