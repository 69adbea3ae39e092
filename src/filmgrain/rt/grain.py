"""
Grain synthesis.

Two strategies share one interface:
  CoherentGrain  deterministic multi-frequency gradient noise with a film response curve
  FastGrain      independent per-pixel random draws; not spatially coherent, only
                 reproducible when seeded. Opt-in only.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.random import default_rng

from .noise import NoiseField

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class IsoProfile:
    intensity: float
    size: float
    contrast: float

ISO_PROFILES = {
    100:  IsoProfile(intensity=0.08, size=0.7, contrast=0.3),
    200:  IsoProfile(intensity=0.12, size=0.8, contrast=0.4),
    400:  IsoProfile(intensity=0.18, size=0.9, contrast=0.5),
    800:  IsoProfile(intensity=0.25, size=1.0, contrast=0.6),
    1600: IsoProfile(intensity=0.35, size=1.2, contrast=0.7),
    3200: IsoProfile(intensity=0.50, size=1.5, contrast=0.8),
}
DEFAULT_ISO = 800

def iso_profile(iso) -> IsoProfile:
    """Profile for an ISO key; "auto", None and unknown values fall back to ISO 800."""
    try:
        key = int(iso)
    except (TypeError, ValueError):
        return ISO_PROFILES[DEFAULT_ISO]
    return ISO_PROFILES.get(key, ISO_PROFILES[DEFAULT_ISO])

def film_curve(v):
    return np.tanh(v*2.0) * 0.5

def _check_dims(width, height, grain_size):
    if width <= 0 or height <= 0:
        raise ValueError(f"grain field needs positive dimensions, got {width}x{height}")
    if not grain_size > 0:
        raise ValueError(f"grain_size must be > 0, got {grain_size}")

class GrainAlgorithm:
    name = "base"
    deterministic = False

    def synthesize(self, width: int, height: int, grain_size: float) -> np.ndarray:
        raise NotImplementedError

class CoherentGrain(GrainAlgorithm):
    name = "coherent"
    deterministic = True

    SCALES = (1.0, 2.0, 4.0)          # fine, medium, coarse
    WEIGHTS = (1.0, 1.0/2, 1.0/3)     # higher frequency -> less weight

    def __init__(self, row_block: int = 256, noise: Optional[NoiseField] = None):
        if row_block < 1:
            raise ValueError("row_block must be >= 1")
        self.row_block = row_block
        self.noise = noise or NoiseField()

    def synthesize_rows(self, width, y0, y1, grain_size) -> np.ndarray:
        """Grain for rows [y0, y1). Rows are independent, so blocks may be computed in any order."""
        xs = np.arange(width, dtype=np.float64)
        ys = np.arange(y0, y1, dtype=np.float64)
        acc = np.zeros((y1 - y0, width), dtype=np.float64)
        for scale, weight in zip(self.SCALES, self.WEIGHTS):
            s = scale * grain_size
            acc += self.noise.sample_grid(xs / s, ys / s) * weight
        return film_curve(acc / len(self.SCALES))

    def synthesize(self, width, height, grain_size):
        _check_dims(width, height, grain_size)
        out = np.empty((height, width), dtype=np.float64)
        for y0 in range(0, height, self.row_block):
            y1 = min(height, y0 + self.row_block)
            out[y0:y1] = self.synthesize_rows(width, y0, y1, grain_size)
        return out

class FastGrain(GrainAlgorithm):
    name = "fast"
    MIX = (0.6, 0.3, 0.1)

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.deterministic = seed is not None

    def synthesize(self, width, height, grain_size):
        _check_dims(width, height, grain_size)
        rng = default_rng(self.seed)
        u = rng.random((3, height, width)) - 0.5
        return (u[0]*self.MIX[0] + u[1]*self.MIX[1] + u[2]*self.MIX[2]) * grain_size

ALGORITHMS = {"coherent": CoherentGrain, "fast": FastGrain}

def get_algorithm(name: str, seed: Optional[int] = None) -> GrainAlgorithm:
    if name not in ALGORITHMS:
        raise ValueError(f"unknown grain algorithm {name!r}; choose from {sorted(ALGORITHMS)}")
    if name == "fast":
        logger.info("using uncorrelated fast grain (seed=%s)", seed)
        return FastGrain(seed=seed)
    return CoherentGrain()
