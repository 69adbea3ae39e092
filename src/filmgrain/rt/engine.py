import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .catalog import LUTCache, LUTCatalog
from .errors import FilmGrainError, LUTNotAvailable, MalformedLUT
from .grain import CoherentGrain, GrainAlgorithm, iso_profile
from .lut import LUTTable
from .nodes import as_rgba, luminance_map, apply_grain, apply_lut
from ..utils.params import GrainSettings, LUTSettings

logger = logging.getLogger(__name__)

@dataclass
class PipelineResult:
    image: np.ndarray
    warnings: List[FilmGrainError] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)

class PixelPipeline:
    """
    Grain, then optional LUT grading, over a caller-owned RGBA buffer.

    No per-image state is kept between calls; only resolved LUT tables are
    cached. The input buffer is never modified.
    """

    def __init__(self, catalog: Optional[LUTCatalog] = None, cache: Optional[LUTCache] = None,
                 algorithm: Optional[GrainAlgorithm] = None):
        self.catalog = catalog
        self.cache = cache if cache is not None else LUTCache()
        self.algorithm = algorithm or CoherentGrain()

    def resolve_lut(self, identifier: str) -> LUTTable:
        table = self.cache.get(identifier)
        if table is not None:
            return table
        if self.catalog is None:
            raise LUTNotAvailable(f"no LUT catalog configured for {identifier!r}")
        table = self.catalog.load(identifier)
        self.cache.put(identifier, table)
        return table

    def grain_stage(self, img, settings: GrainSettings):
        h, w = img.shape[:2]
        size = settings.grain_size * iso_profile(settings.iso).size
        grain = self.algorithm.synthesize(w, h, size)
        return apply_grain(img, grain, luminance_map(img), settings)

    def process(self, buffer, grain_settings: GrainSettings,
                lut_settings: Optional[LUTSettings] = None) -> PipelineResult:
        img = as_rgba(buffer)
        result = PipelineResult(self.grain_stage(img, grain_settings))

        if lut_settings is None or not lut_settings.active:
            return result
        try:
            table = self.resolve_lut(lut_settings.selected_lut)
        except (LUTNotAvailable, MalformedLUT) as e:
            logger.warning("LUT %r skipped, returning grain-only image: %s", lut_settings.selected_lut, e)
            result.warnings.append(e)
            return result
        result.image = apply_lut(result.image, table, lut_settings.lut_strength)
        return result
