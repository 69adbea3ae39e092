from dataclasses import dataclass, field, asdict
from typing import Union

NO_LUT = "none"

@dataclass
class GrainSettings:
    iso: Union[int, str] = 800     # one of the ISO_PROFILES keys, or "auto"
    strength: float = 0.5          # >= 0, 0..1 typical
    grain_size: float = 1.0        # > 0, multiplies the ISO profile size

@dataclass
class LUTSettings:
    selected_lut: str = NO_LUT
    lut_strength: float = 1.0
    apply_lut: bool = True

    @property
    def active(self) -> bool:
        return self.apply_lut and bool(self.selected_lut) and self.selected_lut != NO_LUT and self.lut_strength != 0

@dataclass
class Settings:
    grain: GrainSettings = field(default_factory=GrainSettings)
    lut: LUTSettings = field(default_factory=LUTSettings)
    algorithm: str = "coherent"
    preset_name: str = ""

    def to_dict(self):
        return asdict(self)
