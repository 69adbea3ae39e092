"""
3D LUT tables in .cube format and trilinear sampling.

Rows are stored in file order with red varying fastest:
    index = b*size**2 + g*size + r
"""
import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import numpy as np

from .errors import MalformedLUT, LUTSizeMismatch

logger = logging.getLogger(__name__)

DEFAULT_CUBE_SIZE = 33

@dataclass
class LUTTable:
    size: int
    samples: np.ndarray          # (N, 3) float64 in [0, 1]
    title: str = "Unknown LUT"

    @property
    def expected_rows(self) -> int:
        return self.size ** 3

    @property
    def complete(self) -> bool:
        return len(self.samples) == self.expected_rows

def parse_cube(text: str) -> LUTTable:
    size = DEFAULT_CUBE_SIZE
    title = "Unknown LUT"
    rows = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("TITLE"):
            title = line[len("TITLE"):].replace('"', "").strip()
            continue
        if line.startswith("LUT_3D_SIZE"):
            raw = line[len("LUT_3D_SIZE"):].strip()
            try:
                size = int(raw)
            except ValueError:
                raise MalformedLUT(f"bad LUT_3D_SIZE value {raw!r}") from None
            if size < 2:
                raise MalformedLUT(f"LUT_3D_SIZE must be >= 2, got {size}")
            continue
        parts = line.split()
        if len(parts) != 3:
            continue
        try:
            rows.append([float(v) for v in parts])
        except ValueError:
            continue

    if not rows:
        raise MalformedLUT("no valid LUT data found")

    samples = np.clip(np.asarray(rows, dtype=np.float64), 0.0, 1.0)
    table = LUTTable(size=size, samples=samples, title=title)
    if not table.complete:
        msg = f"LUT size mismatch: expected {table.expected_rows} rows, got {len(samples)}"
        logger.warning("%s (%s)", msg, title)
        warnings.warn(msg, LUTSizeMismatch, stacklevel=2)
    return table

def load_cube(path) -> LUTTable:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedLUT(f"{path.name} is not UTF-8 text") from e
    table = parse_cube(text)
    if "TITLE" not in text:
        table.title = path.stem
    logger.info("loaded LUT %s (size %d, %d rows)", path.name, table.size, len(table.samples))
    return table

def to_cube(table: LUTTable) -> str:
    lines = [f'TITLE "{table.title}"', f"LUT_3D_SIZE {table.size}", ""]
    lines += [f"{r:.6f} {g:.6f} {b:.6f}" for r, g, b in table.samples]
    return "\n".join(lines) + "\n"

def identity_lut(size: int = DEFAULT_CUBE_SIZE) -> LUTTable:
    if size < 2:
        raise ValueError("identity LUT needs size >= 2")
    axis = np.arange(size, dtype=np.float64) / (size - 1)
    b, g, r = np.meshgrid(axis, axis, axis, indexing="ij")
    samples = np.stack([r.ravel(), g.ravel(), b.ravel()], axis=1)
    return LUTTable(size=size, samples=samples, title="Identity")

def sample_grid(table: LUTTable, rgb) -> np.ndarray:
    """Trilinear lookup for an (..., 3) array of normalized colors."""
    rgb = np.asarray(rgb, dtype=np.float64)
    size = table.size
    data = table.samples
    last = len(data) - 1

    pos = rgb * (size - 1)
    lo = np.clip(np.floor(pos), 0, size - 1).astype(np.intp)
    hi = np.clip(lo + 1, 0, size - 1)
    frac = pos - lo

    def corner(xi, yi, zi):
        idx = np.clip(zi*size*size + yi*size + xi, 0, last)
        return data[idx]

    x0, y0, z0 = lo[..., 0], lo[..., 1], lo[..., 2]
    x1, y1, z1 = hi[..., 0], hi[..., 1], hi[..., 2]
    dx, dy, dz = frac[..., 0:1], frac[..., 1:2], frac[..., 2:3]

    c000 = corner(x0, y0, z0); c100 = corner(x1, y0, z0)
    c010 = corner(x0, y1, z0); c110 = corner(x1, y1, z0)
    c001 = corner(x0, y0, z1); c101 = corner(x1, y0, z1)
    c011 = corner(x0, y1, z1); c111 = corner(x1, y1, z1)

    c00 = c000 + (c100 - c000) * dx
    c01 = c001 + (c101 - c001) * dx
    c10 = c010 + (c110 - c010) * dx
    c11 = c011 + (c111 - c011) * dx

    c0 = c00 + (c10 - c00) * dy
    c1 = c01 + (c11 - c01) * dy
    return c0 + (c1 - c0) * dz

def sample(table: LUTTable, r: float, g: float, b: float) -> Tuple[float, float, float]:
    out = sample_grid(table, [r, g, b])
    return float(out[0]), float(out[1]), float(out[2])
