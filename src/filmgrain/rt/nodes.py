import numpy as np

from .errors import InvalidBuffer
from .grain import iso_profile
from .lut import LUTTable, sample_grid

LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float64)

def as_rgba(data, width=None, height=None) -> np.ndarray:
    """Validate a caller buffer and return it as an (h, w, 4) uint8 array."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        data = np.frombuffer(data, dtype=np.uint8)
    arr = np.asarray(data)
    if arr.dtype != np.uint8:
        raise InvalidBuffer(f"expected uint8 samples, got {arr.dtype}")
    if width is not None or height is not None:
        if width is None or height is None or width <= 0 or height <= 0:
            raise InvalidBuffer(f"bad dimensions {width}x{height}")
        if arr.size != width*height*4:
            raise InvalidBuffer(f"buffer holds {arr.size} samples, {width}x{height} RGBA needs {width*height*4}")
        return arr.reshape(height, width, 4)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise InvalidBuffer(f"expected (h, w, 4) RGBA array, got shape {arr.shape}")
    if arr.shape[0] <= 0 or arr.shape[1] <= 0:
        raise InvalidBuffer(f"bad dimensions {arr.shape[1]}x{arr.shape[0]}")
    return arr

def luminance_map(img):
    """Per-pixel luma in [0, 1] from 8-bit R, G, B (not gamma corrected)."""
    return img[..., :3].astype(np.float64) @ LUMA / 255.0

def adaptive_strength(luminance, base_intensity):
    # gaussian around mid-gray; 0.4x floor at the extremes
    midtone = np.exp(-(np.asarray(luminance, dtype=np.float64) - 0.5)**2 / 0.18)
    return base_intensity * (0.4 + 0.6*midtone)

def apply_grain(img, grain, luminance, settings, inplace=False):
    h, w = img.shape[:2]
    if grain.shape != (h, w) or luminance.shape != (h, w):
        raise ValueError(f"grain {grain.shape} / luminance {luminance.shape} do not match image {(h, w)}")
    iso = iso_profile(settings.iso)
    base = settings.strength * iso.intensity
    # one rounded delta shared by R, G and B keeps the grain neutral
    delta = np.rint(grain * adaptive_strength(luminance, base) * 255.0)
    rgb = np.clip(img[..., :3].astype(np.float64) + delta[..., None], 0, 255).astype(np.uint8)
    out = img if inplace else img.copy()
    out[..., :3] = rgb
    return out

def apply_lut(img, table: LUTTable, strength, row_block=256):
    """Blend the graded color over the original by strength; alpha untouched.

    Rows are graded in blocks of row_block so temporaries stay a few blocks in size.
    """
    if table is None or strength == 0:
        return img
    if row_block < 1:
        raise ValueError("row_block must be >= 1")
    out = img.copy()
    for y0 in range(0, img.shape[0], row_block):
        y1 = min(img.shape[0], y0 + row_block)
        src = img[y0:y1, :, :3].astype(np.float64)
        graded = sample_grid(table, src / 255.0) * 255.0
        out[y0:y1, :, :3] = np.clip(np.rint(src + (graded - src)*strength), 0, 255).astype(np.uint8)
    return out
