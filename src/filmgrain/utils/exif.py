"""EXIF fields used to pick a grain profile. Only the ISO feeds the pipeline."""
import logging
import math

from PIL import Image, ExifTags, UnidentifiedImageError

from ..rt.grain import ISO_PROFILES, DEFAULT_ISO

logger = logging.getLogger(__name__)

_FIELDS = {
    "iso": ExifTags.Base.ISOSpeedRatings,
    "aperture": ExifTags.Base.FNumber,
    "shutter_speed": ExifTags.Base.ExposureTime,
    "focal_length": ExifTags.Base.FocalLength,
    "camera": ExifTags.Base.Model,
    "lens": ExifTags.Base.LensModel,
    "date": ExifTags.Base.DateTimeOriginal,
}

def _plain(v):
    if isinstance(v, tuple):
        v = v[0] if v else None
    if isinstance(v, bytes):
        v = v.decode("utf-8", "replace")
    if isinstance(v, str):
        v = v.strip("\x00 ").strip()
        return v or None
    if v is None:
        return None
    # IFDRational and friends
    f = float(v)
    return int(f) if f.is_integer() else f

def read_exif(path) -> dict | None:
    try:
        with Image.open(path) as im:
            exif = im.getexif()
    except (OSError, UnidentifiedImageError) as e:
        logger.warning("EXIF reading error for %s: %s", path, e)
        return None
    tags = dict(exif)
    tags.update(exif.get_ifd(ExifTags.IFD.Exif))
    data = {}
    for key, tag in _FIELDS.items():
        if tag in tags:
            v = _plain(tags[tag])
            if v is not None:
                data[key] = v
    logger.debug("EXIF extracted: %s", data)
    return data or None

def format_exif_display(exif: dict | None) -> str:
    if not exif:
        return "No EXIF data"
    parts = []
    if exif.get("camera"): parts.append(f"Camera: {exif['camera']}")
    if exif.get("iso"): parts.append(f"ISO: {exif['iso']}")
    if exif.get("aperture"): parts.append(f"Aperture: f/{exif['aperture']}")
    if exif.get("shutter_speed"): parts.append(f"Shutter: 1/{round(1/exif['shutter_speed'])}s")
    if exif.get("focal_length"): parts.append(f"Focal: {exif['focal_length']}mm")
    return " | ".join(parts)

def recommended_iso(exif: dict | None) -> int:
    """Simulated ISO for the shot's ISO; 800 when unknown.

    Snaps to the nearest profile key on a log2 scale rather than rounding to
    hundreds, so every result is a real profile (250 -> 200, 6400 -> 3200) and
    never silently falls back to ISO 800.
    """
    iso = (exif or {}).get("iso")
    if not iso or iso <= 0:
        return DEFAULT_ISO
    return min(ISO_PROFILES, key=lambda k: abs(math.log2(k) - math.log2(iso)))
