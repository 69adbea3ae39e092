class FilmGrainError(Exception):
    """Base class for errors raised by the processing core."""

class InvalidBuffer(FilmGrainError, ValueError):
    """Pixel buffer has bad dimensions, dtype or length."""

class MalformedLUT(FilmGrainError, ValueError):
    """LUT payload could not be parsed into a usable table."""

class LUTNotAvailable(FilmGrainError, LookupError):
    """Requested LUT identifier could not be resolved."""

class LUTSizeMismatch(UserWarning):
    """Number of LUT rows differs from size**3; sampling clamps indices."""
