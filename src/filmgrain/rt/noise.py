"""
Deterministic 2D gradient noise.

Lattice gradients come from the classic shader hash
    angle = frac(sin(ix*12.9898 + iy*78.233) * 43758.5453) * 2*pi
so any implementation using IEEE doubles reproduces the same field.
"""
import numpy as np

HASH_X = 12.9898
HASH_Y = 78.233
HASH_SCALE = 43758.5453
TWO_PI = 2.0 * np.pi

def gradient_angle(ix, iy):
    h = np.sin(ix*HASH_X + iy*HASH_Y) * HASH_SCALE
    return (h - np.floor(h)) * TWO_PI

def _gradient_dot(ix, iy, dx, dy):
    a = gradient_angle(ix, iy)
    return np.cos(a)*dx + np.sin(a)*dy

def fade(t):
    return t*t*t*(t*(t*6 - 15) + 10)

def lerp(a, b, t):
    return a + t*(b - a)

def perlin(x, y):
    """Gradient noise at (x, y); arrays broadcast. Roughly in [-1, 1], 0 on lattice points."""
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    X = np.floor(x); Y = np.floor(y)
    xf = x - X; yf = y - Y

    n00 = _gradient_dot(X,   Y,   xf,   yf)
    n01 = _gradient_dot(X,   Y+1, xf,   yf-1)
    n10 = _gradient_dot(X+1, Y,   xf-1, yf)
    n11 = _gradient_dot(X+1, Y+1, xf-1, yf-1)

    u = fade(xf); v = fade(yf)
    return lerp(lerp(n00, n10, u), lerp(n01, n11, u), v)

class NoiseField:
    """Stateless coherent noise source."""

    def sample(self, x: float, y: float) -> float:
        return float(perlin(x, y))

    def sample_grid(self, xs, ys) -> np.ndarray:
        """Noise over the grid xs (columns) by ys (rows) -> shape (len(ys), len(xs))."""
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        return perlin(xs[None, :], ys[:, None])
