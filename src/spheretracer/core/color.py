"""Host-side colour helpers used when building scenes.

Colours are plain ``(r, g, b)`` tuples of floats on the host; inside kernels
they are ``vec3`` values like any other vector.
"""

from __future__ import annotations

import numpy as np

Color = tuple[float, float, float]


def from_hsv(h: float, s: float, v: float) -> Color:
    """Convert an HSV colour to RGB.

    Args:
        h: Hue in [0, 1). Values outside wrap around.
        s: Saturation in [0, 1].
        v: Value (brightness) in [0, 1].

    Returns:
        The (r, g, b) colour.
    """
    i = int(h * 6.0)
    f = h * 6.0 - i
    p = v * (1.0 - s)
    q = v * (1.0 - f * s)
    t = v * (1.0 - (1.0 - f) * s)

    sector = i % 6
    if sector == 0:
        return (v, t, p)
    if sector == 1:
        return (q, v, p)
    if sector == 2:
        return (p, v, t)
    if sector == 3:
        return (p, q, v)
    if sector == 4:
        return (t, p, v)
    return (v, p, q)


def random_color(
    rng: np.random.Generator,
    lo: float = 0.0,
    hi: float = 1.0,
) -> Color:
    """Draw a colour with each channel uniform in [lo, hi)."""
    r, g, b = rng.uniform(lo, hi, size=3)
    return (float(r), float(g), float(b))


def multiply(a: Color, b: Color) -> Color:
    """Component-wise product of two colours."""
    return (a[0] * b[0], a[1] * b[1], a[2] * b[2])
