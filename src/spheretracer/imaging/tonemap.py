"""Post-processing of float frame buffers into 8-bit images.

Colour goes through a Reinhard tone map, gamma-2 correction and 8-bit
quantisation. The auxiliary buffers have their own encodings:

- albedo: clamp to [0, 1], gamma-2, quantise
- normal: map [-1, 1] to [0, 1], quantise
- depth: log-normalise between the buffer's min and max, gamma-2, quantise

Example:
    >>> import numpy as np
    >>> from spheretracer.imaging.tonemap import encode_color
    >>> encode_color(np.zeros((2, 2, 3), dtype=np.float32)).max()
    0
"""

import numpy as np
import numpy.typing as npt

from spheretracer.core.interval import Interval

# Depth values above this, or not finite, are treated as "very far"
DEPTH_CEILING = 1.0e4

# Depth values below this are raised to it before taking the log
DEPTH_FLOOR = 1.0e-3

# Range clamped to before quantising, so 1.0 maps to 255 and not 256
INTENSITY = Interval(0.0, 0.999)


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Apply Reinhard tone mapping: L / (1 + L).

    Maps [0, inf) onto [0, 1). Negative values are clamped to zero first.
    """
    image = np.maximum(image, 0.0)
    result = image / (1.0 + image)
    return result.astype(np.float32)


def apply_gamma(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Apply gamma-2 correction (square root) to values clamped at zero."""
    return np.sqrt(np.maximum(image, 0.0)).astype(np.float32)


def quantize(image: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Quantise [0, 1] values to 8 bits as ``int(256 * clamp(x, 0, 0.999))``."""
    clamped = np.clip(np.nan_to_num(image, nan=0.0), INTENSITY.min, INTENSITY.max)
    return (256.0 * clamped).astype(np.uint8)


def encode_color(image: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Encode a linear HDR colour buffer of shape (H, W, 3) to uint8.

    The encoding is monotonic in each channel.
    """
    return quantize(apply_gamma(tone_map_reinhard(image)))


def encode_albedo(image: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Encode an albedo buffer of shape (H, W, 3) to uint8."""
    return quantize(apply_gamma(np.clip(image, 0.0, 1.0)))


def encode_normal(image: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Encode a normal buffer of shape (H, W, 3) to uint8.

    Each component is mapped from [-1, 1] to [0, 1]. A zero normal (a miss)
    encodes as mid-grey.
    """
    return quantize((np.asarray(image, dtype=np.float32) + 1.0) * 0.5)


def normalize_depth(depth: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Log-normalise a depth buffer to [0, 1].

    Non-finite and implausibly large depths are replaced by DEPTH_CEILING
    and tiny depths are raised to DEPTH_FLOOR. The result is
    ``(log d - log min) / (log max - log min)``; a buffer with a single
    distinct value maps to all zeros.
    """
    d = np.asarray(depth, dtype=np.float64)
    d = np.where(np.isfinite(d) & (d <= DEPTH_CEILING), d, DEPTH_CEILING)
    d = np.maximum(d, DEPTH_FLOOR)

    log_d = np.log(d)
    lo = float(log_d.min()) if log_d.size else 0.0
    hi = float(log_d.max()) if log_d.size else 0.0
    if hi - lo <= 0.0:
        return np.zeros(d.shape, dtype=np.float32)
    return ((log_d - lo) / (hi - lo)).astype(np.float32)


def encode_depth(depth: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Encode a depth buffer of shape (H, W) to a uint8 RGB image.

    Returns:
        Array of shape (H, W, 3) with the grey value repeated per channel.
    """
    grey = quantize(apply_gamma(normalize_depth(depth)))
    return np.repeat(grey[..., np.newaxis], 3, axis=-1)


ENCODERS = {
    "color": encode_color,
    "albedo": encode_albedo,
    "normal": encode_normal,
    "depth": encode_depth,
}
