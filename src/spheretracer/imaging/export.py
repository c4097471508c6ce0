"""Image writer for rendered frames.

Supported formats are whatever Pillow infers from the file extension; the
renderer writes 8-bit RGB PNG.

Example:
    >>> import numpy as np
    >>> from spheretracer.imaging.export import write_image
    >>> pixels = np.zeros((4, 4, 3), dtype=np.uint8)
    >>> write_image("out/black.png", 4, 4, 3, pixels.tobytes())
    True
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

_MODES = {1: "L", 3: "RGB", 4: "RGBA"}


def write_image(
    path: str | Path,
    width: int,
    height: int,
    channels: int,
    data: bytes,
) -> bool:
    """Write interleaved 8-bit pixel data to an image file.

    Parent directories are created as needed.

    Args:
        path: Output file path; the extension selects the format.
        width: Image width in pixels.
        height: Image height in pixels.
        channels: 1 (grey), 3 (RGB) or 4 (RGBA).
        data: Row-major pixel bytes, top row first, ``width * height *
            channels`` long.

    Returns:
        True on success. Failures are logged and reported as False.
    """
    path = Path(path)
    mode = _MODES.get(channels)
    if mode is None:
        logger.error("Failed to write %s: unsupported channel count %d", path, channels)
        return False

    try:
        image = PILImage.frombytes(mode, (width, height), data)
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path)
    except (OSError, ValueError) as e:
        logger.error("Failed to write %s: %s", path, e)
        return False

    logger.info("Saved %s", path)
    return True


def write_array(path: str | Path, image: npt.NDArray[np.uint8]) -> bool:
    """Write an 8-bit (H, W) or (H, W, C) array as an image file."""
    image = np.ascontiguousarray(image, dtype=np.uint8)
    height, width = image.shape[:2]
    channels = 1 if image.ndim == 2 else image.shape[2]
    return write_image(path, width, height, channels, image.tobytes())
