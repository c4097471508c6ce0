"""High-level renderer tying camera, scene, scheduler and output together.

Usage follows a configure / init / render / write cycle:

    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.camera.thin_lens import ThinLensCamera
    >>> from spheretracer.core.renderer import Renderer, RenderSettings
    >>> from spheretracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_diffuse_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
    >>> renderer = Renderer(RenderSettings(width=64, height=36), ThinLensCamera())
    >>> renderer.init()
    >>> frame = renderer.render()
    >>> renderer.write("out/sphere.png")

The scene is whatever the active SceneManager last wrote into the Taichi
fields; it must not change between ``init()`` and the end of ``render()``.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera
from spheretracer.core import integrator, scheduler
from spheretracer.core.interval import Interval
from spheretracer.core.sampler import MAX_WORKERS
from spheretracer.imaging.export import write_array
from spheretracer.imaging.tonemap import ENCODERS

logger = logging.getLogger(__name__)

AOV_NAMES = ("albedo", "normal", "depth")


@dataclass
class RenderSettings:
    """Image and sampling configuration.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Jittered paths averaged per pixel.
        max_depth: Bounce budget per path.
        exposure: Scale applied to the sky gradient.
        clip: Accepted range of hit distances along each ray segment.
        seed: Seed for the per-pixel random sequences.
        num_workers: Number of row ranges rendered in parallel; None uses
            the hardware parallelism.
        aovs: Auxiliary buffers the caller wants written alongside colour.
    """

    width: int = 400
    height: int = 225
    samples_per_pixel: int = integrator.DEFAULT_SAMPLES_PER_PIXEL
    max_depth: int = integrator.DEFAULT_MAX_DEPTH
    exposure: float = integrator.DEFAULT_EXPOSURE
    clip: Interval = field(default_factory=lambda: Interval(integrator.T_MIN, integrator.T_MAX))
    seed: int = 0
    num_workers: int | None = None
    aovs: tuple[str, ...] = ()

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any setting is out of range.
        """
        if not (0 < self.width <= integrator.MAX_IMAGE_WIDTH):
            raise ValueError(
                f"width must be in [1, {integrator.MAX_IMAGE_WIDTH}], got {self.width}"
            )
        if not (0 < self.height <= integrator.MAX_IMAGE_HEIGHT):
            raise ValueError(
                f"height must be in [1, {integrator.MAX_IMAGE_HEIGHT}], got {self.height}"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be >= 1, got {self.samples_per_pixel}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        if self.exposure < 0.0:
            raise ValueError(f"exposure must be non-negative, got {self.exposure}")
        if self.clip.size() <= 0.0:
            raise ValueError(f"clip interval is empty: {self.clip}")
        if self.num_workers is not None and not (1 <= self.num_workers <= MAX_WORKERS):
            raise ValueError(
                f"num_workers must be in [1, {MAX_WORKERS}], got {self.num_workers}"
            )
        for name in self.aovs:
            if name not in AOV_NAMES:
                raise ValueError(f"Unknown AOV {name!r}; expected one of {AOV_NAMES}")

    def to_dict(self) -> dict[str, Any]:
        """Export the settings to a JSON-compatible dictionary."""
        return {
            "width": self.width,
            "height": self.height,
            "samples_per_pixel": self.samples_per_pixel,
            "max_depth": self.max_depth,
            "exposure": self.exposure,
            "clip": [self.clip.min, self.clip.max],
            "seed": self.seed,
            "num_workers": self.num_workers,
            "aovs": list(self.aovs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Build settings from a dictionary; missing keys take defaults."""
        kwargs: dict[str, Any] = {}
        for key in ("width", "height", "samples_per_pixel", "max_depth", "seed"):
            if key in data:
                kwargs[key] = int(data[key])
        if "exposure" in data:
            kwargs["exposure"] = float(data["exposure"])
        if "clip" in data:
            lo, hi = data["clip"]
            kwargs["clip"] = Interval(float(lo), float(hi))
        if data.get("num_workers") is not None:
            kwargs["num_workers"] = int(data["num_workers"])
        if "aovs" in data:
            kwargs["aovs"] = tuple(data["aovs"])
        return cls(**kwargs)


@dataclass
class FrameBuffers:
    """Float buffers produced by a render, row 0 at the top.

    Attributes:
        color: Linear radiance, shape (H, W, 3).
        albedo: First-hit albedo, shape (H, W, 3).
        normal: First-hit normal, shape (H, W, 3).
        depth: First-hit distance, shape (H, W).
    """

    color: npt.NDArray[np.float32]
    albedo: npt.NDArray[np.float32]
    normal: npt.NDArray[np.float32]
    depth: npt.NDArray[np.float32]

    @property
    def width(self) -> int:
        return int(self.color.shape[1])

    @property
    def height(self) -> int:
        return int(self.color.shape[0])

    def encode(self, buffer: str = "color") -> npt.NDArray[np.uint8]:
        """Encode one buffer to an 8-bit (H, W, 3) image.

        Raises:
            ValueError: If the buffer name is unknown.
        """
        encoder = ENCODERS.get(buffer)
        if encoder is None:
            raise ValueError(f"Unknown buffer {buffer!r}; expected one of {tuple(ENCODERS)}")
        return encoder(getattr(self, buffer))


class Renderer:
    """Renders the active scene through a thin-lens camera.

    Attributes:
        settings: Image and sampling configuration.
        camera: Camera configuration.
        frame: Buffers from the last completed render, or None.
    """

    def __init__(self, settings: RenderSettings, camera: ThinLensCamera) -> None:
        self.settings = settings
        self.camera = camera
        self.frame: FrameBuffers | None = None
        self._ranges: list[scheduler.RowRange] = []
        self._initialized = False

    @property
    def num_workers(self) -> int:
        if self.settings.num_workers is not None:
            return self.settings.num_workers
        return scheduler.default_worker_count()

    def init(self) -> None:
        """Freeze the configuration and prepare camera and buffers.

        Must be called after all scene and camera configuration and before
        ``render()``. Calling it again re-reads the configuration.

        Raises:
            ValueError: If the settings or camera are invalid.
        """
        self.settings.validate()
        setup_camera(self.camera, self.settings.width, self.settings.height)
        integrator.setup_render_target(self.settings.width, self.settings.height)
        self._ranges = scheduler.partition_rows(self.settings.height, self.num_workers)
        self.frame = None
        self._initialized = True
        logger.info(
            "Initialised %dx%d render: %d spp, depth %d, %d workers",
            self.settings.width,
            self.settings.height,
            self.settings.samples_per_pixel,
            self.settings.max_depth,
            len(self._ranges),
        )

    def render(
        self,
        callback: Callable[[int, int], None] | None = None,
    ) -> FrameBuffers:
        """Render the full frame, blocking until every row is done.

        Args:
            callback: Optional progress function called as
                ``callback(rows_done, height)``.

        Returns:
            The rendered frame buffers.

        Raises:
            RuntimeError: If ``init()`` has not been called.
        """
        if not self._initialized:
            raise RuntimeError("Renderer not initialised. Call init() before render().")

        s = self.settings
        integrator.clear_render_target()

        start = time.perf_counter()
        scheduler.run_workers(
            self._ranges,
            s.height,
            s.samples_per_pixel,
            s.max_depth,
            s.clip.min,
            s.clip.max,
            s.exposure,
            s.seed,
            callback=callback,
        )
        elapsed = time.perf_counter() - start
        logger.info("Rendered %dx%d in %.2fs", s.width, s.height, elapsed)

        self.frame = FrameBuffers(**integrator.get_buffers_numpy())
        return self.frame

    def write(self, path: str | Path, buffer: str = "color") -> bool:
        """Encode a buffer of the last render and write it as an image.

        Args:
            path: Output file path.
            buffer: "color", "albedo", "normal" or "depth".

        Returns:
            True on success, False if nothing has been rendered yet or the
            image could not be written.
        """
        if self.frame is None:
            logger.error("Nothing to write to %s: render() has not completed", path)
            return False
        try:
            pixels = self.frame.encode(buffer)
        except ValueError as e:
            logger.error("Failed to write %s: %s", path, e)
            return False
        return write_array(path, pixels)

    def write_aovs(self, path: str | Path) -> dict[str, bool]:
        """Write every AOV requested in the settings next to ``path``.

        ``out/image.png`` with the albedo AOV produces ``out/image_albedo.png``.

        Returns:
            Mapping of AOV name to write success.
        """
        path = Path(path)
        results = {}
        for name in self.settings.aovs:
            aov_path = path.with_name(f"{path.stem}_{name}{path.suffix}")
            results[name] = self.write(aov_path, name)
        return results
