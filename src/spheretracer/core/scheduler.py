"""Static per-scanline work distribution.

The image rows are split into one contiguous range per worker. Workers run
in parallel on Taichi's CPU thread pool: each band launch renders the next
row of every worker, so a worker walks its own range top to bottom and no
two workers ever touch the same pixel. The host thread is the only reader
of the completed-row counter and the only writer of progress messages.
"""

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

from spheretracer.core import integrator
from spheretracer.core.sampler import MAX_WORKERS

logger = logging.getLogger(__name__)

# Log progress whenever this many more rows have completed
PROGRESS_EVERY_ROWS = 10

# Fallback when the hardware parallelism cannot be determined
FALLBACK_WORKER_COUNT = 4

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RowRange:
    """Rows ``[start, end)`` statically assigned to one worker."""

    worker: int
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start


def default_worker_count() -> int:
    """Number of workers to use when none is configured."""
    return min(os.cpu_count() or FALLBACK_WORKER_COUNT, MAX_WORKERS)


def partition_rows(height: int, workers: int) -> list[RowRange]:
    """Split ``height`` rows into ``workers`` contiguous ranges.

    Every worker gets ``height // workers`` rows and the last one also takes
    the remainder. With more workers than rows the leading workers get empty
    ranges.

    Raises:
        ValueError: If height is negative or workers is not positive.
    """
    if height < 0:
        raise ValueError(f"height must be non-negative, got {height}")
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}")

    rows_per_worker = height // workers
    ranges = []
    for t in range(workers):
        start = t * rows_per_worker
        end = height if t == workers - 1 else start + rows_per_worker
        ranges.append(RowRange(worker=t, start=start, end=end))
    return ranges


def _log_progress(done: int, total: int) -> None:
    percent = 100.0 * done / total if total else 100.0
    logger.info("Progress: %.1f%% (%d/%d)", percent, done, total)


def run_workers(
    ranges: list[RowRange],
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    clip_min: float,
    clip_max: float,
    exposure: float,
    seed: int,
    callback: ProgressCallback | None = None,
) -> int:
    """Render every row of the current render target.

    Args:
        ranges: Worker row ranges from ``partition_rows``.
        height: Total number of rows, for progress reporting.
        samples_per_pixel: Paths traced per pixel.
        max_depth: Bounce budget per path.
        clip_min: Exclusive lower bound for accepted hits.
        clip_max: Exclusive upper bound for accepted hits.
        exposure: Sky gradient scale.
        seed: Render seed.
        callback: Optional function called as ``callback(done, height)``
            after every band.

    Returns:
        The number of completed rows.
    """
    integrator.set_worker_rows([(r.start, r.end) for r in ranges])
    bands = max((len(r) for r in ranges), default=0)

    logger.debug("Dispatching %d rows to %d workers in %d bands", height, len(ranges), bands)

    done = 0
    last_logged = 0
    for band in range(bands):
        done = integrator.render_band(
            band,
            len(ranges),
            samples_per_pixel,
            max_depth,
            clip_min,
            clip_max,
            exposure,
            seed,
        )
        if done - last_logged >= PROGRESS_EVERY_ROWS or done == height:
            _log_progress(done, height)
            last_logged = done
        if callback is not None:
            callback(done, height)

    logger.info("Progress: 100.0%% (%d/%d) - Done.", done, height)
    return done
