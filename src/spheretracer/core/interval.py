"""Closed and open ranges of the ray parameter t.

``Interval`` is the host-side value used for render configuration (the clip
range of accepted hits) and for clamping during quantization. Kernels work
on plain ``(lo, hi)`` float pairs through ``interval_surrounds`` so the
bounds can be passed as kernel arguments.

An inverted interval such as ``Interval.EMPTY`` rejects every query.
"""

import math
from dataclasses import dataclass
from typing import ClassVar

import taichi as ti


@dataclass(frozen=True)
class Interval:
    """A range ``[min, max]`` of real values.

    Attributes:
        min: Lower bound.
        max: Upper bound. ``min > max`` denotes the empty interval.
    """

    min: float = -math.inf
    max: float = math.inf

    EMPTY: ClassVar["Interval"]
    UNIVERSE: ClassVar["Interval"]

    def size(self) -> float:
        return self.max - self.min

    def contains(self, x: float) -> bool:
        """Inclusive membership test."""
        return self.min <= x <= self.max

    def surrounds(self, x: float) -> bool:
        """Exclusive membership test; the bounds themselves are rejected."""
        return self.min < x < self.max

    def clamp(self, x: float) -> float:
        if x < self.min:
            return self.min
        if x > self.max:
            return self.max
        return x


Interval.EMPTY = Interval(math.inf, -math.inf)
Interval.UNIVERSE = Interval(-math.inf, math.inf)


@ti.func
def interval_surrounds(lo: ti.f32, hi: ti.f32, x: ti.f32) -> ti.i32:
    return lo < x and x < hi
