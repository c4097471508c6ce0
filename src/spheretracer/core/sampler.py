"""Deterministic random number generation for render workers.

Taichi's built-in ``ti.random()`` keeps one generator state per hardware
thread, so the numbers a pixel sees depend on which thread happened to pick
up its work. To make renders reproducible for a given seed, every render
worker owns a slot in a small state field and reseeds that slot at the start
of each pixel from a hash of the pixel index and the render seed. A pixel's
samples therefore depend only on its own coordinates and the seed, never on
the number of workers or on scheduling order.

The generator is a 32-bit xorshift seeded through Wang's integer hash.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     seed_rng(0, 17, 42)
    ...     return random_float(0)
"""

import taichi as ti

# Upper bound on concurrent render workers (one RNG slot each)
MAX_WORKERS = 256

_rng_state = ti.field(dtype=ti.u32, shape=MAX_WORKERS)


@ti.func
def wang_hash(value: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer with Wang's hash."""
    x = ti.cast(value, ti.u32)
    x = (x ^ ti.u32(61)) ^ (x >> ti.u32(16))
    x = x * ti.u32(9)
    x = x ^ (x >> ti.u32(4))
    x = x * ti.u32(0x27D4EB2D)
    x = x ^ (x >> ti.u32(15))
    return x


@ti.func
def seed_rng(slot: ti.i32, pixel_index: ti.i32, seed: ti.i32):
    """Reseed a worker's generator for a new pixel.

    Args:
        slot: The worker slot that owns the generator state.
        pixel_index: Row-major index of the pixel about to be sampled.
        seed: The render-wide seed.
    """
    state = wang_hash(ti.cast(pixel_index, ti.u32) ^ wang_hash(ti.cast(seed, ti.u32)))
    # xorshift has a fixed point at zero
    if state == ti.u32(0):
        state = ti.u32(0x6C078965)
    _rng_state[slot] = state


@ti.func
def next_u32(slot: ti.i32) -> ti.u32:
    """Advance a worker's generator and return the new 32-bit state."""
    x = _rng_state[slot]
    x = x ^ (x << ti.u32(13))
    x = x ^ (x >> ti.u32(17))
    x = x ^ (x << ti.u32(5))
    _rng_state[slot] = x
    return x


@ti.func
def random_float(slot: ti.i32) -> ti.f32:
    """Return a uniform float in [0, 1) from a worker's generator."""
    # Top 24 bits map exactly onto the f32 mantissa
    bits = next_u32(slot) >> ti.u32(8)
    return ti.cast(bits, ti.f32) * (1.0 / 16777216.0)


@ti.func
def random_range(slot: ti.i32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Return a uniform float in [lo, hi)."""
    return lo + (hi - lo) * random_float(slot)
