#!/usr/bin/env python3
"""Render a sphere scene to PNG.

The scene is either a built-in preset or a JSON file holding a scene
(``materials`` and ``spheres``) and optionally a ``camera`` and ``settings``
block.

Usage:
    python examples/render_spheres.py [options]

Options:
    --preset NAME       Built-in scene: showcase or random (default: showcase)
    --scene FILE        JSON scene file (overrides --preset)
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 225)
    --samples SAMPLES   Samples per pixel (default: 20)
    --max-depth DEPTH   Bounce budget per path (default: 10)
    --workers N         Number of worker row ranges (default: CPU count)
    --seed SEED         Seed for sampling and random layouts (default: 0)
    --aovs NAMES        Also write albedo, normal and/or depth buffers
    --output OUTPUT     Output file path (default: image.png)
    --quiet             Only log warnings and errors

Example:
    python examples/render_spheres.py --preset random --width 320 --height 180 \\
        --samples 50 --aovs albedo normal depth
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--preset",
        choices=["showcase", "random"],
        default="showcase",
        help="Built-in scene (default: showcase)",
    )
    parser.add_argument(
        "--scene",
        type=Path,
        default=None,
        help="JSON scene file; overrides --preset",
    )
    parser.add_argument("--width", type=int, default=400, help="Image width (default: 400)")
    parser.add_argument("--height", type=int, default=225, help="Image height (default: 225)")
    parser.add_argument(
        "--samples",
        type=int,
        default=20,
        help="Samples per pixel (default: 20)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Bounce budget per path (default: 10)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker row ranges (default: CPU count)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--aovs",
        nargs="*",
        choices=["albedo", "normal", "depth"],
        default=[],
        help="Auxiliary buffers to write next to the output",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("image.png"),
        help="Output file path (default: image.png)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args(argv)


def render_spheres(args: argparse.Namespace) -> bool:
    """Build the scene, render it and write the requested images.

    Returns:
        True if every image was written.
    """
    # Lazy imports to allow Taichi initialization first
    from spheretracer.camera.thin_lens import ThinLensCamera
    from spheretracer.core.renderer import Renderer, RenderSettings
    from spheretracer.scene.manager import SceneManager
    from spheretracer.scene.presets import build_preset

    scene = SceneManager()
    settings = RenderSettings(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
        num_workers=args.workers,
        aovs=tuple(args.aovs),
    )

    if args.scene is not None:
        data = json.loads(args.scene.read_text())
        scene.from_dict(data)
        camera = ThinLensCamera.from_dict(data.get("camera", {}))
        if "settings" in data:
            overrides = settings.to_dict()
            overrides.update(data["settings"])
            settings = RenderSettings.from_dict(overrides)
        logger.info("Loaded scene from %s", args.scene)
    else:
        camera = build_preset(args.preset, scene, seed=args.seed)
        logger.info("Built %s preset with %d spheres", args.preset, scene.get_sphere_count())

    renderer = Renderer(settings, camera)
    renderer.init()
    renderer.render()

    ok = renderer.write(args.output)
    for name, written in renderer.write_aovs(args.output).items():
        ok = ok and written
        if not written:
            logger.error("Failed to write %s buffer", name)
    return ok


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.workers is not None:
        ti.init(arch=ti.cpu, cpu_max_num_threads=args.workers, random_seed=args.seed)
    else:
        ti.init(arch=ti.cpu, random_seed=args.seed)

    try:
        return 0 if render_spheres(args) else 1
    except (OSError, ValueError, RuntimeError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
