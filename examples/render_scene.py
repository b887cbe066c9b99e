#!/usr/bin/env python3
"""Render the demo scene (or a scene file) to a PNG.

Usage:
    python -m examples.render_scene [options]

Options:
    --width WIDTH       Image width in pixels (default: 200)
    --height HEIGHT     Image height in pixels (default: 200)
    --samples SAMPLES   Number of samples per pixel (default: 25)
    --depth DEPTH       Maximum bounces per path (default: 5)
    --seed SEED         Random seed (default: 0)
    --scene FILE        JSON scene file (default: the built-in demo scene)
    --output OUTPUT     Output file path (default: render.png)
    --batch-size SIZE   Samples per progress update (default: 5)
    --cpu               Render on the CPU backend
    --quiet             Suppress progress output
    --verbose           Enable debug logging

A scene file holds a background color and a list of spheres:

    {
        "background": [0.3, 0.3, 0.3],
        "geometries": [
            {"center": [0, 0, 2], "radius": 0.5, "is_light": true},
            {"center": [0, 0, 0], "radius": 1.0}
        ]
    }

The camera is always the demo camera at the requested resolution.

Example:
    python -m examples.render_scene --width 320 --height 240 --samples 100
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene of spheres with a stochastic path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=200,
        help="Image width in pixels (default: 200)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=200,
        help="Image height in pixels (default: 200)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=25,
        help="Number of samples per pixel (default: 25)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=5,
        help="Maximum bounces per path (default: 5)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: built-in demo scene)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=5,
        help="Samples per progress update (default: 5)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Render on the CPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def load_scene(path: str):
    """Load a Scene from a JSON file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    from src.spheretrace.scene.manager import Scene

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Scene file {path} must contain a JSON object")
    return Scene.from_dict(data)


def render_scene(
    width: int = 200,
    height: int = 200,
    num_samples: int = 25,
    max_depth: int = 5,
    scene_path: str | None = None,
    output_path: str = "render.png",
    batch_size: int = 5,
    quiet: bool = False,
) -> Path:
    """Render a scene and save it as a PNG.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples per pixel.
        max_depth: Maximum bounces per path.
        scene_path: Optional JSON scene file; the demo scene is used if None.
        output_path: Output file path (PNG).
        batch_size: Number of samples to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.spheretrace.camera.pinhole import setup_camera
    from src.spheretrace.core.progressive import ProgressiveRenderer
    from src.spheretrace.scene.default_scene import create_default_scene
    from src.spheretrace.scene.manager import setup_scene

    scene, camera = create_default_scene(width, height)
    if scene_path is not None:
        scene = load_scene(scene_path)

    if not quiet:
        source = scene_path if scene_path is not None else "demo scene"
        print(
            f"Loaded {source}: {len(scene)} spheres, {scene.light_count} lights "
            f"({width}x{height})"
        )

    setup_scene(scene)
    setup_camera(camera)

    renderer = ProgressiveRenderer(width, height, max_depth=max_depth)

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel, depth {max_depth}...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=num_samples,
        batch_size=batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()

    output_file = Path(output_path)
    renderer.save_image(str(output_file))

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )

    from src.spheretrace.config import RenderSettings, init_taichi

    try:
        settings = RenderSettings(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            seed=args.seed,
            arch="cpu" if args.cpu else "gpu",
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    backend = init_taichi(settings)
    if not args.quiet:
        print(f"Using {backend.upper()} backend")

    try:
        render_scene(
            width=settings.width,
            height=settings.height,
            num_samples=settings.samples_per_pixel,
            max_depth=settings.max_depth,
            scene_path=args.scene,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
