"""Command-line entry point: render an example scene.

Usage:
    pathtracer [options] > image.ppm
    python -m pathtracer [options]

Options:
    --scene NAME        Example scene: two-spheres, materials, fov, final
                        (default: final)
    --width WIDTH       Image width in pixels (default: scene setting)
    --samples SAMPLES   Samples per pixel (default: scene setting)
    --max-depth DEPTH   Maximum ray bounces (default: scene setting)
    --seed SEED         Seed for sampling and the final scene's layout (default: 0)
    --output PATH       PPM output file, or - for stdout (default: -)
    --png PATH          Also save the image as PNG
    --quiet             Suppress progress output

Example:
    pathtracer --scene materials --width 400 --samples 50 --output materials.ppm
"""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import taichi as ti

if TYPE_CHECKING:
    from pathtracer.camera.thin_lens import ScanlineProgress

SCENE_CHOICES = ("two-spheres", "materials", "fov", "final")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render an example scene as an ASCII PPM image.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_CHOICES,
        default="final",
        help="Example scene to render (default: final)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Image width in pixels (default: scene setting)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Number of samples per pixel (default: scene setting)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum number of ray bounces (default: scene setting)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for sampling and the final scene's layout (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help="PPM output file, or - for stdout (default: -)",
    )
    parser.add_argument(
        "--png",
        type=str,
        default=None,
        help="Also save the rendered image as PNG to this path",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def _print_progress(update: ScanlineProgress) -> None:
    print(
        f"\rScanlines remaining: {update.remaining} "
        f"({update.scanline_seconds * 1000.0:.1f} ms/line, "
        f"~{update.estimated_remaining_seconds:.1f}s left) ",
        end="",
        file=sys.stderr,
        flush=True,
    )


def render_example(args: argparse.Namespace) -> None:
    """Build the selected scene, apply overrides and render it."""
    # Lazy imports to allow Taichi initialization first
    from pathtracer.output.export import save_png
    from pathtracer.scene.examples import get_example_scene

    world, camera = get_example_scene(args.scene, seed=args.seed)

    if args.width is not None:
        camera.image_width = args.width
    if args.samples is not None:
        camera.samples_per_pixel = args.samples
    if args.max_depth is not None:
        camera.max_depth = args.max_depth
    camera.seed = args.seed

    progress = None if args.quiet else _print_progress
    start_time = time.perf_counter()

    if args.output == "-":
        image = camera.render(world, out=sys.stdout, progress=progress)
    else:
        with open(args.output, "w", encoding="ascii", newline="\n") as out:
            image = camera.render(world, out=out, progress=progress)

    if not args.quiet:
        total_time = time.perf_counter() - start_time
        print(file=sys.stderr)  # Newline after progress
        print(f"Done. Total time: {total_time:.2f}s", file=sys.stderr)

    if args.png is not None:
        save_png(image, args.png)
        if not args.quiet:
            print(f"Saved PNG to: {args.png}", file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Initialize Taichi before any module that allocates fields is imported
    ti.init(arch=ti.cpu)

    try:
        render_example(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
