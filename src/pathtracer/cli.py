"""Command line entry point.

Renders a JSON scene file, or one of the built-in presets, to a PNG.

Usage:
    pathtracer [scene] [options]

    scene is a path to a .json scene file or a preset name
    (single_sphere, spheres, empty). Defaults to "spheres".

Example:
    pathtracer examples/scenes/demo.json --width 320 --height 240 --samples 64
    pathtracer single_sphere --depth 1 --output sphere.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from pathtracer.core.config import DEFAULT_BATCH_SIZE, DEFAULT_MAX_DEPTH, RenderParams, default_workers
from pathtracer.core.errors import RenderError, SceneValidationError
from pathtracer.log import setup_logging
from pathtracer.preview.display import TONE_MAP_METHODS

logger = logging.getLogger("pathtracer.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a sphere scene with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "scene",
        nargs="?",
        default="spheres",
        help="Scene JSON file or built-in preset name (default: spheres)",
    )
    parser.add_argument("--width", type=int, default=320, help="Image width in pixels (default: 320)")
    parser.add_argument("--height", type=int, default=240, help="Image height in pixels (default: 240)")
    parser.add_argument(
        "--samples",
        type=int,
        default=64,
        help="Samples per pixel (default: 64)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum path vertices (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads / row bands (default: CPU count)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Samples per progress update (default: {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "--russian-roulette",
        action="store_true",
        help="Terminate long paths stochastically",
    )
    parser.add_argument(
        "--light-sampling",
        action="store_true",
        help="Sample emissive spheres directly (next-event estimation)",
    )
    parser.add_argument(
        "--tone-map",
        choices=TONE_MAP_METHODS,
        default="reinhard",
        help="Tone mapping operator (default: reinhard)",
    )
    parser.add_argument("--gamma", type=float, default=2.2, help="Output gamma (default: 2.2)")
    parser.add_argument(
        "--exposure",
        type=float,
        default=1.0,
        help="Exposure for --tone-map exposure (default: 1.0)",
    )
    parser.add_argument("--output", type=str, default="render.png", help="Output PNG (default: render.png)")
    parser.add_argument(
        "--save-linear",
        type=str,
        default=None,
        help="Also write the linear float image to this .npy file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def load_description(scene_arg: str):
    """Resolve the scene argument to a SceneDescription (file first, then preset)."""
    from pathtracer.scene.loader import load_scene
    from pathtracer.scene.presets import PRESETS, get_preset

    path = Path(scene_arg)
    if path.suffix == ".json" or path.is_file():
        return load_scene(path)
    if scene_arg in PRESETS:
        logger.info("Using built-in scene %r", scene_arg)
        return get_preset(scene_arg)
    raise SceneValidationError(
        f"{scene_arg!r} is neither a scene file nor a preset ({', '.join(sorted(PRESETS))})"
    )


def run(args: argparse.Namespace) -> Path:
    """Render according to parsed arguments and return the written PNG path."""
    from pathtracer.core.backend import init_backend

    workers = args.workers if args.workers is not None else default_workers()
    params = RenderParams(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.depth,
        workers=workers,
        seed=args.seed,
        batch_size=args.batch_size,
        russian_roulette=args.russian_roulette,
        light_sampling=args.light_sampling,
    )
    description = load_description(args.scene)

    init_backend(workers=params.workers, seed=params.seed)

    # Field-allocating modules are imported after the backend is up
    from pathtracer.core.renderer import Renderer
    from pathtracer.preview.display import image_statistics
    from pathtracer.preview.export import save_linear, save_png

    renderer = Renderer(description.scene, description.camera, params)
    start_time = time.perf_counter()

    def progress(current: int, target: int) -> None:
        elapsed = time.perf_counter() - start_time
        rate = current / elapsed if elapsed > 0 else 0.0
        logger.info("Progress: %d/%d spp (%.1f%%), %.1f spp/s", current, target, 100.0 * current / target, rate)

    image = renderer.render(callback=progress)

    stats = image_statistics(image)
    logger.debug("Image mean %.4f, max %.4f", stats["mean"], stats["max"])

    output = save_png(image, args.output, tone_map=args.tone_map, gamma=args.gamma, exposure=args.exposure)
    if args.save_linear:
        save_linear(image, args.save_linear)
    return output


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)
    setup_logging("WARNING" if args.quiet else args.log_level)

    try:
        output = run(args)
    except (SceneValidationError, RenderError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    except FileNotFoundError as exc:
        logger.error("Scene file not found: %s", exc.filename)
        return 1
    except OSError as exc:
        logger.error("Cannot read %s: %s", exc.filename, exc.strerror)
        return 1

    logger.info("Saved to %s", output.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
