#!/usr/bin/env python3
"""Render a scene progressively, saving an intermediate PNG after each pass.

Demonstrates driving the renderer pass by pass instead of through the
``pathtracer`` command: the loop may stop at any pass and the image
accumulated so far is still valid.

Usage:
    python examples/render_progressive.py [scene] [options]

Example:
    python examples/render_progressive.py examples/scenes/demo.json --samples 64 --time-limit 10
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from pathtracer.core.config import RenderParams
from pathtracer.log import setup_logging

logger = logging.getLogger("pathtracer.examples")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Progressive render with snapshots.")
    parser.add_argument("scene", nargs="?", default="examples/scenes/demo.json", help="Scene JSON file")
    parser.add_argument("--width", type=int, default=256, help="Image width in pixels (default: 256)")
    parser.add_argument("--height", type=int, default=192, help="Image height in pixels (default: 192)")
    parser.add_argument("--samples", type=int, default=64, help="Target samples per pixel (default: 64)")
    parser.add_argument("--batch-size", type=int, default=8, help="Samples per pass (default: 8)")
    parser.add_argument("--workers", type=int, default=4, help="Worker threads (default: 4)")
    parser.add_argument("--time-limit", type=float, default=None, help="Stop after this many seconds")
    parser.add_argument("--output-dir", type=str, default="progressive", help="Snapshot directory")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    setup_logging("INFO")

    from pathtracer.core.backend import init_backend

    init_backend(workers=args.workers)

    # Lazy imports: these allocate Taichi fields
    from pathtracer.core.renderer import Renderer
    from pathtracer.preview.export import save_png
    from pathtracer.scene.loader import load_scene

    description = load_scene(args.scene)
    params = RenderParams(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        batch_size=args.batch_size,
        workers=args.workers,
        light_sampling=True,
    )
    renderer = Renderer(description.scene, description.camera, params)
    output_dir = Path(args.output_dir)

    start = time.perf_counter()
    for current, target in renderer.render_progressive():
        save_png(renderer, output_dir / f"spp_{current:05d}.png", tone_map="reinhard")
        if args.time_limit is not None and time.perf_counter() - start > args.time_limit:
            logger.info("Time limit reached at %d/%d spp", current, target)
            break

    return 0


if __name__ == "__main__":
    sys.exit(main())
