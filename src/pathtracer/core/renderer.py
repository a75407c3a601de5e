"""Renderer: row-band scheduling and sample accumulation.

The image is split into contiguous, disjoint, near-equal bands of rows, one
per worker. A render pass is a single kernel whose outermost loop runs over
the bands, so Taichi's CPU thread pool executes one band per task. Inside a
band, rows, columns and samples are traversed serially. Each pixel is
written only by the task that owns its band.

Every random number is derived from ``(seed, pixel, sample, dimension)``,
so results do not depend on the number of workers: a render with one worker
and a render with many are bit-identical.

Samples are dispatched in passes of ``params.batch_size`` samples per pixel.
Between passes the renderer reports progress and a caller driving
``render_progressive`` may stop early.

Example:
    >>> from pathtracer.core.backend import init_backend
    >>> init_backend(workers=8)
    >>> from pathtracer.core.renderer import Renderer
    >>> renderer = Renderer(scene, camera, RenderParams(width=320, height=240))
    >>> image = renderer.render()  # (240, 320, 3) float32, linear RGB
"""

import itertools
import logging
import time
from collections.abc import Callable, Generator
from typing import Optional

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import Camera
from pathtracer.camera.pinhole import get_ray_jittered, is_camera_ready, setup_camera
from pathtracer.core.config import RenderParams
from pathtracer.core.errors import RenderError
from pathtracer.core.integrator import trace_camera_sample
from pathtracer.core.sampler import make_sampler
from pathtracer.scene.intersection import is_scene_uploaded, upload_scene
from pathtracer.scene.scene import Scene

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Maximum number of row bands per pass
MAX_WORKERS = 1024

# Frame buffer, indexed [row, col] with row 0 at the top of the image
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Row bands: band b covers rows [_band_start[b], _band_end[b])
_band_start = ti.field(dtype=ti.i32, shape=MAX_WORKERS)
_band_end = ti.field(dtype=ti.i32, shape=MAX_WORKERS)

# Single-sample debug output
_single_result = ti.Vector.field(3, dtype=ti.f32, shape=())

# Token of the renderer whose scene and camera currently occupy the device fields
_bound_token: Optional[int] = None
_tokens = itertools.count()


def partition_rows(height: int, workers: int) -> list[tuple[int, int]]:
    """Split rows [0, height) into contiguous, disjoint, near-equal bands.

    At most one band per row is produced; band sizes differ by at most one
    and larger bands come first.

    Args:
        height: Number of image rows (> 0).
        workers: Requested number of bands (> 0).

    Returns:
        A list of half-open (start, end) row ranges covering [0, height).
    """
    if height <= 0 or workers <= 0:
        raise ValueError(f"height and workers must be positive, got {height} and {workers}")

    count = min(workers, height)
    base, extra = divmod(height, count)
    bands = []
    start = 0
    for b in range(count):
        size = base + (1 if b < extra else 0)
        bands.append((start, start + size))
        start += size
    return bands


# =============================================================================
# Kernels
# =============================================================================


@ti.kernel
def _clear_framebuffer(width: ti.i32, height: ti.i32):
    for row, col in ti.ndrange(height, width):
        _color_sum[row, col] = vec3(0.0, 0.0, 0.0)
        _sample_count[row, col] = 0


@ti.kernel
def _render_pass(
    width: ti.i32,
    height: ti.i32,
    num_bands: ti.i32,
    first_sample: ti.i32,
    num_samples: ti.i32,
    max_depth: ti.i32,
    russian_roulette: ti.i32,
    light_sampling: ti.i32,
    seed: ti.u32,
):
    """Accumulate ``num_samples`` samples per pixel, one band per task."""
    ti.loop_config(block_dim=1)
    for band in range(num_bands):
        for row in range(_band_start[band], _band_end[band]):
            for col in range(width):
                pixel = row * width + col
                acc = vec3(0.0, 0.0, 0.0)
                for s in range(num_samples):
                    sampler = make_sampler(pixel, first_sample + s, seed)
                    ray = get_ray_jittered(col, row, width, height, sampler)
                    acc += trace_camera_sample(
                        ray, sampler, max_depth, russian_roulette, light_sampling
                    )
                _color_sum[row, col] += acc
                _sample_count[row, col] += num_samples


@ti.kernel
def _trace_single(
    col: ti.i32,
    row: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample: ti.i32,
    max_depth: ti.i32,
    russian_roulette: ti.i32,
    light_sampling: ti.i32,
    seed: ti.u32,
):
    for _ in range(1):
        sampler = make_sampler(row * width + col, sample, seed)
        ray = get_ray_jittered(col, row, width, height, sampler)
        _single_result[None] = trace_camera_sample(
            ray, sampler, max_depth, russian_roulette, light_sampling
        )


# =============================================================================
# Renderer
# =============================================================================


class Renderer:
    """Renders a scene through a camera into an accumulating frame buffer.

    Device storage is shared by all Renderer instances; the renderer that
    last ran a pass owns it, and switching between renderers uploads the
    other scene again and clears the frame buffer.

    Attributes:
        scene: The scene being rendered.
        camera: The camera.
        params: Render parameters.
        bands: Row bands, one per worker.
    """

    def __init__(self, scene: Scene, camera: Camera, params: RenderParams) -> None:
        """Validate the request and upload scene and camera.

        Raises:
            RenderError: If the image exceeds the preallocated frame buffer
                or more workers are requested than bands are supported.
        """
        if params.width > MAX_IMAGE_WIDTH or params.height > MAX_IMAGE_HEIGHT:
            raise RenderError(
                f"Image dimensions ({params.width}x{params.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if params.workers > MAX_WORKERS:
            raise RenderError(f"At most {MAX_WORKERS} workers are supported, got {params.workers}")

        self.scene = scene
        self.camera = camera
        self.params = params
        self.bands = partition_rows(params.height, params.workers)
        self._samples_done = 0
        self._token = next(_tokens)
        self._bind()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self.params.width

    @property
    def height(self) -> int:
        return self.params.height

    @property
    def sample_count(self) -> int:
        """Samples per pixel accumulated so far."""
        return self._samples_done

    @property
    def is_complete(self) -> bool:
        return self._samples_done >= self.params.samples_per_pixel

    def _bind(self) -> None:
        """Make this renderer's scene, camera and bands the device state."""
        global _bound_token

        if _bound_token == self._token and is_scene_uploaded() and is_camera_ready():
            return

        upload_scene(self.scene)
        setup_camera(self.camera, self.params.aspect_ratio)
        for b, (start, end) in enumerate(self.bands):
            _band_start[b] = start
            _band_end[b] = end
        _bound_token = self._token
        self.reset()

    def reset(self) -> None:
        """Discard all accumulated samples."""
        _clear_framebuffer(self.width, self.height)
        self._samples_done = 0

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render_samples(self, num_samples: int) -> None:
        """Run one pass adding ``num_samples`` samples to every pixel."""
        if num_samples <= 0:
            raise ValueError(f"num_samples must be positive, got {num_samples}")
        self._bind()
        p = self.params
        _render_pass(
            p.width,
            p.height,
            len(self.bands),
            self._samples_done,
            num_samples,
            p.max_depth,
            int(p.russian_roulette),
            int(p.light_sampling),
            p.seed,
        )
        self._samples_done += num_samples

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Render in passes, yielding progress after each pass.

        Stopping iteration cancels the render between passes; the samples
        accumulated so far remain available through ``image``.

        Yields:
            Tuple of (current_samples, target_samples).
        """
        target = self.params.samples_per_pixel
        while self._samples_done < target:
            batch = min(self.params.batch_size, target - self._samples_done)
            self.render_samples(batch)
            logger.debug("Rendered %d/%d samples per pixel", self._samples_done, target)
            yield (self._samples_done, target)

    def render(self, callback: Optional[ProgressCallback] = None) -> npt.NDArray[np.float32]:
        """Render all remaining samples and return the finished image.

        Args:
            callback: Called as callback(current_samples, target_samples)
                after every pass.

        Returns:
            The averaged image, shape (height, width, 3), linear RGB.
        """
        p = self.params
        logger.info(
            "Rendering %dx%d, %d spp, depth %d, %d workers",
            p.width,
            p.height,
            p.samples_per_pixel,
            p.max_depth,
            len(self.bands),
        )
        start_time = time.perf_counter()

        for current, target in self.render_progressive():
            if callback is not None:
                callback(current, target)

        logger.info("Render finished in %.2fs", time.perf_counter() - start_time)
        return self.image()

    def trace_single(self, col: int, row: int, sample: int = 0) -> tuple[float, float, float]:
        """Trace one camera sample through pixel (col, row), for debugging.

        The result is exactly the value the render pass accumulates for that
        pixel and sample index.
        """
        if not (0 <= col < self.width and 0 <= row < self.height):
            raise ValueError(f"Pixel ({col}, {row}) outside {self.width}x{self.height} image")
        self._bind()
        p = self.params
        _trace_single(
            col,
            row,
            p.width,
            p.height,
            sample,
            p.max_depth,
            int(p.russian_roulette),
            int(p.light_sampling),
            p.seed,
        )
        color = _single_result[None]
        return (float(color[0]), float(color[1]), float(color[2]))

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def accumulated(self) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.int32]]:
        """Raw frame buffer: colour sums (H, W, 3) and sample counts (H, W)."""
        if _bound_token != self._token:
            raise RenderError("Frame buffer belongs to another renderer")
        sums = _color_sum.to_numpy()[: self.height, : self.width]
        counts = _sample_count.to_numpy()[: self.height, : self.width]
        return sums.astype(np.float32), counts.astype(np.int32)

    def image(self) -> npt.NDArray[np.float32]:
        """Finalise the frame buffer: per-pixel average of all samples.

        Returns:
            Array of shape (height, width, 3), float32, linear RGB, row 0 at
            the top. Pixels without samples are black.
        """
        sums, counts = self.accumulated()
        safe = np.maximum(counts, 1)[..., None].astype(np.float32)
        return (sums / safe).astype(np.float32)

    def __repr__(self) -> str:
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples={self._samples_done}/{self.params.samples_per_pixel}, "
            f"workers={len(self.bands)})"
        )


def render(
    scene: Scene,
    camera: Camera,
    params: RenderParams,
    callback: Optional[ProgressCallback] = None,
) -> npt.NDArray[np.float32]:
    """Render a scene and return the averaged image (height, width, 3)."""
    return Renderer(scene, camera, params).render(callback=callback)
