"""Render parameters.

RenderParams collects everything the scheduler needs besides the scene and
camera: image size, sampling budget, bounce cap, worker count and the
optional estimator features. Values are validated on construction.

Example:
    >>> from pathtracer.core.config import RenderParams
    >>> params = RenderParams(width=320, height=240, samples_per_pixel=64, max_depth=8)
    >>> params.aspect_ratio
    1.3333333333333333
"""

import os
from dataclasses import dataclass, field, replace

# Default number of bounces per path
DEFAULT_MAX_DEPTH = 8

# Default samples dispatched per scheduling pass
DEFAULT_BATCH_SIZE = 8

# Largest accepted seed; kernels take it as a 31-bit value
MAX_SEED = 2**31 - 1


def default_workers() -> int:
    """Return the available hardware parallelism (at least 1)."""
    return os.cpu_count() or 1


@dataclass(frozen=True)
class RenderParams:
    """Configuration for a single render.

    Attributes:
        width: Image width in pixels (> 0).
        height: Image height in pixels (> 0).
        samples_per_pixel: Number of paths averaged per pixel (> 0).
        max_depth: Maximum number of path vertices (>= 0). Zero yields black.
        workers: Number of row bands rendered concurrently. Defaults to the
            available hardware parallelism.
        seed: Seed of the per-sample random streams, in [0, MAX_SEED].
        batch_size: Samples per pixel dispatched per scheduling pass (> 0).
        russian_roulette: Terminate long paths stochastically (unbiased).
        light_sampling: Add next-event estimation toward emissive spheres,
            combined with BSDF sampling by multiple importance sampling.
    """

    width: int
    height: int
    samples_per_pixel: int = 16
    max_depth: int = DEFAULT_MAX_DEPTH
    workers: int = field(default_factory=default_workers)
    seed: int = 0
    batch_size: int = DEFAULT_BATCH_SIZE
    russian_roulette: bool = False
    light_sampling: bool = False

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")
        if not 0 <= self.seed <= MAX_SEED:
            raise ValueError(f"seed must be in [0, {MAX_SEED}], got {self.seed}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def with_overrides(self, **changes) -> "RenderParams":
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **changes)
