"""Taichi runtime setup.

The renderer runs on Taichi's CPU backend. Its thread pool is the worker
pool of the scheduler, so its size is fixed here, once, before any module
that allocates device fields is imported.

Example:
    >>> from pathtracer.core.backend import init_backend
    >>> init_backend(workers=4)
    >>> from pathtracer.core.renderer import Renderer  # fields allocated now
"""

import logging
from typing import Optional

import taichi as ti

from pathtracer.core.config import default_workers
from pathtracer.core.errors import RenderError

logger = logging.getLogger(__name__)

_initialized_workers: Optional[int] = None


def init_backend(workers: Optional[int] = None, seed: int = 0, debug: bool = False) -> int:
    """Initialise the Taichi CPU runtime.

    Args:
        workers: Size of the CPU thread pool. Defaults to the available
            hardware parallelism.
        seed: Seed of Taichi's own generator. Rendering does not draw from it;
            all path randomness comes from per-sample streams.
        debug: Enable Taichi's bounds checking (slow).

    The runtime is started once per process. Later calls return the running
    pool size and leave the runtime untouched.

    Returns:
        The number of worker threads the runtime was started with.

    Raises:
        RenderError: If the worker count is not positive or the runtime
            cannot be started.
    """
    global _initialized_workers

    if workers is None:
        workers = default_workers()
    if workers <= 0:
        raise RenderError(f"Worker count must be positive, got {workers}")

    # Re-initialising would invalidate every field already allocated
    if _initialized_workers is not None:
        if workers != _initialized_workers:
            logger.warning(
                "Backend already running with %d worker threads; ignoring request for %d",
                _initialized_workers,
                workers,
            )
        return _initialized_workers

    try:
        ti.init(
            arch=ti.cpu,
            cpu_max_num_threads=workers,
            random_seed=seed,
            debug=debug,
            # NaN / inf checks in the integrator must survive compilation
            fast_math=False,
            offline_cache=True,
        )
    except Exception as exc:
        raise RenderError(f"Failed to initialise Taichi CPU backend: {exc}") from exc

    _initialized_workers = workers
    logger.info("Taichi CPU backend ready with %d worker threads", workers)
    return workers


def backend_workers() -> Optional[int]:
    """Return the thread pool size of the running backend, or None."""
    return _initialized_workers
