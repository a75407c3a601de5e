"""Writing renders to disk.

PNG output is 8-bit RGB through Pillow, after the display pipeline in
``pathtracer.preview.display``. Raw linear data can be kept with
``save_linear`` (NumPy .npy) for later comparison.

Example:
    >>> from pathtracer.preview.export import save_png
    >>> save_png(renderer.image(), "render.png", tone_map="reinhard")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Union

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.preview.display import ToneMapMethod, process_image_for_display

if TYPE_CHECKING:
    from pathtracer.core.renderer import Renderer

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _as_image(source: Union[npt.NDArray[np.float32], Renderer]) -> npt.NDArray[np.float32]:
    # A Renderer contributes its current average
    image = source.image() if hasattr(source, "image") else source
    image = np.asarray(image, dtype=np.float32)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    return image


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit, rounding to the nearest level."""
    processed = process_image_for_display(_as_image(image), tone_map=tone_map, gamma=gamma, exposure=exposure)
    return np.rint(processed * 255.0).astype(np.uint8)


def save_png(
    source: Union[npt.NDArray[np.float32], Renderer],
    filepath: PathLike,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> Path:
    """Save a render as an 8-bit RGB PNG.

    Args:
        source: A linear (H, W, 3) image, or a Renderer whose current
            average is written.
        filepath: Destination; parent directories are created.
        tone_map: "none", "reinhard" or "exposure".
        gamma: Display gamma.
        exposure: Used by the "exposure" operator.

    Returns:
        The path written.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    pixels = image_to_uint8(_as_image(source), tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(pixels).save(path)
    logger.info("Wrote %dx%d PNG to %s", pixels.shape[1], pixels.shape[0], path)
    return path


def save_linear(source: Union[npt.NDArray[np.float32], Renderer], filepath: PathLike) -> Path:
    """Save the unprocessed linear float32 image as a .npy file."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.save(path, _as_image(source))
    logger.info("Wrote linear image to %s", path)
    return path


def load_png(filepath: PathLike) -> npt.NDArray[np.uint8]:
    """Read an RGB PNG back as an (H, W, 3) uint8 array."""
    with PILImage.open(filepath) as img:
        return np.asarray(img.convert("RGB"), dtype=np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Root mean squared error between two images of the same shape.

    Raises:
        ValueError: If the shapes differ.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")
    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
