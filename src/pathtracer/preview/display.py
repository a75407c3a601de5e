"""Tone mapping and gamma encoding of linear renders.

The renderer produces unbounded linear RGB (an emitter seen directly can be
far brighter than 1). Before an image can be written as 8-bit it goes through:

    1. tone mapping: none (hard clip), Reinhard c / (1 + c) or
       exposure 1 - exp(-c * exposure)
    2. gamma encoding: c ** (1 / gamma)
    3. a final clamp to [0, 1]

Example:
    >>> from pathtracer.preview.display import process_image_for_display
    >>> ldr = process_image_for_display(hdr, tone_map="reinhard", gamma=2.2)
"""

from __future__ import annotations

from typing import Literal, get_args

import numpy as np
import numpy.typing as npt

ToneMapMethod = Literal["none", "reinhard", "exposure"]
TONE_MAP_METHODS: tuple[str, ...] = get_args(ToneMapMethod)


def _sanitize(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    # NaN and negative radiance both display as black
    image = np.nan_to_num(np.asarray(image, dtype=np.float32), nan=0.0, posinf=np.finfo(np.float32).max)
    return np.maximum(image, 0.0)


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Global Reinhard operator, c / (1 + c), per channel."""
    image = _sanitize(image)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Exponential exposure curve, 1 - exp(-c * exposure).

    Args:
        image: Linear image of shape (H, W, 3).
        exposure: Brightness multiplier; must be positive.
    """
    if exposure <= 0.0:
        raise ValueError(f"exposure must be positive, got {exposure}")
    image = _sanitize(image)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode a [0, 1] linear image with a power-law gamma.

    Values are clipped to [0, 1] first. gamma=1 leaves the image linear.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    image = np.clip(_sanitize(image), 0.0, 1.0)
    if gamma == 1.0:
        return image
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Run a linear render through tone mapping, gamma and clamping.

    Args:
        image: Linear image of shape (H, W, 3).
        tone_map: "none", "reinhard" or "exposure".
        gamma: Display gamma (2.2 approximates sRGB).
        exposure: Only used by the "exposure" operator.

    Returns:
        float32 image of the same shape with every value in [0, 1].

    Raises:
        ValueError: For an unknown tone mapping method or a non-positive
            gamma / exposure.
    """
    if tone_map == "none":
        mapped = _sanitize(image)
    elif tone_map == "reinhard":
        mapped = tone_map_reinhard(image)
    elif tone_map == "exposure":
        mapped = tone_map_exposure(image, exposure)
    else:
        raise ValueError(f"Unknown tone mapping method {tone_map!r}; expected one of {TONE_MAP_METHODS}")

    return np.clip(apply_gamma(mapped, gamma), 0.0, 1.0).astype(np.float32)


def image_statistics(image: npt.NDArray[np.float32]) -> dict[str, float]:
    """Summary numbers for a linear render, used in progress logging."""
    image = np.asarray(image, dtype=np.float64)
    luminance = 0.2126 * image[..., 0] + 0.7152 * image[..., 1] + 0.0722 * image[..., 2]
    return {
        "mean": float(image.mean()) if image.size else 0.0,
        "max": float(image.max()) if image.size else 0.0,
        "mean_luminance": float(luminance.mean()) if luminance.size else 0.0,
        "nonfinite": float(np.count_nonzero(~np.isfinite(image))),
    }
