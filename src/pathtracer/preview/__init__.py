"""Preview module: turning linear renders into viewable images.

Components:
    display: Tone mapping (Reinhard, exposure) and gamma encoding
    export: 8-bit PNG output via Pillow, linear .npy dumps, RMSE

Example:
    >>> from pathtracer.preview import save_png
    >>> save_png(image, "render.png", tone_map="reinhard", gamma=2.2)
"""

from pathtracer.preview.display import (
    TONE_MAP_METHODS,
    ToneMapMethod,
    apply_gamma,
    image_statistics,
    process_image_for_display,
    tone_map_exposure,
    tone_map_reinhard,
)
from pathtracer.preview.export import (
    compute_rmse,
    image_to_uint8,
    load_png,
    save_linear,
    save_png,
)

__all__ = [
    # Tone mapping
    "ToneMapMethod",
    "TONE_MAP_METHODS",
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "image_statistics",
    # Export
    "save_png",
    "save_linear",
    "load_png",
    "image_to_uint8",
    "compute_rmse",
]
