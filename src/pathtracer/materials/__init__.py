"""Materials module for BSDF models.

Components:
    base: Material kinds, the Material value type, device-side parameters
        and the scatter dispatch
    lambert: Ideal diffuse reflection (cosine-weighted sampling)
    mirror: Specular reflection with roughness fuzz
    transparent: Fresnel-weighted reflection / refraction with metallic tint

Each scatter routine returns (direction, attenuation, did_scatter); a zero
did_scatter means the path is absorbed.
"""

from .base import (
    Material,
    MaterialKind,
    MaterialParams,
    emitted,
    scatter,
    shading_normal,
)
from .lambert import eval_lambert, pdf_lambert, scatter_lambert
from .mirror import fuzzed_reflection, scatter_mirror
from .transparent import refraction_ratio, scatter_transparent, transparent_tint

__all__ = [
    "Material",
    "MaterialKind",
    "MaterialParams",
    "emitted",
    "scatter",
    "shading_normal",
    "eval_lambert",
    "pdf_lambert",
    "scatter_lambert",
    "fuzzed_reflection",
    "scatter_mirror",
    "refraction_ratio",
    "scatter_transparent",
    "transparent_tint",
]
