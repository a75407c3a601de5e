"""Material model and scattering dispatch.

Materials form a closed set of kinds sharing one parameter record:

    albedo      RGB reflectance / tint, components in [0, 1]
    emittance   self-emission strength (>= 0); emitted colour is albedo * emittance
    roughness   fuzz of specular reflection, in [0, 1]
    ior         index of refraction (>= 0, > 0 for TRANSPARENT)
    metallic    blend from white toward the albedo for TRANSPARENT, in [0, 1]

The Python-side Material is an immutable value validated on construction.
Device-side, the same record is carried as MaterialParams and dispatched by
``scatter`` to the kind's sampling routine.

Example:
    >>> from pathtracer.materials.base import Material
    >>> glass = Material.transparent(ior=1.5)
    >>> lamp = Material.lambert(albedo=(1.0, 0.9, 0.8), emittance=4.0)
    >>> lamp.is_emissive
    True
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from pathtracer.core.errors import SceneValidationError
from pathtracer.core.sampler import Sampler
from pathtracer.materials.lambert import scatter_lambert
from pathtracer.materials.mirror import scatter_mirror
from pathtracer.materials.transparent import scatter_transparent

vec3 = tm.vec3

Color = tuple[float, float, float]


class MaterialKind(IntEnum):
    """Enumeration of supported material kinds, used for dispatch in kernels."""

    LAMBERT = 0
    MIRROR = 1
    TRANSPARENT = 2

    @classmethod
    def from_name(cls, name: str) -> "MaterialKind":
        """Parse a kind name such as "Lambert" or "TRANSPARENT"."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            valid = ", ".join(k.name.capitalize() for k in cls)
            raise SceneValidationError(
                f"Unknown material kind: {name!r} (expected one of {valid})"
            ) from None


def _check_unit_interval(name: str, value: float) -> None:
    if not (0.0 <= value <= 1.0):
        raise SceneValidationError(f"Material {name} must be in [0, 1], got {value}")


@dataclass(frozen=True)
class Material:
    """Immutable material description.

    Attributes:
        kind: The material kind.
        albedo: Reflectance (RGB), each component in [0, 1].
        emittance: Emission strength (>= 0).
        roughness: Specular fuzz in [0, 1].
        ior: Index of refraction (>= 0; must be > 0 for TRANSPARENT).
        metallic: Tint blend in [0, 1].

    Raises:
        SceneValidationError: If any field is out of range.
    """

    kind: MaterialKind = MaterialKind.LAMBERT
    albedo: Color = (0.8, 0.8, 0.8)
    emittance: float = 0.0
    roughness: float = 0.0
    ior: float = 1.5
    metallic: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.kind, MaterialKind):
            try:
                object.__setattr__(self, "kind", MaterialKind(self.kind))
            except ValueError:
                raise SceneValidationError(f"Unknown material kind: {self.kind!r}") from None

        if len(self.albedo) != 3:
            raise SceneValidationError(f"Albedo must have 3 components, got {self.albedo}")
        albedo = tuple(float(c) for c in self.albedo)
        for c in albedo:
            _check_unit_interval("albedo", c)
        object.__setattr__(self, "albedo", albedo)

        if not math.isfinite(self.emittance) or self.emittance < 0.0:
            raise SceneValidationError(
                f"Material emittance must be finite and non-negative, got {self.emittance}"
            )
        _check_unit_interval("roughness", self.roughness)
        _check_unit_interval("metallic", self.metallic)
        if not math.isfinite(self.ior) or self.ior < 0.0:
            raise SceneValidationError(f"Material ior must be non-negative, got {self.ior}")
        if self.kind == MaterialKind.TRANSPARENT and self.ior == 0.0:
            raise SceneValidationError("Transparent material requires ior > 0")

    @property
    def is_emissive(self) -> bool:
        return self.emittance > 0.0 and any(c > 0.0 for c in self.albedo)

    @property
    def emitted_color(self) -> Color:
        """Emitted radiance, albedo * emittance."""
        return tuple(c * self.emittance for c in self.albedo)

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def lambert(cls, albedo: Color = (0.8, 0.8, 0.8), emittance: float = 0.0) -> "Material":
        return cls(kind=MaterialKind.LAMBERT, albedo=albedo, emittance=emittance)

    @classmethod
    def mirror(
        cls, albedo: Color = (0.9, 0.9, 0.9), roughness: float = 0.0, emittance: float = 0.0
    ) -> "Material":
        return cls(kind=MaterialKind.MIRROR, albedo=albedo, roughness=roughness, emittance=emittance)

    @classmethod
    def transparent(
        cls,
        ior: float = 1.5,
        albedo: Color = (1.0, 1.0, 1.0),
        roughness: float = 0.0,
        metallic: float = 0.0,
        emittance: float = 0.0,
    ) -> "Material":
        return cls(
            kind=MaterialKind.TRANSPARENT,
            albedo=albedo,
            roughness=roughness,
            ior=ior,
            metallic=metallic,
            emittance=emittance,
        )

    @classmethod
    def emitter(cls, emission: Color) -> "Material":
        """Lambert emitter from an RGB emission.

        The emittance is the largest channel and the albedo the emission
        normalised by it, so albedo * emittance reproduces the emission.
        """
        if len(emission) != 3:
            raise SceneValidationError(f"Emission must have 3 components, got {emission}")
        strength = max(float(c) for c in emission)
        if strength <= 0.0:
            raise SceneValidationError(f"Light emission must be positive, got {emission}")
        if min(float(c) for c in emission) < 0.0:
            raise SceneValidationError(f"Light emission must be non-negative, got {emission}")
        albedo = tuple(float(c) / strength for c in emission)
        return cls(kind=MaterialKind.LAMBERT, albedo=albedo, emittance=strength)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "albedo": list(self.albedo),
            "emittance": self.emittance,
            "roughness": self.roughness,
            "ior": self.ior,
            "metallic": self.metallic,
            "material": self.kind.name.capitalize(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Material":
        """Build a material from a scene-file record.

        Raises:
            SceneValidationError: If the record is malformed or out of range.
        """
        if not isinstance(data, dict):
            raise SceneValidationError(f"Material must be a mapping, got {type(data).__name__}")
        try:
            return cls(
                kind=MaterialKind.from_name(str(data.get("material", "Lambert"))),
                albedo=tuple(data.get("albedo", (0.8, 0.8, 0.8))),
                emittance=float(data.get("emittance", 0.0)),
                roughness=float(data.get("roughness", 0.0)),
                ior=float(data.get("ior", 1.5)),
                metallic=float(data.get("metallic", 0.0)),
            )
        except SceneValidationError:
            raise
        except (TypeError, ValueError) as exc:
            raise SceneValidationError(f"Invalid material record {data!r}: {exc}") from exc


# =============================================================================
# Device-side material record and dispatch
# =============================================================================

# Plain ints for comparisons inside kernels
KIND_LAMBERT = int(MaterialKind.LAMBERT)
KIND_MIRROR = int(MaterialKind.MIRROR)
KIND_TRANSPARENT = int(MaterialKind.TRANSPARENT)



@ti.dataclass
class MaterialParams:
    """Device-side copy of a Material.

    Attributes:
        kind: MaterialKind as an integer.
        albedo: Reflectance / tint.
        emittance: Emission strength.
        roughness: Specular fuzz.
        ior: Index of refraction.
        metallic: Tint blend.
    """

    kind: ti.i32
    albedo: vec3
    emittance: ti.f32
    roughness: ti.f32
    ior: ti.f32
    metallic: ti.f32


@ti.func
def emitted(material: MaterialParams) -> vec3:
    """Radiance emitted by a surface, albedo * emittance."""
    return material.albedo * material.emittance


@ti.func
def shading_normal(outward_normal: vec3, front_face: ti.i32) -> vec3:
    """Orient the outward normal against the incoming ray."""
    n = outward_normal
    if front_face == 0:
        n = -outward_normal
    return n


@ti.func
def scatter(
    material: MaterialParams,
    incident_direction: vec3,
    outward_normal: vec3,
    front_face: ti.i32,
    sampler: Sampler,
    dimension: ti.i32,
):
    """Dispatch to the scattering routine of the material's kind.

    Args:
        material: The surface material.
        incident_direction: Incoming ray direction (normalized).
        outward_normal: Outward geometric normal at the hit point.
        front_face: 1 if the ray arrived from outside the surface.
        sampler: Random stream of the current sample.
        dimension: First dimension of this bounce's block.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). When
        did_scatter is 0 the path is absorbed.
    """
    normal = shading_normal(outward_normal, front_face)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if material.kind == KIND_LAMBERT:
        scattered_direction, attenuation, did_scatter = scatter_lambert(
            material.albedo, normal, sampler, dimension
        )
    elif material.kind == KIND_MIRROR:
        scattered_direction, attenuation, did_scatter = scatter_mirror(
            material.albedo, material.roughness, incident_direction, normal, sampler, dimension
        )
    elif material.kind == KIND_TRANSPARENT:
        scattered_direction, attenuation, did_scatter = scatter_transparent(
            material.albedo,
            material.roughness,
            material.ior,
            material.metallic,
            incident_direction,
            normal,
            front_face,
            sampler,
            dimension,
        )

    return scattered_direction, attenuation, did_scatter
