"""Built-in demo scenes.

Each preset returns a SceneDescription (scene + camera) so it can be used
anywhere a loaded scene file can.

Example:
    >>> from pathtracer.scene.presets import get_preset
    >>> description = get_preset("spheres")
"""

from collections.abc import Callable

from pathtracer.camera.camera import Camera
from pathtracer.materials.base import Material
from pathtracer.scene.loader import SceneDescription
from pathtracer.scene.scene import SceneBuilder

SKY_BLUE = (0.68, 0.87, 0.96)


def create_single_sphere_scene(emittance: float = 1.0) -> SceneDescription:
    """One white Lambert sphere of radius 0.75 at (0, 1.25, 5) under a sky background.

    Args:
        emittance: Self-emission of the sphere. With the default of 1 the
            sphere renders pure white even at depth 1.
    """
    builder = SceneBuilder(background=SKY_BLUE)
    builder.add_sphere((0.0, 1.25, 5.0), 0.75, Material.lambert((1.0, 1.0, 1.0), emittance=emittance))
    camera = Camera(position=(0.0, 1.25, 0.0), target=(0.0, 1.25, 5.0), vfov=60.0)
    return SceneDescription(scene=builder.build(), camera=camera)


def create_spheres_scene() -> SceneDescription:
    """Ground plane sphere with diffuse, mirror and glass spheres and one light."""
    builder = SceneBuilder(background=(0.05, 0.06, 0.08))

    # Ground
    builder.add_sphere((0.0, -1000.0, 5.0), 1000.0, Material.lambert((0.6, 0.6, 0.55)))

    builder.add_sphere((-1.6, 0.75, 5.5), 0.75, Material.lambert((0.75, 0.25, 0.2)))
    builder.add_sphere((0.0, 0.75, 6.0), 0.75, Material.mirror((0.9, 0.9, 0.9), roughness=0.05))
    builder.add_sphere(
        (1.6, 0.75, 5.5), 0.75, Material.transparent(ior=1.5, albedo=(0.6, 0.9, 0.7), metallic=0.3)
    )
    builder.add_sphere((0.8, 0.3, 4.2), 0.3, Material.mirror((0.95, 0.75, 0.4), roughness=0.4))

    builder.add_light((0.0, 4.5, 5.0), 0.8, emission=(12.0, 11.0, 9.5))

    camera = Camera(position=(0.0, 1.6, 0.0), target=(0.0, 0.8, 5.5), vfov=45.0)
    return SceneDescription(scene=builder.build(), camera=camera)


def create_empty_scene() -> SceneDescription:
    """No objects: every pixel sees the background."""
    builder = SceneBuilder(background=SKY_BLUE)
    camera = Camera(position=(0.0, 0.0, 0.0), target=(0.0, 0.0, 1.0), vfov=60.0)
    return SceneDescription(scene=builder.build(), camera=camera)


PRESETS: dict[str, Callable[[], SceneDescription]] = {
    "single_sphere": create_single_sphere_scene,
    "spheres": create_spheres_scene,
    "empty": create_empty_scene,
}


def get_preset(name: str) -> SceneDescription:
    """Return a built-in scene by name.

    Raises:
        KeyError: If no preset has that name.
    """
    try:
        factory = PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown preset {name!r}; available: {', '.join(sorted(PRESETS))}") from None
    return factory()
