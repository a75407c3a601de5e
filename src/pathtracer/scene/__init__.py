"""Scene module.

Components:
    scene: Immutable Scene / SceneObject values and the SceneBuilder
    loader: JSON scene documents to SceneDescription (scene + camera)
    presets: Built-in demo scenes
    intersection: Device-side scene storage and trace_nearest (allocates
        Taichi fields; import after pathtracer.core.backend.init_backend())
"""

from .loader import SceneDescription, load_scene, parse_scene, save_scene, scene_to_dict
from .presets import PRESETS, get_preset
from .scene import MAX_OBJECTS, Scene, SceneBuilder, SceneObject

__all__ = [
    "MAX_OBJECTS",
    "Scene",
    "SceneBuilder",
    "SceneObject",
    "SceneDescription",
    "load_scene",
    "parse_scene",
    "save_scene",
    "scene_to_dict",
    "PRESETS",
    "get_preset",
]
