"""Scene module for scene management and hit records.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Sphere storage and the closest-hit query
    manager: Unified scene manager coordinating spheres and materials
    presets: Built-in scenes and JSON scene files

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - Integer material IDs resolved through a type table
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    SCENES,
    build_scene,
    create_materials_scene,
    create_normals_scene,
    create_random_scene,
    load_scene_file,
    save_scene_file,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "SCENES",
    "build_scene",
    "create_normals_scene",
    "create_materials_scene",
    "create_random_scene",
    "load_scene_file",
    "save_scene_file",
]
