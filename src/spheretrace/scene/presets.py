"""Built-in scenes and JSON scene files.

Each preset factory fills a fresh SceneManager and returns it together with a
camera description that suits it:

- normals: a small sphere resting on a huge "ground" sphere, the classic first
  image of the series, meant to be viewed with normal shading
- materials: diffuse, metal and hollow glass spheres side by side
- random: a field of small random spheres around three large ones, on a
  checkered ground

Scene files are JSON documents holding the output of SceneManager.to_dict()
plus an optional "camera" entry (see camera_to_dict()).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.presets import build_scene
    >>> from spheretrace.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = build_scene("materials", aspect_ratio=2.0)
    >>> setup_camera(camera)
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path

import numpy as np

from spheretrace.camera.pinhole import (
    PinholeCamera,
    ViewportCamera,
    camera_from_dict,
    camera_to_dict,
)
from spheretrace.materials.texture import DEFAULT_CHECKER_EVEN, DEFAULT_CHECKER_ODD
from spheretrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)

Camera = ViewportCamera | PinholeCamera

# =============================================================================
# Preset Constants
# =============================================================================

GROUND_RADIUS = 100.0

# Materials scene
GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
GOLD_ALBEDO = (0.8, 0.6, 0.2)
GOLD_FUZZ = 0.3
GLASS_REFRACTIVE_INDEX = 1.5

# Random scene
RANDOM_GRID_HALF_EXTENT = 7
CHECKER_ODD = DEFAULT_CHECKER_ODD
CHECKER_EVEN = DEFAULT_CHECKER_EVEN


def _front_camera(aspect_ratio: float) -> PinholeCamera:
    """Camera at the origin looking down -z with a 90 degree vertical FOV.

    With aspect_ratio 2 this reproduces the classic viewport with lower-left
    corner (-2, -1, -1), horizontal (4, 0, 0) and vertical (0, 2, 0).
    """
    return PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )


# =============================================================================
# Preset Factories
# =============================================================================


def create_normals_scene(aspect_ratio: float = 2.0, seed: int = 0) -> tuple[SceneManager, Camera]:
    """Create a sphere sitting on a large ground sphere.

    Returns:
        A tuple of (SceneManager, camera).
    """
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
    scene.add_lambertian_sphere((0.0, -GROUND_RADIUS - 0.5, -1.0), GROUND_RADIUS, (0.5, 0.5, 0.5))

    if aspect_ratio == 2.0:
        camera: Camera = ViewportCamera()
    else:
        camera = _front_camera(aspect_ratio)
    return scene, camera


def create_materials_scene(
    aspect_ratio: float = 2.0, seed: int = 0
) -> tuple[SceneManager, Camera]:
    """Create a row of diffuse, metal and hollow glass spheres on a ground sphere.

    The glass sphere is a shell: an outer sphere and a slightly smaller one
    with negative radius, sharing the same material.

    Returns:
        A tuple of (SceneManager, camera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    center = scene.add_lambertian_material(CENTER_ALBEDO)
    gold = scene.add_metal_material(GOLD_ALBEDO, GOLD_FUZZ)
    glass = scene.add_dielectric_material(GLASS_REFRACTIVE_INDEX)

    scene.add_sphere((0.0, -GROUND_RADIUS - 0.5, -1.0), GROUND_RADIUS, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)

    return scene, _front_camera(aspect_ratio)


def create_random_scene(aspect_ratio: float = 1.5, seed: int = 0) -> tuple[SceneManager, Camera]:
    """Create a field of random small spheres around three large ones.

    Small spheres are placed on a jittered grid; each gets its own material,
    chosen as diffuse (80%), metal (15%) or glass (5%). The layout depends
    only on seed.

    Returns:
        A tuple of (SceneManager, camera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_checkered_material(CHECKER_ODD, CHECKER_EVEN)
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    landmark = np.array([4.0, 0.2, 0.0])
    for a in range(-RANDOM_GRID_HALF_EXTENT, RANDOM_GRID_HALF_EXTENT):
        for b in range(-RANDOM_GRID_HALF_EXTENT, RANDOM_GRID_HALF_EXTENT):
            choose = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])
            if np.linalg.norm(center - landmark) <= 0.9:
                continue

            position = (float(center[0]), float(center[1]), float(center[2]))
            if choose < 0.8:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(position, 0.2, tuple(float(x) for x in albedo))
            elif choose < 0.95:
                albedo = 0.5 * (1.0 + rng.random(3))
                fuzz = float(0.5 * rng.random())
                scene.add_metal_sphere(position, 0.2, tuple(float(x) for x in albedo), fuzz)
            else:
                scene.add_dielectric_sphere(position, 0.2, GLASS_REFRACTIVE_INDEX)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, GLASS_REFRACTIVE_INDEX)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    logger.debug("Random scene with seed %d has %d spheres", seed, scene.get_sphere_count())

    camera = PinholeCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


SCENES: dict[str, Callable[..., tuple[SceneManager, Camera]]] = {
    "normals": create_normals_scene,
    "materials": create_materials_scene,
    "random": create_random_scene,
}


def build_scene(name: str, aspect_ratio: float, seed: int = 0) -> tuple[SceneManager, Camera]:
    """Build a preset scene by name.

    Raises:
        ValueError: If no preset has that name.
    """
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(
            f"Unknown scene '{name}'. Available scenes: {', '.join(sorted(SCENES))}"
        ) from None
    logger.debug("Building preset scene '%s'", name)
    return factory(aspect_ratio=aspect_ratio, seed=seed)


# =============================================================================
# Scene Files
# =============================================================================


def load_scene_file(path: str | Path, aspect_ratio: float) -> tuple[SceneManager, Camera]:
    """Load a scene (and optionally its camera) from a JSON file.

    Without a "camera" entry the scene is viewed from the origin looking
    down -z.

    Raises:
        ValueError: If the file is unreadable, not valid JSON, or describes
            an invalid scene.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except OSError as exc:
        raise ValueError(f"Cannot read scene file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Scene file {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Scene file {path} must contain a JSON object")

    scene = SceneManager()
    scene.from_dict(data)

    if "camera" in data:
        camera = camera_from_dict(data["camera"])
    else:
        camera = _front_camera(aspect_ratio)

    logger.info("Loaded scene file %s (%d spheres)", path, scene.get_sphere_count())
    return scene, camera


def save_scene_file(scene: SceneManager, camera: Camera, path: str | Path) -> None:
    """Write a scene and its camera to a JSON file readable by load_scene_file()."""
    data = scene.to_dict()
    data["camera"] = camera_to_dict(camera)
    Path(path).write_text(json.dumps(data, indent=2))
