"""Scene construction: spheres plus a single material id space.

Each material kind keeps its parameters in its own registry
(materials.lambertian, materials.metal, materials.dielectric). Spheres refer
to materials through one shared id; ``material_table`` maps that id to the
pair (MaterialType, index in the kind's registry) so kernels can dispatch.

The whole scene can be exported to, and rebuilt from, a JSON-friendly dict:

    {
        "materials": [{"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 0.3}, ...],
        "spheres": [{"center": [1, 0, -1], "radius": 0.5, "material_id": 0}, ...],
    }

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(1.5)
    >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    >>> scene.add_sphere((-1, 0, -1), -0.45, glass)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from numbers import Integral, Real
from typing import Any

import taichi as ti
import taichi.math as tm

from spheretrace.materials import dielectric, lambertian, metal, texture
from spheretrace.scene import intersection

logger = logging.getLogger(__name__)

MAX_SPHERES = intersection.MAX_SPHERES


class MaterialType(IntEnum):
    """Material kinds known to the path tracer's scatter dispatch."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# One registry slot per kind per id
MAX_MATERIALS = (
    lambertian.MAX_LAMBERTIAN_MATERIALS
    + metal.MAX_METAL_MATERIALS
    + dielectric.MAX_DIELECTRIC_MATERIALS
)

# material_table[id] = (MaterialType, index within that type's registry)
material_table = ti.Vector.field(2, dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType of a material id, or -1 if the id is not registered."""
    kind = -1
    if 0 <= material_id < num_materials[None]:
        kind = material_table[material_id][0]
    return kind


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Index into the material's own registry, or -1 if the id is not registered."""
    index = -1
    if 0 <= material_id < num_materials[None]:
        index = material_table[material_id][1]
    return index


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return float(value)


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    if not isinstance(values, Sequence) or isinstance(values, str):
        raise ValueError(f"{name} must be a list of 3 numbers, got {values!r}")
    if len(values) != 3:
        raise ValueError(f"{name} must have exactly 3 components, got {len(values)}")
    x, y, z = (_as_float(v, name) for v in values)
    return (x, y, z)


def _jsonable(value: Any) -> Any:
    return list(value) if isinstance(value, tuple) else value


@dataclass
class MaterialInfo:
    """A registered material as seen from Python.

    Attributes:
        material_id: Id shared by every material kind.
        material_type: Which registry holds the parameters.
        type_index: Slot in that registry.
        params: Parameters exactly as passed when the material was added.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.material_type.name.lower()}
        data.update((key, _jsonable(value)) for key, value in self.params.items())
        return data


@dataclass
class SphereInfo:
    """A sphere as seen from Python; a negative radius marks an inward-facing shell."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "radius": self.radius,
            "material_id": self.material_id,
        }


@dataclass
class SceneConfig:
    """Plain-data description of a scene, in insertion order."""

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Builds a scene in the Taichi registries and mirrors it in Python.

    Constructing a SceneManager (or calling clear()) empties every registry,
    so only one scene exists at a time. Scenes are filled before rendering
    and never modified while a kernel runs.

    Attributes:
        materials: MaterialInfo per material id.
        spheres: SphereInfo per sphere index.
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove all spheres, materials and textures."""
        intersection.clear_scene()
        lambertian.clear_lambertian_materials()
        metal.clear_metal_materials()
        dielectric.clear_dielectric_materials()
        texture.clear_textures()
        _clear_material_tracking()
        self.materials = []
        self.spheres = []

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def _register(self, kind: MaterialType, type_index: int, params: dict[str, Any]) -> int:
        material_id = int(num_materials[None])
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_table[material_id] = [int(kind), type_index]
        num_materials[None] = material_id + 1
        self.materials.append(MaterialInfo(material_id, kind, type_index, params))
        logger.debug("Material %d is %s #%d %s", material_id, kind.name, type_index, params)
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a diffuse material with a constant albedo.

        Returns:
            The new material id.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If a registry is full.
        """
        index = lambertian.add_lambertian_material(albedo)
        return self._register(MaterialType.LAMBERTIAN, index, {"albedo": albedo})

    def add_checkered_material(
        self,
        odd: tuple[float, float, float],
        even: tuple[float, float, float],
    ) -> int:
        """Add a diffuse material whose albedo alternates in a 3D checker pattern.

        ``odd`` is used where sin(10x)·sin(10y)·sin(10z) < 0, ``even`` elsewhere.
        """
        texture_id = texture.add_checkered_texture(odd, even)
        index = lambertian.add_textured_lambertian_material(texture_id)
        params = {"texture": "checkered", "odd": odd, "even": even}
        return self._register(MaterialType.LAMBERTIAN, index, params)

    def add_metal_material(self, albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
        """Add a reflective material; fuzz 0 is a perfect mirror, 1 the roughest."""
        index = metal.add_metal_material(albedo, fuzz)
        return self._register(MaterialType.METAL, index, {"albedo": albedo, "fuzz": fuzz})

    def add_dielectric_material(self, refractive_index: float = 1.5) -> int:
        """Add a clear refractive material such as glass (1.5) or water (1.33)."""
        index = dielectric.add_dielectric_material(refractive_index)
        return self._register(
            MaterialType.DIELECTRIC, index, {"refractive_index": refractive_index}
        )

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Python-side counterpart of the get_material_type() Taichi function."""
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # -------------------------------------------------------------------------
    # Spheres
    # -------------------------------------------------------------------------

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Place a sphere using an existing material.

        Several spheres may share one material id.

        Returns:
            The sphere index.

        Raises:
            ValueError: If material_id was not returned by this scene, or the
                radius is zero.
            RuntimeError: If the sphere storage is full.
        """
        if not 0 <= material_id < self.get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = intersection.add_sphere(tm.vec3(*center), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, center, radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a diffuse sphere with its own material; returns (sphere_index, material_id)."""
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a metal sphere with its own material; returns (sphere_index, material_id)."""
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        refractive_index: float = 1.5,
    ) -> tuple[int, int]:
        """Add a glass sphere with its own material; returns (sphere_index, material_id)."""
        material_id = self.add_dielectric_material(refractive_index)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return intersection.get_sphere_count()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_config(self) -> SceneConfig:
        return SceneConfig(
            materials=[info.to_dict() for info in self.materials],
            spheres=[info.to_dict() for info in self.spheres],
        )

    def _load_material(self, params: dict[str, Any]) -> int:
        if not isinstance(params, dict):
            raise ValueError(f"Material entry must be an object, got {params!r}")
        kind = str(params.get("type", "")).lower()
        if kind == "lambertian":
            if params.get("texture") == "checkered":
                return self.add_checkered_material(
                    _as_triple(params.get("odd", texture.DEFAULT_CHECKER_ODD), "odd"),
                    _as_triple(params.get("even", texture.DEFAULT_CHECKER_EVEN), "even"),
                )
            return self.add_lambertian_material(
                _as_triple(params.get("albedo", (0.5, 0.5, 0.5)), "albedo")
            )
        if kind == "metal":
            return self.add_metal_material(
                _as_triple(params.get("albedo", (0.8, 0.8, 0.8)), "albedo"),
                _as_float(params.get("fuzz", 0.0), "fuzz"),
            )
        if kind == "dielectric":
            return self.add_dielectric_material(
                _as_float(params.get("refractive_index", 1.5), "refractive_index")
            )
        raise ValueError(f"Unknown material type: {kind}")

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by config.

        Materials are loaded first, in order, so sphere entries can refer to
        them by position.

        Raises:
            ValueError: For unknown material types, malformed entries, invalid
                parameters, sphere entries naming a missing material, or more
                materials or spheres than the registries hold.
        """
        self.clear()
        try:
            for params in config.materials:
                self._load_material(params)
            for entry in config.spheres:
                if not isinstance(entry, dict):
                    raise ValueError(f"Sphere entry must be an object, got {entry!r}")
                self.add_sphere(
                    _as_triple(entry.get("center", (0.0, 0.0, 0.0)), "center"),
                    _as_float(entry.get("radius", 1.0), "radius"),
                    _as_int(entry.get("material_id", 0), "material_id"),
                )
        except RuntimeError as exc:
            raise ValueError(f"Scene too large: {exc}") from exc
        logger.debug(
            "Loaded %d materials and %d spheres", len(self.materials), len(self.spheres)
        )

    def to_dict(self) -> dict[str, Any]:
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from the output of to_dict().

        Raises:
            ValueError: If "materials" or "spheres" is not a list, or for
                anything from_config() rejects.
        """
        materials = data.get("materials", [])
        spheres = data.get("spheres", [])
        if not isinstance(materials, list) or not isinstance(spheres, list):
            raise ValueError('"materials" and "spheres" must be lists')
        self.from_config(SceneConfig(materials=materials, spheres=spheres))

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
