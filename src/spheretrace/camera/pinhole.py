"""Primary ray generation.

A camera can be described two ways:
- ViewportCamera: the four viewport vectors given explicitly
- PinholeCamera: look-at positioning (lookfrom, lookat, vup) plus a vertical
  field of view and aspect ratio

Both reduce to the same state: an origin, a world-space lower-left corner of
the viewport and the horizontal/vertical spans of the viewport. A ray through
normalized image coordinates (u, v) is then

    Ray(origin, lower_left + u * horizontal + v * vertical - origin)

The direction is left unnormalized.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.pinhole import ViewportCamera, setup_camera, get_ray
    >>>
    >>> camera = ViewportCamera(
    ...     origin=(0.0, 0.0, 0.0),
    ...     lower_left=(-2.0, -1.0, -1.0),
    ...     horizontal=(4.0, 0.0, 0.0),
    ...     vertical=(0.0, 2.0, 0.0),
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import taichi as ti

from spheretrace.core.ray import Ray, make_ray, vec3

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ViewportCamera:
    """Camera given directly by its viewport vectors.

    Attributes:
        origin: Camera position in world space.
        lower_left: World-space point at the lower-left corner of the viewport.
        horizontal: Full-width span of the viewport.
        vertical: Full-height span of the viewport.
    """

    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lower_left: tuple[float, float, float] = (-2.0, -1.0, -1.0)
    horizontal: tuple[float, float, float] = (4.0, 0.0, 0.0)
    vertical: tuple[float, float, float] = (0.0, 2.0, 0.0)

    def validate(self) -> None:
        """Raise ValueError if either viewport span is zero."""
        if not np.any(np.asarray(self.horizontal, dtype=np.float64)):
            raise ValueError("Viewport horizontal span must be nonzero")
        if not np.any(np.asarray(self.vertical, dtype=np.float64)):
            raise ValueError("Viewport vertical span must be nonzero")


@dataclass
class PinholeCamera:
    """Look-at camera with a vertical field of view.

    The image plane sits one unit in front of lookfrom; there is no lens, so
    everything is in focus.

    Attributes:
        lookfrom: Eye position.
        lookat: Point that projects to the image center.
        vup: World "up"; only its component orthogonal to the view matters.
        vfov: Vertical field of view in degrees, strictly between 0 and 180.
        aspect_ratio: Width divided by height of the output image.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float

    def validate(self) -> None:
        """Raise ValueError for parameters that cannot form a camera basis."""
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")

        view = np.asarray(self.lookfrom, dtype=np.float64) - np.asarray(
            self.lookat, dtype=np.float64
        )
        if np.linalg.norm(view) == 0.0:
            raise ValueError("lookfrom and lookat must be different points")
        if np.linalg.norm(np.cross(np.asarray(self.vup, dtype=np.float64), view)) == 0.0:
            raise ValueError("vup must not be parallel to the view direction")


def camera_to_dict(camera: ViewportCamera | PinholeCamera) -> dict[str, Any]:
    """Export a camera description as a JSON-friendly dictionary."""
    data: dict[str, Any] = {
        "type": "viewport" if isinstance(camera, ViewportCamera) else "pinhole"
    }
    for key, value in asdict(camera).items():
        data[key] = list(value) if isinstance(value, tuple) else value
    return data


def camera_from_dict(data: dict[str, Any]) -> ViewportCamera | PinholeCamera:
    """Build a camera description from a dictionary.

    Raises:
        ValueError: If the camera type is unknown, or fields are missing or
            of the wrong type.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Camera description must be an object, got {data!r}")
    camera_type = data.get("type", "pinhole")
    params = {key: value for key, value in data.items() if key != "type"}

    try:
        for key, value in params.items():
            if isinstance(value, list):
                params[key] = tuple(float(x) for x in value)
        if camera_type == "viewport":
            camera = ViewportCamera(**params)
        elif camera_type == "pinhole":
            camera = PinholeCamera(**params)
        else:
            raise ValueError(f"Unknown camera type: {camera_type}")
        camera.validate()
    except TypeError as exc:
        raise ValueError(f"Invalid camera description: {exc}") from exc

    return camera


# =============================================================================
# Camera State
# =============================================================================

# Rows of _camera_state
ORIGIN, LOWER_LEFT, HORIZONTAL, VERTICAL = range(4)
_STATE_NAMES = ("origin", "lower_left", "horizontal", "vertical")

_camera_state = ti.Vector.field(3, dtype=ti.f32, shape=4)


def _pinhole_viewport(camera: PinholeCamera):
    """Return (origin, lower_left, horizontal, vertical) for a look-at camera."""
    half_height = math.tan(math.radians(camera.vfov) / 2.0)
    half_width = camera.aspect_ratio * half_height

    lookfrom = np.asarray(camera.lookfrom, dtype=np.float64)
    back = lookfrom - np.asarray(camera.lookat, dtype=np.float64)
    w = back / np.linalg.norm(back)
    right = np.cross(np.asarray(camera.vup, dtype=np.float64), w)
    u = right / np.linalg.norm(right)
    v = np.cross(w, u)

    return (
        lookfrom,
        lookfrom - half_width * u - half_height * v - w,
        2.0 * half_width * u,
        2.0 * half_height * v,
    )


def setup_camera(camera: ViewportCamera | PinholeCamera) -> None:
    """Validate a camera description and make it the active camera.

    Must be called from Python before rendering; kernels read the state
    through get_ray().

    Raises:
        ValueError: If the camera parameters are degenerate.
    """
    camera.validate()

    if isinstance(camera, ViewportCamera):
        rows = tuple(
            np.asarray(vec, dtype=np.float64)
            for vec in (camera.origin, camera.lower_left, camera.horizontal, camera.vertical)
        )
    else:
        rows = _pinhole_viewport(camera)

    for index, row in enumerate(rows):
        _camera_state[index] = row.tolist()

    logger.debug(
        "Camera %s",
        ", ".join(f"{name}={row.tolist()}" for name, row in zip(_STATE_NAMES, rows)),
    )


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Ray through viewport coordinates (u, v); (0, 0) is the lower-left corner.

    The direction is not normalized.
    """
    origin = _camera_state[ORIGIN]
    target = (
        _camera_state[LOWER_LEFT] + u * _camera_state[HORIZONTAL] + v * _camera_state[VERTICAL]
    )
    return make_ray(origin, target - origin)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Ray through a uniformly random point inside pixel (i, j); j = 0 is the bottom row."""
    u = (ti.cast(pixel_i, ti.f32) + ti.random(ti.f32)) / ti.cast(width, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + ti.random(ti.f32)) / ti.cast(height, ti.f32)
    return get_ray(u, v)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Active camera state as plain tuples, keyed origin/lower_left/horizontal/vertical."""
    info = {}
    for index, name in enumerate(_STATE_NAMES):
        row = _camera_state[index]
        info[name] = (float(row[0]), float(row[1]), float(row[2]))
    return info
