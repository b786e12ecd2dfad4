"""Camera module for view and ray generation.

Components:
    pinhole: Explicit viewport camera and look-at pinhole camera

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image
"""

from .pinhole import (
    PinholeCamera,
    ViewportCamera,
    camera_from_dict,
    camera_to_dict,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "ViewportCamera",
    "camera_from_dict",
    "camera_to_dict",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
