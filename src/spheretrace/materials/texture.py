"""Procedural albedo textures for diffuse surfaces.

Two texture kinds are supported:
    - Uniform: a constant color everywhere.
    - Checkered: a 3D checker pattern alternating between an "odd" and an
      "even" color, driven by the sign of sin(10x) * sin(10y) * sin(10z).

Textures are stored in a registry of Taichi fields and referenced by index
from Lambertian materials, so a ground plane can be checkered while keeping
the same scattering model.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.texture import add_checkered_texture
    >>> tex = add_checkered_texture(odd=(0.2, 0.3, 0.1), even=(0.9, 0.9, 0.9))
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Spatial frequency of the checker pattern
CHECKER_FREQUENCY = 10.0

# Colors used when a checkered texture is described without explicit colors
DEFAULT_CHECKER_ODD = (0.2, 0.3, 0.1)
DEFAULT_CHECKER_EVEN = (0.9, 0.9, 0.9)


class TextureType(IntEnum):
    """Enumeration of supported texture kinds."""

    UNIFORM = 0
    CHECKERED = 1


@ti.func
def checker_value(odd: vec3, even: vec3, point: vec3) -> vec3:
    """Evaluate the checker pattern at a world-space point.

    Args:
        odd: Color used where the sine product is negative.
        even: Color used everywhere else.
        point: The world-space point to shade.

    Returns:
        The texture color at the point.
    """
    s = (
        ti.sin(CHECKER_FREQUENCY * point.x)
        * ti.sin(CHECKER_FREQUENCY * point.y)
        * ti.sin(CHECKER_FREQUENCY * point.z)
    )
    color = even
    if s < 0.0:
        color = odd
    return color


# =============================================================================
# Texture Field Storage
# =============================================================================

MAX_TEXTURES = 256

texture_types = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
# Uniform textures use only texture_even_colors
texture_odd_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
texture_even_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())


def _validate_color(name: str, color: tuple[float, float, float]) -> None:
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "Texture colors are used as albedo and must conserve energy."
            )


def clear_textures() -> None:
    """Clear all textures."""
    num_textures[None] = 0


def _add_texture(
    texture_type: TextureType,
    odd: tuple[float, float, float],
    even: tuple[float, float, float],
) -> int:
    idx = num_textures[None]
    if idx >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")

    texture_types[idx] = int(texture_type)
    texture_odd_colors[idx] = vec3(odd[0], odd[1], odd[2])
    texture_even_colors[idx] = vec3(even[0], even[1], even[2])
    num_textures[None] = idx + 1
    return idx


def add_uniform_texture(color: tuple[float, float, float]) -> int:
    """Add a constant-color texture.

    Args:
        color: The (R, G, B) color, each component in [0, 1].

    Returns:
        The index of the added texture.

    Raises:
        RuntimeError: If the maximum number of textures is exceeded.
        ValueError: If any component is outside [0, 1].
    """
    _validate_color("Color", color)
    return _add_texture(TextureType.UNIFORM, color, color)


def add_checkered_texture(
    odd: tuple[float, float, float],
    even: tuple[float, float, float],
) -> int:
    """Add a 3D checker texture.

    Args:
        odd: Color where sin(10x) * sin(10y) * sin(10z) < 0.
        even: Color everywhere else.

    Returns:
        The index of the added texture.

    Raises:
        RuntimeError: If the maximum number of textures is exceeded.
        ValueError: If any component is outside [0, 1].
    """
    _validate_color("Odd color", odd)
    _validate_color("Even color", even)
    return _add_texture(TextureType.CHECKERED, odd, even)


def get_texture_count() -> int:
    """Get the number of textures in the registry."""
    return int(num_textures[None])


@ti.func
def texture_value(texture_idx: ti.i32, point: vec3) -> vec3:
    """Evaluate a registered texture at a world-space point.

    Args:
        texture_idx: The index of the texture in the registry.
        point: The world-space point to shade.

    Returns:
        The texture color (RGB).
    """
    color = texture_even_colors[texture_idx]
    if texture_types[texture_idx] == int(TextureType.CHECKERED):
        color = checker_value(
            texture_odd_colors[texture_idx], texture_even_colors[texture_idx], point
        )
    return color
