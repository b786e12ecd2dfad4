"""Path tracing integrator for Monte Carlo light transport.

This module implements the main rendering kernel: an iterative bounce loop
with material-based scattering under a sky-gradient background, per-pixel
sample accumulation and 8-bit quantization of the final image.

Light only comes from the sky. A path that escapes the scene picks up the
sky color scaled by the product of every attenuation along the way; a path
that is absorbed or runs out of bounces contributes black.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Bounce loop with a throughput accumulator (no recursion)
    - Running-average sample accumulation
    - Normal-visualization debug shading
    - Gamma correction and quantization to [0, 255]

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.integrator import (
    ...     render_image, setup_render_target, get_pixels
    ... )
    >>> from spheretrace.scene.presets import create_materials_scene
    >>> from spheretrace.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_materials_scene(aspect_ratio=2.0)
    >>> setup_camera(camera)
    >>> setup_render_target(200, 100)
    >>> render_image(num_samples=10)
    >>> pixels = get_pixels()
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretrace.camera.pinhole import get_ray_jittered
from spheretrace.core.ray import gamma_correct, normalize
from spheretrace.materials.dielectric import scatter_dielectric_by_id
from spheretrace.materials.lambertian import scatter_lambertian_by_id
from spheretrace.materials.metal import scatter_metal_by_id
from spheretrace.scene.intersection import intersect_scene
from spheretrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Constants
# =============================================================================

# Default bounce limit
DEFAULT_MAX_DEPTH = 50

# Intersection interval; T_MIN keeps scattered rays off their own surface
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints (horizon to zenith)
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# Shading modes
SHADING_PATH = 0
SHADING_NORMALS = 1

SHADING_MODES = {"path": SHADING_PATH, "normals": SHADING_NORMALS}


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (linear, pre-gamma)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Quantized 8-bit output
_pixel_buffer = ti.Vector.field(3, dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (1..MAX_IMAGE_WIDTH).
        height: Image height in pixels (1..MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)
    _pixel_buffer.fill(0)


def reset_render_target() -> None:
    """Forget the render target so that it must be set up again."""
    _render_target_initialized[None] = 0
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_render_parameters(max_depth: int, shading: int) -> None:
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")
    if shading not in (SHADING_PATH, SHADING_NORMALS):
        raise ValueError(f"Unknown shading mode: {shading}")


# =============================================================================
# Shading
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Vertical white-to-blue gradient seen by rays that escape the scene."""
    t = 0.5 * (normalize(direction).y + 1.0)
    return (1.0 - t) * SKY_WHITE + t * SKY_BLUE


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction (not normalized).
        hit_point: The intersection point on the surface.
        normal: The stored surface normal, (point - center) / radius.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The new ray direction.
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if ray scattered, 0 if absorbed.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation = scatter_lambertian_by_id(
            type_index, hit_point, normal
        )
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal
        )

    return scattered_direction, attenuation, did_scatter


@ti.func
def trace_ray(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Estimate the color carried back along a ray.

    Each iteration intersects the scene once. On a miss the sky color,
    scaled by the accumulated throughput, is the result. On a hit with
    bounces left the material scatters the ray and its attenuation is
    folded into the throughput. A hit at the bounce limit, or an absorbed
    ray, yields black without consulting the material any further.

    Args:
        origin: Ray origin.
        direction: Ray direction (any nonzero length).
        max_depth: Maximum number of scattering events.

    Returns:
        The linear RGB color for this path.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    active = 1

    for depth in range(max_depth + 1):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(ray_direction)
                active = 0
            elif depth < max_depth:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, ray_direction, rec.point, rec.normal
                )
                if did_scatter == 1:
                    throughput = throughput * attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction
                else:
                    active = 0
            else:
                active = 0

    return color


@ti.func
def shade_normal(origin: vec3, direction: vec3) -> vec3:
    """Map the surface normal at the first hit to a color, or sky on a miss."""
    color = sky_color(direction)
    rec = intersect_scene(origin, direction, T_MIN, T_MAX)
    if rec.hit == 1:
        color = 0.5 * (rec.normal + vec3(1.0, 1.0, 1.0))
    return color


@ti.func
def render_sample_impl(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    shading: ti.i32,
) -> vec3:
    """Render a single jittered sample for a pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of scattering events.
        shading: SHADING_PATH or SHADING_NORMALS.

    Returns:
        The linear RGB color for this sample.
    """
    ray = get_ray_jittered(pixel_i, pixel_j, width, height)
    color = vec3(0.0, 0.0, 0.0)
    if shading == SHADING_NORMALS:
        color = shade_normal(ray.origin, ray.direction)
    else:
        color = trace_ray(ray.origin, ray.direction, max_depth)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.func
def _accumulate(i: ti.i32, j: ti.i32, sample: vec3):
    """Fold one sample into the running average of pixel (i, j)."""
    color = tm.max(sample, vec3(0.0, 0.0, 0.0))

    # Check for NaN/Inf and replace with zero
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            color[c] = 0.0

    _sample_count[i, j] += 1
    n = _sample_count[i, j]

    # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
    _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, shading: ti.i32):
    """Render one sample per pixel and accumulate."""
    for i, j in ti.ndrange(width, height):
        color = render_sample_impl(i, j, width, height, max_depth, shading)
        _accumulate(i, j, color)


@ti.kernel
def _accumulate_constant(width: ti.i32, height: ti.i32, sample: vec3):
    """Accumulate the same sample into every pixel."""
    for i, j in ti.ndrange(width, height):
        _accumulate(i, j, sample)


@ti.kernel
def _quantize(width: ti.i32, height: ti.i32):
    """Gamma-correct the averaged colors and quantize them to [0, 255]."""
    for i, j in ti.ndrange(width, height):
        corrected = gamma_correct(_color_buffer[i, j])
        for c in ti.static(range(3)):
            value = ti.cast(corrected[c] * 255.99, ti.i32)
            _pixel_buffer[i, j][c] = ti.min(ti.max(value, 0), 255)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    shading: ti.i32,
) -> vec3:
    """Render a single sample for a specific pixel."""
    return render_sample_impl(pixel_i, pixel_j, width, height, max_depth, shading)


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    return trace_ray(origin, direction, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray_color(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[float, float, float]:
    """Trace one ray through the current scene from Python.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")
    color = _trace_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    shading: int = SHADING_PATH,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of scattering events.
        shading: SHADING_PATH or SHADING_NORMALS.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _check_render_parameters(max_depth, shading)

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth, shading)

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_samples: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
    shading: int = SHADING_PATH,
) -> None:
    """Render the image with the specified number of samples per pixel.

    Accumulates samples into the color buffer. Can be called multiple
    times to add more samples for convergence.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum number of scattering events per path.
        shading: SHADING_PATH or SHADING_NORMALS.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples or max_depth is negative.
    """
    _check_render_target_initialized()
    _check_render_parameters(max_depth, shading)
    if num_samples < 0:
        raise ValueError(f"num_samples must be >= 0, got {num_samples}")

    width, height = get_image_dimensions()
    logger.debug(
        "Rendering %d sample(s) at %dx%d (max_depth=%d, shading=%d)",
        num_samples,
        width,
        height,
        max_depth,
        shading,
    )

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, shading)


def accumulate_constant_sample(color: tuple[float, float, float]) -> None:
    """Fold the same color into every pixel as one more sample.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _accumulate_constant(width, height, vec3(color[0], color[1], color[2]))


def get_total_samples() -> int:
    """Get the total number of samples rendered so far.

    Returns the sample count from pixel (0, 0), which is the same
    for all pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def _to_image_layout(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Crop a (MAX_W, MAX_H, 3) buffer and reorder it to (height, width, 3), top row first."""
    image = buffer[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (pixel row j = 0 is the bottom of the image)
    return np.flipud(image)


def get_normalized_image_numpy() -> np.ndarray:
    """Get the averaged linear colors as a NumPy array.

    Returns:
        float32 array of shape (height, width, 3), clamped to [0, 1],
        with row 0 being the top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _to_image_layout(_color_buffer.to_numpy(), width, height)
    image = np.clip(image, 0.0, 1.0)

    return image.astype(np.float32)


def get_pixels() -> np.ndarray:
    """Gamma-correct and quantize the accumulated image.

    Returns:
        uint8 array of shape (height, width, 3). Row 0 is the top of the
        image (pixel row j = height - 1), columns run left to right.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    _quantize(width, height)
    image = _to_image_layout(_pixel_buffer.to_numpy(), width, height)

    return np.ascontiguousarray(image).astype(np.uint8)
