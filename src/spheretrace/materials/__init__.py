"""Materials module for scattering models.

This module implements the material models a ray can bounce off:

Components:
    lambertian: Diffuse reflection (constant or textured albedo)
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick reflectance)
    texture: Uniform and checkered albedo textures

Each material provides a scatter function returning the scattered direction,
the attenuation color and (for metal and dielectric) a did_scatter flag.
Material parameters live in per-type registries backed by Taichi fields.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    dielectric_interface,
    fresnel_reflectance,
    get_dielectric_material_count,
    get_dielectric_refractive_index,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    add_lambertian_material,
    add_textured_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)
from .texture import (
    TextureType,
    add_checkered_texture,
    add_uniform_texture,
    checker_value,
    clear_textures,
    get_texture_count,
    texture_value,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "add_textured_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "dielectric_interface",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_refractive_index",
    "fresnel_reflectance",
    "will_reflect",
    # Textures
    "TextureType",
    "add_uniform_texture",
    "add_checkered_texture",
    "checker_value",
    "clear_textures",
    "get_texture_count",
    "texture_value",
]
