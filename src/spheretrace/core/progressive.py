"""Sample-pass driver on top of the integrator's render target.

ProgressiveRenderer owns no image memory: it sizes the integrator's
preallocated buffers, runs sample passes in batches and reports progress
after each batch, either through a callback or by yielding from a generator.
Calling render() again keeps refining the same image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.pinhole import setup_camera
    >>> from spheretrace.core.progressive import ProgressiveRenderer
    >>> from spheretrace.scene.presets import create_materials_scene
    >>>
    >>> scene, camera = create_materials_scene(aspect_ratio=2.0)
    >>> setup_camera(camera)
    >>> renderer = ProgressiveRenderer(200, 100)
    >>> for done, total in renderer.render_progressive(100, batch_size=10):
    ...     print(f"{done}/{total}")
    >>> pixels = renderer.get_pixels()
"""

import logging
from collections.abc import Callable, Iterator

import numpy as np
import numpy.typing as npt

from spheretrace.core import integrator
from spheretrace.core.integrator import DEFAULT_MAX_DEPTH, SHADING_PATH

logger = logging.getLogger(__name__)

# Called with (samples accumulated so far, samples expected when done)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Accumulates samples per pixel in batches.

    The scene and camera must already be set up. There is a single render
    target, so creating a second renderer resizes and clears the first one's
    image.

    Attributes:
        max_depth: Maximum number of scattering events per path.
        shading: SHADING_PATH or SHADING_NORMALS.
    """

    def __init__(
        self,
        width: int,
        height: int,
        max_depth: int = DEFAULT_MAX_DEPTH,
        shading: int = SHADING_PATH,
    ) -> None:
        integrator.setup_render_target(width, height)
        self._size = (width, height)
        self.max_depth = max_depth
        self.shading = shading

    @property
    def width(self) -> int:
        return self._size[0]

    @property
    def height(self) -> int:
        return self._size[1]

    @property
    def sample_count(self) -> int:
        return integrator.get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples, keeping the size."""
        integrator.clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Change the image size; accumulated samples are discarded.

        Raises:
            ValueError: If a dimension is not in [1, 2048]. The current size
                is kept in that case.
        """
        integrator.setup_render_target(width, height)
        self._size = (width, height)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add num_samples samples per pixel, calling callback after every batch.

        Raises:
            ValueError: If batch_size is not positive.
        """
        for done, total in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(done, total)

    def render_progressive(
        self, num_samples: int = 1, batch_size: int = 1
    ) -> Iterator[tuple[int, int]]:
        """Generator form of render(); yields (done, total) after every batch."""
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        total = self.sample_count + num_samples
        logger.info(
            "Rendering %dx%d at %d spp (max depth %d)",
            self.width,
            self.height,
            num_samples,
            self.max_depth,
        )
        while self.sample_count < total:
            integrator.render_image(
                min(batch_size, total - self.sample_count), self.max_depth, self.shading
            )
            yield self.sample_count, total
        logger.info("Finished at %d spp", self.sample_count)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Averaged linear color, shape (height, width, 3)."""
        return integrator.get_normalized_image_numpy()

    def get_pixels(self) -> npt.NDArray[np.uint8]:
        """Gamma-corrected 8-bit color, shape (height, width, 3), top row first."""
        return integrator.get_pixels()

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
