"""Image export utilities for rendered images.

Rendered images arrive already gamma corrected and quantized as uint8
arrays of shape (height, width, 3), top row first.

Supported formats:
    - PPM (plain-text P3, written directly)
    - PNG and anything else Pillow can encode

Example:
    >>> from pathtracer.core.integrator import render_image
    >>> from pathtracer.output.export import save_image
    >>>
    >>> pixels = render_image(camera, scene, 400, 225, samples_per_pixel=50)
    >>> save_image(pixels, "image.ppm")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

PPM_MAX_VALUE = 255


def _check_image(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {image.shape}")
    return image.astype(np.uint8)


def format_ppm(image: npt.NDArray[np.uint8]) -> str:
    """Encode an image as plain-text PPM (P3).

    The header is ``P3``, ``width height`` and ``255`` on separate lines,
    followed by one ``r g b`` line per pixel, top row first.

    Raises:
        ValueError: If the array is not shaped (height, width, 3).
    """
    image = _check_image(image)
    height, width, _ = image.shape

    lines = ["P3", f"{width} {height}", str(PPM_MAX_VALUE)]
    lines.extend(f"{r} {g} {b}" for r, g, b in image.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def write_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an image as a plain-text PPM (P3) file."""
    Path(filepath).write_text(format_ppm(image), encoding="ascii")


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image through Pillow; the format follows the file suffix."""
    image = _check_image(image)
    # A (height, width, 3) uint8 array maps to an RGB image
    pil_image = PILImage.fromarray(image)
    pil_image.save(filepath)


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image, choosing the writer from the file suffix.

    ``.ppm`` files are written as plain-text P3; every other suffix goes
    through Pillow.
    """
    if Path(filepath).suffix.lower() == ".ppm":
        write_ppm(image, filepath)
    else:
        save_png(image, filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
