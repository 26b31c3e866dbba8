"""Output module for writing rendered images.

Components:
    export: Plain-text PPM writer and Pillow-based PNG export
"""

from .export import compute_rmse, format_ppm, save_image, save_png, write_ppm

__all__ = [
    "format_ppm",
    "write_ppm",
    "save_png",
    "save_image",
    "compute_rmse",
]
