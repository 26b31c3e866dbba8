#!/usr/bin/env python3
"""Render one of the preset sphere scenes.

This script builds a preset scene, renders it with the path tracer and
writes the result as a plain-text PPM or, for any other suffix, through
Pillow.

Usage:
    python -m examples.render_scene [options]

Options:
    --scene {three-spheres,random}  Preset to render (default: random)
    --width WIDTH                   Image width in pixels (default: 400)
    --aspect-ratio RATIO            Width / height (default: 16/9)
    --samples SAMPLES               Samples per pixel (default: 100)
    --max-depth DEPTH               Maximum bounces per path (default: 50)
    --seed SEED                     Seed for the scene layout and Taichi RNG
    --motion-blur                   Let the random scene's diffuse spheres move
    --arch {cpu,gpu}                Taichi backend (default: gpu, falls back to cpu)
    --output OUTPUT                 Output file path (default: image.ppm)
    --save-scene PATH               Also write the scene description as JSON
    --quiet                         Suppress progress output

Example:
    python -m examples.render_scene --scene three-spheres --width 200 --samples 20
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

import taichi as ti

SCENES = ("three-spheres", "random")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=SCENES,
        default="random",
        help="Preset scene to render (default: random)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=16.0 / 9.0,
        help="Image width divided by height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the random scene layout and Taichi's RNG (default: 0)",
    )
    parser.add_argument(
        "--motion-blur",
        action="store_true",
        help="Make the random scene's diffuse spheres move during the shutter",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="gpu",
        help="Taichi backend (default: gpu, falls back to cpu)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path; .ppm is written as plain text (default: image.ppm)",
    )
    parser.add_argument(
        "--save-scene",
        type=str,
        default=None,
        help="Write the scene description to this JSON file",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def init_taichi(arch: str, seed: int, quiet: bool = False) -> None:
    """Initialize Taichi, falling back to the CPU if no GPU is usable."""
    backend = "CPU"
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu, random_seed=seed)
            backend = "GPU"
        except Exception:
            ti.init(arch=ti.cpu, random_seed=seed)
    else:
        ti.init(arch=ti.cpu, random_seed=seed)

    if not quiet:
        print(f"Using {backend} backend")


def render_scene(
    scene_name: str = "random",
    width: int = 400,
    aspect_ratio: float = 16.0 / 9.0,
    num_samples: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    motion_blur: bool = False,
    output_path: str = "image.ppm",
    scene_path: str | None = None,
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save it to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.core.integrator import RenderSettings, render
    from pathtracer.output.export import save_image
    from pathtracer.scene.presets import create_random_scene, create_three_spheres_scene

    settings = RenderSettings.from_aspect_ratio(
        width, aspect_ratio, samples_per_pixel=num_samples, max_depth=max_depth
    )

    if not quiet:
        print(
            f"Creating {scene_name} scene "
            f"({settings.image_width}x{settings.image_height})...",
            flush=True,
        )

    if scene_name == "three-spheres":
        scene, camera = create_three_spheres_scene(aspect_ratio)
    else:
        scene, camera = create_random_scene(
            seed=seed, aspect_ratio=aspect_ratio, motion_blur=motion_blur
        )

    if scene_path is not None:
        Path(scene_path).write_text(json.dumps(scene.to_dict(), indent=2), encoding="utf-8")
        if not quiet:
            print(f"Scene description written to: {Path(scene_path).absolute()}")

    if not quiet:
        print(
            f"Rendering {scene.get_primitive_count()} spheres at "
            f"{settings.samples_per_pixel} samples per pixel...",
            flush=True,
        )

    start_time = time.time()
    pixels = render(camera, scene, settings)
    render_time = time.time() - start_time

    output_file = Path(output_path)
    save_image(pixels, output_file)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Render time: {render_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    init_taichi(args.arch, args.seed, quiet=args.quiet)

    try:
        render_scene(
            scene_name=args.scene,
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            motion_blur=args.motion_blur,
            output_path=args.output,
            scene_path=args.save_scene,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
