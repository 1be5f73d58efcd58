#!/usr/bin/env python3
"""Render a sphere scene to a PNG file.

Builds one of the preset scenes (or loads one from JSON), renders it with
progressive refinement and writes an 8-bit PNG.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --height HEIGHT         Image height in pixels (default: 225)
    --samples SAMPLES       Samples per pixel (default: 100)
    --max-depth DEPTH       Maximum bounces per path (default: 50)
    --scene NAME            Preset scene: ground, three, random (default: three)
    --scene-file PATH       Load spheres and materials from a JSON file
    --aperture APERTURE     Override the camera lens diameter
    --seed SEED             Random seed for sampling and the random scene
    --batch-size SIZE       Samples per progress update (default: 10)
    --output OUTPUT         Output file path (default: spheres.png)
    --cpu                   Force the CPU backend
    --preview               Show the result in a Matplotlib window
    --quiet                 Suppress progress output
    --verbose               Enable debug logging

Example:
    python -m examples.render_spheres --scene random --width 600 --height 400 --samples 50
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import taichi as ti

if TYPE_CHECKING:
    from glint.camera.thin_lens import Camera
    from glint.scene.manager import SceneManager

SCENE_CHOICES = ("ground", "three", "random")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the glint path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels (default: 400)")
    parser.add_argument("--height", type=int, default=225, help="Image height in pixels (default: 225)")
    parser.add_argument("--samples", type=int, default=100, help="Samples per pixel (default: 100)")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_CHOICES,
        default="three",
        help="Preset scene (default: three)",
    )
    parser.add_argument(
        "--scene-file",
        type=str,
        default=None,
        help="JSON scene file with 'materials', 'spheres' and optional 'camera' keys",
    )
    parser.add_argument(
        "--aperture",
        type=float,
        default=None,
        help="Camera lens diameter; 0 disables depth of field",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--preview", action="store_true", help="Show the rendered image")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def init_taichi(use_cpu: bool = False, seed: int = 0, quiet: bool = False) -> None:
    """Initialize Taichi, preferring the GPU unless use_cpu is set."""
    if use_cpu:
        ti.init(arch=ti.cpu, random_seed=seed)
        if not quiet:
            print("Using CPU backend")
        return

    try:
        ti.init(arch=ti.gpu, random_seed=seed)
        if not quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu, random_seed=seed)
        if not quiet:
            print("Using CPU backend")


def build_scene(
    scene_name: str = "three",
    scene_file: str | None = None,
    aspect_ratio: float = 16.0 / 9.0,
    aperture: float | None = None,
    seed: int = 0,
) -> tuple[SceneManager, Camera]:
    """Create the scene and camera requested on the command line.

    A scene file replaces the preset's spheres; its optional "camera" entry
    (Camera fields) replaces the preset's camera. The camera always takes
    the image aspect ratio, even when the file names one, and ``aperture``
    overrides the lens diameter when given.

    Raises:
        ValueError: If the scene name is unknown or the file is invalid.
    """
    from glint.camera.thin_lens import Camera
    from glint.scene.manager import SceneManager
    from glint.scene.presets import PRESETS, random_spheres

    if scene_name not in PRESETS:
        raise ValueError(f"Unknown scene: {scene_name!r}")

    if scene_name == "random":
        scene, camera = random_spheres(seed=seed, aspect_ratio=aspect_ratio)
    else:
        scene, camera = PRESETS[scene_name](aspect_ratio=aspect_ratio)

    if scene_file is not None:
        data = json.loads(Path(scene_file).read_text())
        scene = SceneManager()
        scene.from_dict(data)
        if "camera" in data:
            camera_data = dict(data["camera"])
            camera_data["aspect_ratio"] = aspect_ratio
            camera = Camera(**camera_data)

    camera = dataclasses.replace(camera, aspect_ratio=aspect_ratio)
    if aperture is not None:
        camera = dataclasses.replace(camera, aperture=aperture)

    camera.validate()
    return scene, camera


def render_spheres(
    width: int = 400,
    height: int = 225,
    num_samples: int = 100,
    max_depth: int = 50,
    scene_name: str = "three",
    scene_file: str | None = None,
    aperture: float | None = None,
    seed: int = 0,
    output_path: str = "spheres.png",
    batch_size: int = 10,
    preview: bool = False,
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Returns:
        Path to the saved image file.

    Raises:
        ValueError: If any setting is invalid; checked before rendering.
    """
    # Lazy imports so Taichi is initialized before fields are declared
    from glint.camera.thin_lens import setup_camera
    from glint.core.integrator import RenderSettings
    from glint.core.progressive import ProgressiveRenderer
    from glint.preview.display import show_image
    from glint.preview.export import save_png_from_array

    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
    )
    settings.validate()

    scene, camera = build_scene(
        scene_name=scene_name,
        scene_file=scene_file,
        aspect_ratio=width / height,
        aperture=aperture,
        seed=seed,
    )

    if not quiet:
        label = scene_file if scene_file is not None else scene_name
        print(f"Scene '{label}': {scene.get_sphere_count()} spheres ({width}x{height})")

    scene.upload()
    setup_camera(camera)

    renderer = ProgressiveRenderer(width, height, max_depth=max_depth)

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel, max depth {max_depth}...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=num_samples,
        batch_size=batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()

    image = renderer.get_image_numpy(gamma=settings.gamma)

    output_file = Path(output_path)
    save_png_from_array(image, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    if preview:
        show_image(image, title=f"{num_samples} SPP")

    return output_file


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )

    init_taichi(use_cpu=args.cpu, seed=args.seed, quiet=args.quiet)

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            scene_name=args.scene,
            scene_file=args.scene_file,
            aperture=args.aperture,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            preview=args.preview,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
