"""Ready-made sphere scenes with matching cameras.

Three scenes of increasing complexity:

- ``ground_and_sphere``: one grey diffuse sphere resting on a huge ground
  sphere, the smallest scene that shows diffuse interreflection.
- ``three_spheres``: diffuse centre, glass left and fuzzy metal right on a
  yellowish ground, one sphere per material kind.
- ``random_spheres``: the classic cover image, a large ground, three big
  feature spheres and a grid of small randomly chosen spheres, viewed
  through a thin lens with a shallow depth of field.

Every factory returns a fresh ``(SceneManager, Camera)`` pair. Nothing is
uploaded; ``render`` does that.

Example:
    >>> from glint.scene.presets import three_spheres
    >>> scene, camera = three_spheres(aspect_ratio=16.0 / 9.0)
    >>> scene.get_sphere_count()
    4
"""

from collections.abc import Callable

import numpy as np

from glint.camera.thin_lens import Camera
from glint.materials import Dielectric, Lambertian, Metal
from glint.scene.manager import SceneManager

# =============================================================================
# Preset Constants
# =============================================================================

DEFAULT_ASPECT_RATIO = 16.0 / 9.0

GROUND_ALBEDO = (0.5, 0.5, 0.5)
GLASS_IOR = 1.5

# Small scenes sit on a radius-100 sphere whose top touches y = -0.5
SMALL_GROUND_CENTER = (0.0, -100.5, -1.0)
SMALL_GROUND_RADIUS = 100.0

# Cover scene feature spheres
COVER_GROUND_RADIUS = 1000.0
COVER_SMALL_RADIUS = 0.2
COVER_GRID = 11

SceneFactory = Callable[..., tuple[SceneManager, Camera]]


def _front_camera(aspect_ratio: float) -> Camera:
    """Camera at the origin looking down -z with a 90 degree field of view."""
    return Camera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )


def ground_and_sphere(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """A grey diffuse sphere on a grey diffuse ground."""
    scene = SceneManager()
    scene.add_primitive(SMALL_GROUND_CENTER, SMALL_GROUND_RADIUS, Lambertian(GROUND_ALBEDO))
    scene.add_primitive((0.0, 0.0, -1.0), 0.5, Lambertian(GROUND_ALBEDO))
    return scene, _front_camera(aspect_ratio)


def three_spheres(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Diffuse, glass and fuzzy metal spheres side by side on a ground sphere.

    Sphere indices are 0 = ground, 1 = centre (diffuse), 2 = left (glass),
    3 = right (metal).
    """
    scene = SceneManager()
    scene.add_lambertian_sphere(SMALL_GROUND_CENTER, SMALL_GROUND_RADIUS, (0.8, 0.8, 0.0))
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.1, 0.2, 0.5))
    scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5, ior=GLASS_IOR)
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), fuzz=0.3)
    return scene, _front_camera(aspect_ratio)


def random_spheres(
    seed: int | None = None,
    grid: int = COVER_GRID,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """The cover scene: feature spheres surrounded by random small spheres.

    For each cell (a, b) in ``[-grid, grid)^2`` a small sphere is placed
    near (a, 0.2, b) unless it would overlap the metal feature sphere. It is
    diffuse with probability 0.8 (albedo the product of two random colors),
    metal with probability 0.15 (albedo in [0.5, 1), fuzz in [0, 0.5)) and
    glass otherwise.

    Args:
        seed: Seed for the NumPy generator; the same seed gives the same
            scene.
        grid: Half-extent of the small-sphere grid. 0 leaves only the
            ground and feature spheres.
        aspect_ratio: Width / height of the target image.

    Raises:
        ValueError: If grid is negative.
    """
    if grid < 0:
        raise ValueError(f"grid = {grid} must be non-negative")

    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_primitive(
        (0.0, -COVER_GROUND_RADIUS, 0.0), COVER_GROUND_RADIUS, Lambertian(GROUND_ALBEDO)
    )

    clear_of = np.array([4.0, COVER_SMALL_RADIUS, 0.0])

    for a in range(-grid, grid):
        for b in range(-grid, grid):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), COVER_SMALL_RADIUS, b + 0.9 * rng.random()]
            )

            if np.linalg.norm(center - clear_of) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                material = Lambertian(tuple(float(x) for x in albedo))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                material = Metal(tuple(float(x) for x in albedo), fuzz)
            else:
                material = Dielectric(GLASS_IOR)

            scene.add_primitive(tuple(float(x) for x in center), COVER_SMALL_RADIUS, material)

    scene.add_primitive((0.0, 1.0, 0.0), 1.0, Dielectric(GLASS_IOR))
    scene.add_primitive((-4.0, 1.0, 0.0), 1.0, Lambertian((0.4, 0.2, 0.1)))
    scene.add_primitive((4.0, 1.0, 0.0), 1.0, Metal((0.7, 0.6, 0.5), 0.0))

    camera = Camera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


# Name -> factory, as used by the command-line front end
PRESETS: dict[str, SceneFactory] = {
    "ground": ground_and_sphere,
    "three": three_spheres,
    "random": random_spheres,
}
