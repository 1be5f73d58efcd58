"""Unit tests for the preset scenes.

Tests cover:
- Sphere and material counts
- Camera configuration per preset
- Seeded reproducibility of the random scene
"""

import numpy as np
import pytest


class TestSmallPresets:
    def test_ground_and_sphere(self):
        from glint.scene.manager import MaterialType
        from glint.scene.presets import ground_and_sphere

        scene, camera = ground_and_sphere(aspect_ratio=2.0)
        assert scene.get_sphere_count() == 2
        # Ground and sphere share one grey material
        assert scene.get_material_count() == 1
        assert scene.get_material_type_python(0) == MaterialType.LAMBERTIAN
        assert camera.aspect_ratio == 2.0
        assert camera.aperture == 0.0
        camera.validate()

    def test_three_spheres_materials(self):
        from glint.scene.manager import MaterialType
        from glint.scene.presets import three_spheres

        scene, camera = three_spheres()
        assert scene.get_sphere_count() == 4
        kinds = [scene.get_material_type_python(s.material_id) for s in scene.spheres]
        assert kinds == [
            MaterialType.LAMBERTIAN,
            MaterialType.LAMBERTIAN,
            MaterialType.DIELECTRIC,
            MaterialType.METAL,
        ]
        metal = scene.get_material_info(scene.spheres[3].material_id).material
        assert metal.fuzz > 0.0
        assert camera.vfov == 90.0


class TestRandomSpheres:
    def test_same_seed_same_scene(self):
        from glint.scene.presets import random_spheres

        a, _ = random_spheres(seed=7, grid=4)
        b, _ = random_spheres(seed=7, grid=4)
        assert a.to_dict() == b.to_dict()

    def test_different_seed_different_scene(self):
        from glint.scene.presets import random_spheres

        a, _ = random_spheres(seed=1, grid=4)
        b, _ = random_spheres(seed=2, grid=4)
        assert a.to_dict() != b.to_dict()

    def test_grid_zero_has_feature_spheres_only(self):
        from glint.scene.presets import random_spheres

        scene, _ = random_spheres(seed=0, grid=0)
        assert scene.get_sphere_count() == 4
        assert [s.radius for s in scene.spheres] == [1000.0, 1.0, 1.0, 1.0]

    def test_small_spheres_valid_and_clear_of_metal_sphere(self):
        from glint.scene.presets import random_spheres

        scene, _ = random_spheres(seed=5, grid=11)
        small = [s for s in scene.spheres if s.radius == 0.2]
        assert 0 < len(small) <= 22 * 22
        for s in small:
            assert np.linalg.norm(np.array(s.center) - np.array([4.0, 0.2, 0.0])) > 0.9
            assert s.center[1] == pytest.approx(0.2)
        assert scene.get_sphere_count() <= scene.get_max_spheres()

    def test_cover_camera(self):
        from glint.scene.presets import random_spheres

        _, camera = random_spheres(seed=0, grid=1, aspect_ratio=1.5)
        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert camera.aperture == pytest.approx(0.1)
        assert camera.focus_dist == pytest.approx(10.0)
        assert camera.aspect_ratio == 1.5

    def test_negative_grid(self):
        from glint.scene.presets import random_spheres

        with pytest.raises(ValueError, match="grid"):
            random_spheres(grid=-1)

    def test_registry(self):
        from glint.scene.presets import PRESETS, ground_and_sphere, random_spheres, three_spheres

        assert PRESETS == {
            "ground": ground_and_sphere,
            "three": three_spheres,
            "random": random_spheres,
        }
