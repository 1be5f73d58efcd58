"""Unit tests for scene-level intersection.

Tests cover:
- Empty scene behavior
- Closest hit among several spheres, independent of insertion order
- Material ids carried through to the hit
- Capacity limits
"""

import itertools

import pytest
import taichi as ti


class TestSceneStorage:
    """Tests for adding and clearing spheres."""

    def test_add_sphere_returns_index(self):
        from glint.scene.intersection import add_sphere, clear_scene, get_sphere_count

        clear_scene()
        assert add_sphere((0.0, 0.0, -1.0), 0.5) == 0
        assert add_sphere((1.0, 0.0, -1.0), 0.5, material_id=3) == 1
        assert get_sphere_count() == 2

    def test_clear_scene(self):
        from glint.scene.intersection import add_sphere, clear_scene, get_sphere_count

        add_sphere((0.0, 0.0, -1.0), 0.5)
        clear_scene()
        assert get_sphere_count() == 0

    def test_capacity_exceeded(self):
        from glint.scene.intersection import MAX_SPHERES, add_sphere, num_spheres

        num_spheres[None] = MAX_SPHERES
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            add_sphere((0.0, 0.0, 0.0), 1.0)


class TestClosestHit:
    """Tests for intersect_scene through the Python query helper."""

    def test_empty_scene_misses(self):
        from glint.scene.intersection import query_scene

        assert query_scene((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) is None

    def test_single_sphere(self):
        from glint.scene.intersection import add_sphere, query_scene

        add_sphere((0.0, 0.0, -1.0), 0.5, material_id=7)
        hit = query_scene((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert hit is not None
        assert hit.t == pytest.approx(0.5, abs=1e-5)
        assert hit.point[2] == pytest.approx(-0.5, abs=1e-5)
        assert hit.normal[2] == pytest.approx(1.0, abs=1e-5)
        assert hit.front_face is True
        assert hit.material_id == 7

    def test_miss_beside_sphere(self):
        from glint.scene.intersection import add_sphere, query_scene

        add_sphere((0.0, 0.0, -1.0), 0.5)
        assert query_scene((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)) is None

    @pytest.mark.parametrize("order", list(itertools.permutations(range(3))))
    def test_closest_hit_independent_of_order(self, order):
        """Three spheres on the same line: the nearest one always wins."""
        from glint.scene.intersection import add_sphere, clear_scene, query_scene

        spheres = [
            ((0.0, 0.0, -2.0), 0.5, 0),
            ((0.0, 0.0, -5.0), 1.0, 1),
            ((0.0, 0.0, -9.0), 2.0, 2),
        ]
        clear_scene()
        for idx in order:
            center, radius, material_id = spheres[idx]
            add_sphere(center, radius, material_id=material_id)

        hit = query_scene((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert hit is not None
        assert hit.t == pytest.approx(1.5, abs=1e-5)
        assert hit.material_id == 0

    def test_overlapping_spheres_nearest_surface(self):
        from glint.scene.intersection import add_sphere, query_scene

        add_sphere((0.0, 0.0, -3.0), 1.0, material_id=0)
        add_sphere((0.0, 0.0, -2.5), 1.0, material_id=1)

        hit = query_scene((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit.t == pytest.approx(1.5, abs=1e-5)
        assert hit.material_id == 1

    def test_t_min_ignores_surface_at_origin(self):
        """A ray leaving a surface does not hit it again at t ~ 0."""
        from glint.scene.intersection import T_MIN, add_sphere, query_scene

        add_sphere((0.0, 0.0, 0.0), 1.0)
        # Start exactly on the surface, heading outward
        hit = query_scene((0.0, 0.0, 1.0), (0.0, 0.0, 1.0), t_min=T_MIN)
        assert hit is None

    def test_t_max_limits_search(self):
        from glint.scene.intersection import add_sphere, query_scene

        add_sphere((0.0, 0.0, -10.0), 1.0)
        assert query_scene((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), t_max=5.0) is None

    def test_normals_are_unit_length(self):
        from glint.scene.intersection import add_sphere, query_scene

        add_sphere((0.3, -0.2, -4.0), 1.3)
        for direction in [(0.0, 0.0, -1.0), (0.2, 0.1, -1.0), (-0.05, -0.3, -1.0)]:
            hit = query_scene((0.0, 0.0, 0.0), direction)
            assert hit is not None
            n = hit.normal
            assert (n[0] ** 2 + n[1] ** 2 + n[2] ** 2) ** 0.5 == pytest.approx(1.0, abs=1e-5)
            assert sum(a * b for a, b in zip(n, direction)) < 0.0
