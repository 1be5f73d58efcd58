"""Unit tests for the Metal material module.

Tests cover:
- Perfect mirror reflection (fuzz = 0)
- Fuzzy reflection stays near the mirror direction
- Absorption of rays scattered below the surface
- Attenuation equals albedo
- Fuzz validation
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestMetalValue:
    """Tests for the host-side material value."""

    def test_defaults(self):
        from glint.materials import Metal

        mat = Metal((0.8, 0.8, 0.8))
        assert mat.fuzz == 0.0

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5, float("nan")])
    def test_invalid_fuzz(self, fuzz):
        from glint.materials import Metal

        with pytest.raises(ValueError, match="[Ff]uzz"):
            Metal((0.8, 0.8, 0.8), fuzz)

    def test_boundary_fuzz_allowed(self):
        from glint.materials import validate_fuzz

        assert validate_fuzz(0.0) == 0.0
        assert validate_fuzz(1.0) == 1.0


class TestPerfectReflection:
    """Tests for perfect specular reflection (fuzz = 0)."""

    @pytest.mark.parametrize(
        "incident",
        [(0.0, -1.0, 0.0), (1.0, -1.0, 0.0), (0.3, -0.2, 0.7), (5.0, -0.01, 0.0)],
    )
    def test_mirror_matches_reflect(self, incident):
        """fuzz 0 gives exactly reflect(unit(d), n)."""
        from glint.core.ray import normalize, reflect
        from glint.materials.metal import scatter_metal

        result_dir = ti.Vector.field(3, dtype=ti.f32, shape=())
        expected_dir = ti.Vector.field(3, dtype=ti.f32, shape=())
        result_scatter = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(d: ti.math.vec3):
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            direction, _, did_scatter = scatter_metal(ti.math.vec3(1.0, 1.0, 1.0), 0.0, d, normal)
            result_dir[None] = direction
            expected_dir[None] = reflect(normalize(d), normal)
            result_scatter[None] = did_scatter

        test_kernel(ti.Vector(incident))
        assert result_scatter[None] == 1
        np.testing.assert_allclose(result_dir[None].to_numpy(), expected_dir[None].to_numpy(), atol=1e-6)

    def test_attenuation_is_albedo(self):
        from glint.materials.metal import scatter_metal

        result_atten = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation, _ = scatter_metal(
                ti.math.vec3(0.9, 0.6, 0.3),
                0.0,
                ti.math.vec3(0.0, -1.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            result_atten[None] = attenuation

        test_kernel()
        np.testing.assert_allclose(result_atten[None].to_numpy(), [0.9, 0.6, 0.3], atol=1e-6)


class TestFuzzyReflection:
    """Tests for fuzzy reflection (fuzz > 0)."""

    def test_fuzzy_directions_near_mirror(self):
        """Every scattered ray stays within the fuzz sphere around the mirror direction."""
        from glint.core.ray import length
        from glint.materials.metal import scatter_metal

        n = 2000
        fuzz = 0.3
        deviation = ti.field(dtype=ti.f32, shape=n)
        scattered = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            mirror = ti.math.vec3(0.0, 1.0, 0.0)
            for i in range(n):
                d, _, s = scatter_metal(ti.math.vec3(1.0), fuzz, ti.math.vec3(0.0, -1.0, 0.0), normal)
                scattered[i] = s
                deviation[i] = length(d - mirror)

        test_kernel()
        assert (scattered.to_numpy() == 1).all()
        # Directions lie within asin(fuzz) of the mirror direction
        max_chord = 2.0 * math.sin(math.asin(fuzz) / 2.0)
        assert deviation.to_numpy().max() <= max_chord + 1e-4

    def test_grazing_fuzzy_rays_can_be_absorbed(self):
        """Near-grazing incidence with heavy fuzz sends some rays below the surface."""
        from glint.core.ray import normalize
        from glint.materials.metal import scatter_metal

        n = 2000
        scattered = ti.field(dtype=ti.i32, shape=n)
        below = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            incident = normalize(ti.math.vec3(1.0, -0.02, 0.0))
            for i in range(n):
                d, _, s = scatter_metal(ti.math.vec3(1.0), 1.0, incident, normal)
                scattered[i] = s
                below[i] = 0
                if s == 1 and d.y <= 0.0:
                    below[i] = 1

        test_kernel()
        s = scattered.to_numpy()
        assert (s == 0).any()
        assert (s == 1).any()
        assert below.to_numpy().sum() == 0
