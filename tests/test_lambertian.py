"""Unit tests for the Lambertian material module.

Tests cover:
- Material value validation
- Scattered directions stay in the normal's hemisphere
- Cosine-weighted distribution
- Attenuation equals albedo
"""

import numpy as np
import pytest
import taichi as ti


class TestLambertianValue:
    """Tests for the host-side material value."""

    def test_albedo_normalized_to_floats(self):
        from glint.materials import Lambertian

        mat = Lambertian(albedo=[1, 0, 0.5])
        assert mat.albedo == (1.0, 0.0, 0.5)
        assert isinstance(mat.albedo, tuple)

    def test_frozen(self):
        from dataclasses import FrozenInstanceError

        from glint.materials import Lambertian

        mat = Lambertian((0.5, 0.5, 0.5))
        with pytest.raises(FrozenInstanceError):
            mat.albedo = (0.1, 0.1, 0.1)

    @pytest.mark.parametrize("albedo", [(1.01, 0.0, 0.0), (0.0, -0.5, 0.0), (float("nan"), 0.0, 0.0)])
    def test_out_of_range_albedo(self, albedo):
        from glint.materials import Lambertian

        with pytest.raises(ValueError, match="outside"):
            Lambertian(albedo)

    def test_boundary_albedo_allowed(self):
        from glint.materials import validate_albedo

        assert validate_albedo((0.0, 1.0, 0.0)) == (0.0, 1.0, 0.0)


class TestLambertianScatter:
    """Tests for scatter_lambertian."""

    def test_always_scatters_into_hemisphere(self):
        from glint.core.ray import length, normalize, vec3
        from glint.materials.lambertian import scatter_lambertian

        n = 2000
        cosines = ti.field(dtype=ti.f32, shape=n)
        lengths = ti.field(dtype=ti.f32, shape=n)
        atten = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            normal = normalize(vec3(0.3, 0.8, -0.2))
            for i in range(n):
                d, a = scatter_lambertian(vec3(0.2, 0.4, 0.6), normal)
                cosines[i] = ti.math.dot(d, normal)
                lengths[i] = length(d)
                atten[None] = a

        test_kernel()
        assert (cosines.to_numpy() >= -1e-5).all()
        assert np.abs(lengths.to_numpy() - 1.0).max() < 1e-4
        a = atten[None]
        assert a[0] == pytest.approx(0.2)
        assert a[1] == pytest.approx(0.4)
        assert a[2] == pytest.approx(0.6)

    def test_cosine_weighted_mean(self):
        """E[cos theta] for a cos/pi density is 2/3."""
        from glint.core.ray import vec3
        from glint.materials.lambertian import scatter_lambertian

        n = 50000
        cosines = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 0.0, 1.0)
            for i in range(n):
                d, _ = scatter_lambertian(vec3(0.5, 0.5, 0.5), normal)
                cosines[i] = d.z

        test_kernel()
        assert cosines.to_numpy().mean() == pytest.approx(2.0 / 3.0, abs=0.01)
