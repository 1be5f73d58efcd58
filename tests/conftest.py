"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Repeated ti.init() calls discard all fields, so every test shares one
    runtime.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Reset scene, material, background and render target state around each test."""
    # Imported here so Taichi is initialized before fields are declared
    from glint.core.integrator import clear_render_target, reset_background
    from glint.scene.intersection import clear_scene
    from glint.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        _clear_material_tracking()
        clear_render_target()
        reset_background()

    _clear_all()

    yield

    _clear_all()
