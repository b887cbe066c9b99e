"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field allocated so far.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_render_state():
    """Clear scene, camera and render target around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before fields are allocated
    from src.spheretrace.camera.pinhole import clear_camera
    from src.spheretrace.core.integrator import clear_render_target, release_render_target
    from src.spheretrace.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_camera()
        clear_render_target()
        release_render_target()

    _clear_all()

    yield

    _clear_all()
