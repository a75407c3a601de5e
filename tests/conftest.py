"""Pytest configuration for path tracer tests.

The Taichi runtime is started once per session through init_backend, before
any module that allocates fields is imported. Device-side scene and camera
state is cleared around every test so tests stay independent.
"""

import pytest


@pytest.fixture(scope="session", autouse=True)
def init_backend_session():
    """Initialize the Taichi CPU backend once for the entire test session.

    Re-initialising would invalidate the fields of every module imported so
    far, so this is the only place the runtime is started.
    """
    from pathtracer.core.backend import init_backend

    init_backend(workers=4, seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_device_state():
    """Clear uploaded scene and camera state before and after each test."""
    # Imported here so the backend is initialised first
    from pathtracer.camera.pinhole import clear_camera
    from pathtracer.scene.intersection import clear_scene

    clear_scene()
    clear_camera()

    yield

    clear_scene()
    clear_camera()
