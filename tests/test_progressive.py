"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and setup
- Progressive sample accumulation
- Batch rendering
- Progress callbacks and generators
- Reset functionality
- Image output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest


def _setup_scene_and_camera(width=16, height=12, scene=None):
    """Upload a small scene and a camera matching the renderer size."""
    from src.spheretrace.camera.pinhole import Camera, setup_camera
    from src.spheretrace.scene.manager import Scene, setup_scene

    if scene is None:
        scene = (
            Scene.empty((0.3, 0.3, 0.3))
            .with_light((0.0, 0.0, 2.0), 0.5)
            .with_sphere((0.0, 0.0, 0.0), 1.0)
        )
    setup_scene(scene)
    setup_camera(
        Camera(
            eye=(0.0, -10.0, 0.0),
            look_at=(0.0, 0.0, 0.0),
            up=(0.0, 0.0, 1.0),
            width=width,
            height=height,
            fovy=1.0,
        )
    )


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self):
        """Test that initialization creates a render target with correct dimensions."""
        from src.spheretrace.core.integrator import get_image_dimensions
        from src.spheretrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(128, 96)

        assert renderer.width == 128
        assert renderer.height == 96
        assert renderer.max_depth == 5
        assert renderer.sample_count == 0
        assert get_image_dimensions() == (128, 96)

    def test_init_rejects_oversized_dimensions(self):
        """Test that initialization rejects dimensions exceeding max size."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        with pytest.raises(RuntimeError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

    def test_init_rejects_negative_depth(self):
        """Test that a negative bounce budget is rejected."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="Depth"):
            ProgressiveRenderer(16, 16, max_depth=-1)


class TestProgressiveRendering:
    """Test sample accumulation, batches and progress reporting."""

    def test_render_accumulates_samples(self):
        """Test that render adds the requested number of samples."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        renderer.render(3)
        assert renderer.sample_count == 3
        renderer.render(4, batch_size=2)
        assert renderer.sample_count == 7

    def test_render_with_zero_samples_does_nothing(self):
        """Test that non-positive sample counts render nothing."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        renderer.render(0)
        renderer.render(-3)
        assert renderer.sample_count == 0

    def test_invalid_batch_size(self):
        """Test that a non-positive batch size raises ValueError."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        with pytest.raises(ValueError, match="Batch size"):
            renderer.render(4, batch_size=0)

    def test_callback_receives_progress(self):
        """Test that the callback sees each batch, including a short last batch."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        calls = []
        renderer.render(7, batch_size=3, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(3, 7), (6, 7), (7, 7)]

    def test_callback_with_existing_samples(self):
        """Test that targets include samples accumulated earlier."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        renderer.render(2)
        calls = []
        renderer.render(2, batch_size=1, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(3, 4), (4, 4)]

    def test_render_progressive_yields_progress(self):
        """Test the generator yields after every batch."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        progress = list(renderer.render_progressive(4, batch_size=2))
        assert progress == [(2, 4), (4, 4)]

    def test_render_progressive_interruptible(self):
        """Test stopping the generator early keeps the samples rendered so far."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        for current, _ in renderer.render_progressive(10, batch_size=2):
            if current >= 4:
                break
        assert renderer.sample_count == 4

    def test_reset_clears_samples_and_image(self):
        """Test that reset clears the sample count and color buffer."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        renderer.render(2)
        renderer.reset()
        assert renderer.sample_count == 0
        assert np.all(renderer.get_image_numpy() == 0.0)

    def test_batches_match_constant_scene(self):
        """Test batched accumulation of a constant scene gives that constant."""
        from src.spheretrace.core.progressive import ProgressiveRenderer
        from src.spheretrace.scene.manager import Scene

        _setup_scene_and_camera(scene=Scene.empty((0.1, 0.6, 0.9)))
        renderer = ProgressiveRenderer(16, 12)
        renderer.render(5, batch_size=2)
        assert np.allclose(renderer.get_image_numpy(), (0.1, 0.6, 0.9))


class TestProgressiveRendererOutput:
    """Test image output."""

    def test_get_image_numpy_shape(self):
        """Test the linear image is (height, width, 3) float64 and finite."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        renderer.render(4)
        image = renderer.get_image_numpy()
        assert image.shape == (12, 16, 3)
        assert image.dtype == np.float64
        assert np.all(np.isfinite(image))
        assert np.all(image >= 0.0)

    def test_get_image_uint8(self):
        """Test the 8-bit image has the right type and quantizes the light."""
        from src.spheretrace.core.progressive import ProgressiveRenderer
        from src.spheretrace.scene.manager import Scene

        _setup_scene_and_camera(scene=Scene.empty((0.5, 0.5, 0.5)).with_light((0.0, 0.0, 0.0), 50.0))
        renderer = ProgressiveRenderer(16, 12)
        renderer.render(1)
        image = renderer.get_image_uint8()
        assert image.dtype == np.uint8
        assert image.shape == (12, 16, 3)
        # Emission 2.0 clamps to full white
        assert np.all(image == 255)

    def test_save_image(self, tmp_path):
        """Test save_image writes a PNG matching get_image_uint8."""
        from PIL import Image

        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12)
        renderer.render(2)
        path = tmp_path / "out.png"
        renderer.save_image(str(path))
        loaded = np.asarray(Image.open(path))
        assert np.array_equal(loaded, renderer.get_image_uint8())

    def test_repr_shows_state(self):
        """Test repr includes size, depth and sample count."""
        from src.spheretrace.core.progressive import ProgressiveRenderer

        _setup_scene_and_camera()
        renderer = ProgressiveRenderer(16, 12, max_depth=3)
        renderer.render(1)
        assert repr(renderer) == (
            "ProgressiveRenderer(width=16, height=12, max_depth=3, samples=1)"
        )
