"""Tests for render settings.

Taichi itself is initialized once by conftest.py; init_taichi() is not
called here because re-initializing would invalidate every allocated field.
"""

import pytest


class TestRenderSettings:
    """Tests for RenderSettings defaults and validation."""

    def test_defaults(self):
        """Test the defaults describe the demo render."""
        from src.spheretrace.config import RenderSettings

        settings = RenderSettings()
        assert (settings.width, settings.height) == (200, 200)
        assert settings.samples_per_pixel == 25
        assert settings.max_depth == 5
        assert settings.seed == 0
        assert settings.arch == "gpu"

    def test_defaults_match_integrator_constants(self):
        """Test the settings defaults agree with the integrator constants."""
        from src.spheretrace.config import RenderSettings
        from src.spheretrace.core.integrator import MAX_DEPTH, SAMPLES_PER_PIXEL

        settings = RenderSettings()
        assert settings.max_depth == MAX_DEPTH
        assert settings.samples_per_pixel == SAMPLES_PER_PIXEL

    def test_zero_depth_allowed(self):
        """Test a zero bounce budget is valid (renders the background)."""
        from src.spheretrace.config import RenderSettings

        assert RenderSettings(max_depth=0).max_depth == 0

    @pytest.mark.parametrize(
        "kwargs,match",
        [
            ({"width": 0}, "Image size"),
            ({"height": -5}, "Image size"),
            ({"samples_per_pixel": 0}, "samples_per_pixel"),
            ({"max_depth": -1}, "max_depth"),
            ({"seed": -1}, "seed"),
            ({"arch": "vulkan"}, "arch"),
        ],
    )
    def test_invalid(self, kwargs, match):
        """Test out-of-range values raise ValueError."""
        from src.spheretrace.config import RenderSettings

        with pytest.raises(ValueError, match=match):
            RenderSettings(**kwargs)
