import pytest
from specz.config.settings import PipelineSettings


@pytest.fixture
def settings():
    """Smaller grid and windows so the end to end tests stay quick."""
    return PipelineSettings(
        _env_file=None,
        start_power=3.45,
        end_power=3.98,
        array_size=1024,
        fft_size=2048,
        poly_deg=5,
        median_width=11,
        smooth_width=21,
        error_median_window=21,
        zero_pixel_width=4,
        taper_width=20,
        max_workers=2,
        template_path=None,
    )
