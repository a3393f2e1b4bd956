from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator
from typing import Optional


class PipelineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SPECZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Log-wavelength grid (log10 Angstrom)
    start_power: float = Field(3.3, description="Start of the standard log10 wavelength grid")
    end_power: float = Field(4.0, description="End of the standard log10 wavelength grid")
    start_power_q: float = Field(2.9, description="Start of the quasar log10 wavelength grid")
    end_power_q: float = Field(4.0, description="End of the quasar log10 wavelength grid")
    array_size: int = Field(4096, description="Number of samples on the log-wavelength grid")
    fft_size: int = Field(8192, description="Transform length, spectra are zero padded to it")

    # Bad pixel repair
    min_val: float = Field(-1e4, description="Smallest valid intensity")
    max_val: float = Field(1e6, description="Largest valid intensity")
    num_points: int = Field(3, description="Neighbour radius used when repairing bad pixels")

    # Cosmic ray rejection
    cosmic_iterations: int = Field(2, description="Number of cosmic ray rejection passes")
    deviation_factor: float = Field(30.0, description="Cosmic ray threshold in multiples of the rms")
    point_check: int = Field(2, description="Neighbour radius used to replace a cosmic ray")
    max_error: float = Field(1e10, description="Variance sentinel for rejected pixels")

    # Continuum fitting
    poly_deg: int = Field(7, description="Degree of the continuum polynomial")
    poly_fit_iterations: int = Field(15, description="Maximum number of rejection refits")
    poly_fit_reject_deviation: float = Field(3.5, description="Rejection threshold in standard deviations")

    # Smoothing and error adjustment (window sizes must be odd)
    median_width: int = Field(51, description="Median filter window")
    smooth_width: int = Field(121, description="Box-car smoothing window")
    broaden_window: int = Field(3, description="Error broadening window")
    error_median_window: int = Field(101, description="Error median floor window")
    error_median_weight: float = Field(0.6, description="Weight applied to the error median floor")

    # Tapering
    zero_pixel_width: int = Field(6, description="Pixels zeroed at each end")
    taper_width: int = Field(60, description="Width of the cosine roll-off")

    # Spectral line weighting
    base_weight: float = Field(0.7, description="Weight given to pixels far from any line")
    gaussian_width: float = Field(1e-5, description="Gaussian width in squared log10 wavelength")

    # Normalisation
    clip_value: float = Field(30.0, description="Clip threshold in mean absolute deviations")
    normalised_area: float = Field(100000.0, description="Target area for area normalisation")
    normalised_height: float = Field(1000.0, description="Target height for section normalisation")

    # Correlation and fitting
    trim_amount: float = Field(0.1, description="Fraction trimmed before subtracting the correlation mean")
    fit_window: int = Field(7, description="Samples searched around a candidate peak")
    max_matches: int = Field(5, description="Number of ranked redshift matches returned")
    max_workers: int = Field(4, description="Threads used to match templates")

    # Collaborators
    template_path: Optional[str] = Field(None, description="Path to an .npz archive of reference spectra")
    line_list_path: Optional[str] = Field(None, description="Path to a line list text file")

    # Logging
    log_dir: str = Field("logs", description="Directory of the rotating log file")
    log_level: str = Field("INFO", description="Root log level")

    @field_validator("median_width", "smooth_width", "broaden_window", "error_median_window")
    @classmethod
    def validate_odd_window(cls, v):
        if v < 1 or v % 2 == 0:
            raise ValueError(f"Window sizes must be odd and positive, got {v}")
        return v

    @field_validator("array_size", "fft_size")
    @classmethod
    def validate_grid_size(cls, v):
        if v < 2:
            raise ValueError(f"Grid sizes need at least 2 points, got {v}")
        return v

    @field_validator("trim_amount")
    @classmethod
    def validate_trim_amount(cls, v):
        if not 0 <= v < 1:
            raise ValueError(f"trim_amount must lie in [0, 1), got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed_levels:
            raise ValueError(f"Log level must be one of: {allowed_levels}")
        return v

    @model_validator(mode="after")
    def validate_grid_bounds(self):
        if self.start_power >= self.end_power:
            raise ValueError("start_power must be below end_power")
        if self.start_power_q >= self.end_power_q:
            raise ValueError("start_power_q must be below end_power_q")
        if self.fft_size < self.array_size:
            raise ValueError("fft_size must not be smaller than array_size")
        return self


def get_settings() -> PipelineSettings:
    return PipelineSettings()
