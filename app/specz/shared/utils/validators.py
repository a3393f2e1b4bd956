import numpy as np
from specz.core.exceptions import InvalidInputError


def as_float_array(values, name: str = "array") -> np.ndarray:
    """Return `values` as a 1-d float64 array, without copying float64 input."""
    array = np.asarray(values, dtype=np.float64)
    if array.ndim != 1:
        raise InvalidInputError(f"{name} must be one-dimensional, got shape {array.shape}")
    return array


def validate_spectrum_arrays(wavelength, intensity, variance=None, min_length: int = 2) -> None:
    """
    Structural checks run before any conditioning stage mutates data.

    Args:
        wavelength: Wavelength values
        intensity: Intensity values
        variance: Optional variance values
        min_length: Smallest acceptable number of samples

    Raises:
        InvalidInputError: If lengths differ or the spectrum is too short
    """
    n = len(intensity)
    if len(wavelength) != n:
        raise InvalidInputError(
            f"Wavelength and intensity lengths differ: {len(wavelength)} != {n}"
        )
    if variance is not None and len(variance) != n:
        raise InvalidInputError(
            f"Variance and intensity lengths differ: {len(variance)} != {n}"
        )
    if n < min_length:
        raise InvalidInputError(f"Spectrum needs at least {min_length} samples, got {n}")


def validate_redshift(redshift) -> float:
    """Validate and return a redshift value (> -1)."""
    try:
        z = float(redshift)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid redshift value: {redshift!r}")
    if not np.isfinite(z) or z <= -1:
        raise InvalidInputError(f"Redshift must be finite and greater than -1, got {z}")
    return z


def validate_redshift_range(z_start: float, z_end: float) -> None:
    """Raise InvalidInputError unless z_start < z_end."""
    validate_redshift(z_start)
    validate_redshift(z_end)
    if z_start >= z_end:
        raise InvalidInputError(f"Empty redshift range [{z_start}, {z_end}]")
