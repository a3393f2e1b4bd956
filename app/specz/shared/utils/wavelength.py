import numpy as np

# Air to vacuum conversion coefficients (wavelengths in Angstroms)
_AIR_CONSTANT = 2.735192e-4
_AIR_SQUARE = 131.4182
_AIR_QUARTIC = 2.76249e8


def convert_single_vacuum_from_air(wavelength: float) -> float:
    """Convert a single air wavelength in Angstroms to vacuum."""
    return wavelength * (1 + _AIR_CONSTANT + _AIR_SQUARE / wavelength ** 2 + _AIR_QUARTIC / wavelength ** 4)


def convert_vacuum_from_air(wavelength: np.ndarray) -> np.ndarray:
    """In place convert an array of air wavelengths (Angstroms) to vacuum."""
    wavelength *= 1 + _AIR_CONSTANT + _AIR_SQUARE / wavelength ** 2 + _AIR_QUARTIC / wavelength ** 4
    return wavelength


def convert_vacuum_from_air_with_log_lambda(log_lambda: np.ndarray) -> np.ndarray:
    """In place convert an array of log10 air wavelengths to log10 vacuum wavelengths."""
    lam = np.power(10.0, log_lambda)
    log_lambda[:] = np.log10(convert_vacuum_from_air(lam))
    return log_lambda


def shift_wavelength(wavelength, z: float):
    """Redshift a wavelength (or array of wavelengths) by z."""
    return (1 + z) * wavelength
